# plugins/core_assets/path_guard.py

import logging
import os
import re
from typing import Iterable, Optional, Tuple, Union

from wcmatch import glob

logger = logging.getLogger(__name__)

AllowList = Union[str, Iterable[str], None]

# `**` 跨目录，`{a,b}` 与 `@(...)` 可用；通配符从不匹配 `.`、`..` 和隐藏文件
GLOB_FLAGS = glob.GLOBSTAR | glob.BRACE | glob.EXTGLOB

_SEGMENT_SPLIT = re.compile(r"[\\/]")


def _normalize_allow_list(allowed_files: AllowList) -> Tuple[str, ...]:
    if not allowed_files:
        return ()
    if isinstance(allowed_files, str):
        allowed_files = [allowed_files]
    return tuple(p for p in allowed_files if p)


def flip_separators(path: str) -> str:
    if '/' in path:
        return path.replace('/', '\\')
    return path.replace('\\', '/')


def has_parent_segment(path: str) -> bool:
    return ".." in _SEGMENT_SPLIT.split(path)


def _relative_to_root(absolute_path: str, root_directory: Optional[str]) -> Optional[str]:
    if root_directory is None:
        return None
    root = os.path.abspath(root_directory)
    path = os.path.abspath(absolute_path)
    if os.path.commonpath([root, path]) != root:
        return None
    return os.path.relpath(path, root)


def is_path_allowed(
    allowed_files: AllowList,
    link: str,
    absolute_path: str,
    root_directory: Optional[str] = None,
) -> bool:
    """
    判断一个链接是否被白名单覆盖。

    含有 `..` 段的链接或路径一律拒绝。之后四种形式中任意一种匹配即可：
    规范化后的绝对路径、翻转分隔符的绝对路径、规范化后的原始链接、
    翻转分隔符的原始链接。给出 root_directory 时，根目录内的路径还会以
    相对根目录的形式再检查一次，这样 `**/foo.js` 也覆盖指向根目录内的绝对链接。
    白名单为空时总是返回 False。
    """
    patterns = _normalize_allow_list(allowed_files)
    if not patterns:
        return False

    absolute_path = str(absolute_path)
    if has_parent_segment(link) or has_parent_segment(absolute_path):
        logger.debug(f"Denied link with parent directory segment: {link}")
        return False

    link = os.path.normpath(link)
    absolute_path = os.path.normpath(absolute_path)
    candidates = (
        absolute_path,
        flip_separators(absolute_path),
        link,
        flip_separators(link),
    )
    relative = _relative_to_root(absolute_path, root_directory)
    if relative is not None:
        candidates += (relative, flip_separators(relative))

    try:
        return any(glob.globmatch(candidate, patterns, flags=GLOB_FLAGS) for candidate in candidates)
    except ValueError as e:
        logger.warning(f"Invalid pattern in allowed files {patterns}: {e}")
        return False
