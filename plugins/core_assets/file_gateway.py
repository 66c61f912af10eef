# plugins/core_assets/file_gateway.py

import codecs
import logging
import os
from datetime import datetime, timezone
from pathlib import Path

import aiofiles
import aiofiles.os

from .contracts import AssetsOptions, LinkedFile
from .errors import AccessDeniedError, AssetFileAccessError, AssetFileNotFoundError
from .path_guard import is_path_allowed

logger = logging.getLogger(__name__)


def strip_bom(content: bytes) -> bytes:
    if content.startswith(codecs.BOM_UTF8):
        return content[len(codecs.BOM_UTF8):]
    return content


class FileGateway:
    """所有对磁盘的访问都经过这里，并先由白名单检查。"""

    def __init__(self, options: AssetsOptions):
        self._options = options

    def link_path(self, link: str) -> Path:
        path = Path(link)
        result = path if path.is_absolute() else Path(self._options.root_directory) / path
        result = Path(os.path.normpath(result))

        if not is_path_allowed(self._options.allowed_files, link, str(result), str(self._options.root_directory)):
            raise AccessDeniedError(str(result))

        return result

    async def read_file(self, link: str) -> LinkedFile:
        path = self.link_path(link)
        try:
            async with aiofiles.open(path, mode='rb') as f:
                content = await f.read()
            stat = await aiofiles.os.stat(path)
        except OSError as e:
            logger.debug(f"Failed to read linked file {path}: {e}")
            raise AssetFileNotFoundError(str(path)) from e

        return LinkedFile(
            content=strip_bom(content),
            filename=path.name,
            modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )

    async def write_file(self, link: str, content: bytes) -> Path:
        path = self.link_path(link)
        try:
            async with aiofiles.open(path, mode='wb') as f:
                await f.write(content)
        except OSError as e:
            raise AssetFileAccessError(str(path)) from e
        logger.info(f"Wrote {len(content)} bytes to linked file {path}")
        return path
