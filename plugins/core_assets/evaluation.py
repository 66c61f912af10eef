# plugins/core_assets/evaluation.py

import asyncio
import json
import logging
import re
from typing import List

from .contracts import (
    DIRECTIVE_ENCODINGS,
    AssetEvaluatorInterface,
    AssetResolverInterface,
    Directive,
    EncodingMode,
    RequestContext,
)
from .errors import InvalidDirectiveError

logger = logging.getLogger(__name__)

DIRECTIVE_REGEX = re.compile(r"\{#asset ([^{}]{0,150})\}")
PARAM_SEPARATOR = " @"
MAX_EXPANSION_PASSES = 100


def parse_directive(spec: str) -> Directive:
    """
    解析 `{#asset ...}` 中的内容。

    支持 `name` 和 `name @encoding=<mode>` 两种形式。
    """
    if PARAM_SEPARATOR not in spec:
        return Directive(asset_name=spec)

    asset_name, param_raw = spec.split(PARAM_SEPARATOR, 1)
    parts = param_raw.split("=")
    if len(parts) != 2:
        raise InvalidDirectiveError(
            "Wrong asset param specification, should be {#asset name @encoding=base64}"
        )

    param_name, param_value = parts
    if param_name != "encoding":
        raise InvalidDirectiveError(f"Unsupported param {param_name}")

    supported = [e.value for e in DIRECTIVE_ENCODINGS]
    if param_value not in supported:
        raise InvalidDirectiveError(
            f"Unsupported asset encoding param value {param_value}, "
            f"supported values are {', '.join(supported)}"
        )

    return Directive(asset_name=asset_name, encoding=EncodingMode(param_value))


def contains_directive(text: str) -> bool:
    return DIRECTIVE_REGEX.search(text) is not None


class AssetEvaluator(AssetEvaluatorInterface):
    def __init__(self, resolver: AssetResolverInterface):
        self._resolver = resolver

    async def _resolve_text(self, directive: Directive, request: RequestContext) -> str:
        resolved = await self._resolver.resolve(directive.asset_name, directive.encoding, request)
        if isinstance(resolved.content, bytes):
            return resolved.content.decode("utf-8", errors="replace")
        return resolved.content

    async def _resolve_all(self, directives: List[Directive], request: RequestContext) -> List[str]:
        """并发解析；任何一个失败时取消其余仍在进行的查找，并抛出位置最靠前的错误。"""
        tasks = [asyncio.create_task(self._resolve_text(d, request)) for d in directives]
        try:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        errors = [task.exception() for task in tasks if task in done and not task.cancelled()]
        first_error = next((e for e in errors if e is not None), None)
        if first_error is not None:
            await asyncio.gather(*pending, return_exceptions=True)
            raise first_error
        return [task.result() for task in tasks]

    async def scan_and_replace(self, text: str, request: RequestContext) -> str:
        """单次扫描：解析所有指令，并发解析资产，再按原始位置拼回文本。"""
        matches = list(DIRECTIVE_REGEX.finditer(text))
        if not matches:
            return text

        # 先解析全部指令，格式错误在任何 I/O 之前失败
        directives = [parse_directive(m.group(1)) for m in matches]
        contents = await self._resolve_all(directives, request)

        pieces = []
        cursor = 0
        for match, content in zip(matches, contents):
            pieces.append(text[cursor:match.start()])
            pieces.append(content)
            cursor = match.end()
        pieces.append(text[cursor:])

        logger.debug(f"Replaced assets {json.dumps([d.asset_name for d in directives])}")
        return "".join(pieces)

    async def expand(self, text: str, request: RequestContext) -> str:
        """
        反复扫描直到没有指令，或者达到 MAX_EXPANSION_PASSES 次额外扫描。

        计数器只属于这一次调用；循环引用会在上限处停下，并把剩余的指令原样留在文本中。
        """
        passes = 0
        result = await self.scan_and_replace(text, request)
        while contains_directive(result) and passes < MAX_EXPANSION_PASSES:
            passes += 1
            result = await self.scan_and_replace(result, request)

        if contains_directive(result):
            logger.debug(f"Stopped asset expansion after {passes + 1} passes with directives left in the text.")
        return result
