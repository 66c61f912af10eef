# plugins/core_assets/listeners.py

import asyncio
import logging
import posixpath
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from backend.core.contracts import Container
from .contracts import (
    AssetEvaluatorInterface,
    AssetRecord,
    AssetResolverInterface,
    AssetStoreInterface,
    EncodingMode,
    RenderRequest,
    RequestContext,
    ScriptDefinition,
)
from .file_gateway import FileGateway

logger = logging.getLogger(__name__)


# --- 渲染生命周期钩子 ---

async def _collect_shared_helpers(request: RenderRequest, container: Container) -> None:
    store: AssetStoreInterface = container.resolve("asset_store")
    resolver: AssetResolverInterface = container.resolve("asset_resolver")

    shared = await store.find({"is_shared_helper": True}, request.context.principal)
    if shared and isinstance(request.template.helpers, dict):
        logger.warning("Cannot add shared helpers when passing helpers as object")
        return

    contents = await asyncio.gather(
        *(resolver.resolve(a.name, EncodingMode.UTF8, request.context) for a in shared)
    )
    helpers = request.template.helpers or ""
    for resolved in contents:
        if resolved.content not in helpers:
            helpers += "\n" + resolved.content
    request.template.helpers = helpers


async def expand_template_assets(request: RenderRequest, container: Container) -> RenderRequest:
    """before_render：合并共享 helper 资产，然后展开模板内容和 helpers。"""
    evaluator: AssetEvaluatorInterface = container.resolve("asset_evaluator")

    await _collect_shared_helpers(request, container)

    request.template.content = await evaluator.expand(request.template.content, request.context)
    if request.template.helpers and isinstance(request.template.helpers, str):
        request.template.helpers = await evaluator.expand(request.template.helpers, request.context)
    return request


async def expand_rendered_output(content: bytes, request: RequestContext, container: Container) -> bytes:
    """after_render：模板引擎执行后再展开一次，支持由模板动态拼出的资产名。"""
    evaluator: AssetEvaluatorInterface = container.resolve("asset_evaluator")
    result = await evaluator.expand(content.decode("utf-8", errors="replace"), request)
    return result.encode("utf-8")


async def expand_script_assets(script: ScriptDefinition, request: RequestContext, container: Container) -> ScriptDefinition:
    evaluator: AssetEvaluatorInterface = container.resolve("asset_evaluator")
    script.script = await evaluator.expand(script.script, request)
    return script


# --- 资产存储钩子 ---

async def prepare_asset_insert(record: AssetRecord, container: Container) -> AssetRecord:
    """before_asset_insert：补全元数据；链接型资产必须指向一个可读且被允许的文件。"""
    record.force_update = False
    record.modification_date = datetime.now(timezone.utc)

    if not record.shortid:
        record.shortid = uuid4().hex[:7]

    if record.link:
        files: FileGateway = container.resolve("asset_file_gateway")
        record.name = posixpath.basename(record.link.replace("\\", "/"))
        await files.read_file(record.link)

    return record


async def prepare_asset_update(
    changes: Dict[str, Any],
    container: Container,
    record: Optional[AssetRecord] = None,
) -> Dict[str, Any]:
    """before_asset_update：force_update 时把内容写回链接的文件，而不是存入存储。"""
    changes["modification_date"] = datetime.now(timezone.utc)

    if changes.get("force_update") and changes.get("link"):
        files: FileGateway = container.resolve("asset_file_gateway")
        content = changes.get("content") or b""
        if isinstance(content, str):
            content = content.encode("utf-8")
        await files.write_file(changes["link"], content)
        changes.pop("content", None)

    changes.pop("force_update", None)
    return changes
