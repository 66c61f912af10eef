# plugins/core_assets/dependencies.py

from typing import Optional

from fastapi import Header, Request

from .contracts import AssetResolverInterface, RequestContext
from .file_gateway import FileGateway


def get_asset_resolver(request: Request) -> AssetResolverInterface:
    return request.app.state.container.resolve("asset_resolver")

def get_file_gateway(request: Request) -> FileGateway:
    return request.app.state.container.resolve("asset_file_gateway")

def get_request_context(
    request: Request,
    x_principal: Optional[str] = Header(default=None),
) -> RequestContext:
    """由 HTTP 请求构建资产解析上下文。主体来自 X-Principal 头（由上游认证层设置）。"""
    return RequestContext(
        principal=x_principal,
        base_url=str(request.base_url).rstrip("/"),
    )
