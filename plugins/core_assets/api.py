# plugins/core_assets/api.py

import hashlib
import logging
from email.utils import format_datetime
from datetime import datetime, timezone
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse, Response

from .contracts import AssetResolverInterface, EncodingMode, RequestContext
from .dependencies import get_asset_resolver, get_file_gateway, get_request_context
from .encoding import content_type_header, guess_mime_type
from .errors import (
    AccessDeniedError,
    AssetNotFoundError,
    AssetFileNotFoundError,
    AssetsError,
    InvalidDirectiveError,
    UnsupportedEncodingError,
)
from .file_gateway import FileGateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assets", tags=["Core-Assets"])


def _to_http_error(e: AssetsError) -> HTTPException:
    if isinstance(e, (AssetNotFoundError, AssetFileNotFoundError)):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, AccessDeniedError):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, (InvalidDirectiveError, UnsupportedEncodingError)):
        return HTTPException(status_code=400, detail=str(e))
    return HTTPException(status_code=404 if e.weak else 500, detail=str(e))


def _etag(content: bytes) -> str:
    return f'W/"{len(content):x}-{hashlib.sha1(content).hexdigest()[:27]}"'


@router.get("/content/{asset_path:path}")
async def get_asset_content(
    asset_path: str,
    download: bool = False,
    context: RequestContext = Depends(get_request_context),
    resolver: AssetResolverInterface = Depends(get_asset_resolver),
):
    """返回资产的原始字节，附带缓存与内容类型头。"""
    try:
        asset = await resolver.resolve(asset_path, EncodingMode.BINARY, context)
    except AssetsError as e:
        logger.warning(f"Unable to get asset content {asset_path}", exc_info=e)
        raise _to_http_error(e)

    content = asset.content if isinstance(asset.content, bytes) else asset.content.encode("utf-8")
    modified = asset.modified or datetime.now(timezone.utc)
    headers = {
        "ETag": _etag(content),
        "Cache-Control": "public, max-age=0",
        "Last-Modified": format_datetime(modified.astimezone(timezone.utc), usegmt=True),
    }
    if download:
        headers["Content-Disposition"] = f"attachment;filename={quote(asset.filename)}"

    return Response(
        content=content,
        media_type=content_type_header(guess_mime_type(asset.filename)),
        headers=headers,
    )


@router.get("/link/{asset_path:path}", response_class=PlainTextResponse)
async def get_asset_link(
    asset_path: str,
    files: FileGateway = Depends(get_file_gateway),
):
    """返回链接在白名单检查后解析出的绝对路径。"""
    try:
        return str(files.link_path(asset_path))
    except AssetsError as e:
        logger.warning(f"Unable to get asset link {asset_path}", exc_info=e)
        raise _to_http_error(e)
