# plugins/core_assets/resolver.py

import logging
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urljoin

from .contracts import (
    AssetResolverInterface,
    AssetsOptions,
    AssetStoreInterface,
    EncodingMode,
    RequestContext,
    ResolvedAsset,
)
from .encoding import encode, is_font, is_image
from .errors import AssetNotFoundError, UnsupportedEncodingError
from .file_gateway import FileGateway

logger = logging.getLogger(__name__)

CONTENT_ROUTE_PREFIX = "assets/content/"


class AssetResolver(AssetResolverInterface):
    """
    把资产名称解析为最终内容。

    查找顺序：资产存储（按 name 或 link 字段），然后在允许时回退到磁盘。
    链接型记录的内容总是通过 FileGateway 读取，因此同样受白名单约束。
    """

    def __init__(self, store: AssetStoreInterface, file_gateway: FileGateway, options: AssetsOptions):
        self._store = store
        self._files = file_gateway
        self._options = options

    def resolve_link(self, name: str, request: Optional[RequestContext] = None) -> str:
        if self._options.root_url_for_links:
            return urljoin(self._options.root_url_for_links, CONTENT_ROUTE_PREFIX + name)

        if request is None or not request.base_url:
            return CONTENT_ROUTE_PREFIX + name

        return f"{request.base_url.rstrip('/')}/{CONTENT_ROUTE_PREFIX}{name}"

    async def resolve(self, name: str, encoding: EncodingMode, request: RequestContext) -> ResolvedAsset:
        encoding = EncodingMode(encoding)

        if encoding == EncodingMode.DATA_URI and not is_image(name) and not is_font(name):
            raise UnsupportedEncodingError(
                "Asset encoded as dataURI needs to have file extension jpeg|jpg|gif|png|svg|woff|ttf|otf|woff2|eot"
            )

        principal = None if self._options.public_access_enabled else request.principal
        assets = await self._store.find({"name": name, "link": name}, principal)

        if not assets:
            if not self._options.search_on_disk_if_not_found_in_store:
                raise AssetNotFoundError(name)

            if encoding == EncodingMode.LINK:
                return ResolvedAsset(content=self.resolve_link(name, request), filename=name)

            linked = await self._files.read_file(name)
            return ResolvedAsset(
                content=encode(linked.content, encoding, linked.filename),
                filename=linked.filename,
                modified=linked.modified,
            )

        asset = assets[0]

        if encoding == EncodingMode.LINK:
            return ResolvedAsset(content=self.resolve_link(asset.link or name, request), filename=name)

        if asset.link:
            linked = await self._files.read_file(asset.link)
            return ResolvedAsset(
                content=encode(linked.content, encoding, linked.filename),
                filename=linked.filename,
                modified=linked.modified,
            )

        return ResolvedAsset(
            content=encode(asset.content or b"", encoding, asset.name),
            filename=asset.name,
            modified=asset.modification_date or datetime.now(timezone.utc),
        )
