# plugins/core_persistence/api.py

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Header
from pydantic import BaseModel

from .dependencies import get_asset_store
from .stores import PersistentAssetStore

logger = logging.getLogger(__name__)

persistence_router = APIRouter(
    prefix="/api/persistence",
    tags=["Core-Persistence"]
)

class AssetSummary(BaseModel):
    name: str
    shortid: Optional[str] = None
    link: Optional[str] = None
    is_shared_helper: bool = False

@persistence_router.get("/assets", response_model=List[AssetSummary])
async def list_assets(
    store: PersistentAssetStore = Depends(get_asset_store),
    x_principal: Optional[str] = Header(default=None),
):
    """列出当前主体可见的所有资产（不含内容）。"""
    return [
        AssetSummary(name=r.name, shortid=r.shortid, link=r.link, is_shared_helper=r.is_shared_helper)
        for r in store.values()
        if x_principal is None or r.owner in (None, x_principal)
    ]
