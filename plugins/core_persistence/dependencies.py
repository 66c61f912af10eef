# plugins/core_persistence/dependencies.py

from fastapi import Request
from .stores import PersistentAssetStore

def get_asset_store(request: Request) -> PersistentAssetStore:
    """FastAPI 依赖注入函数，用于从容器中获取资产存储。"""
    return request.app.state.container.resolve("asset_store")
