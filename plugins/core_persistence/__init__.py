# plugins/core_persistence/__init__.py
import os
import logging

from backend.core.contracts import Container, HookManager
from .service import PersistenceService
from .stores import PersistentAssetStore
from .api import persistence_router

logger = logging.getLogger(__name__)

def _create_persistence_service() -> PersistenceService:
    data_dir = os.getenv("ASSETS_DATA_DIR", "assets_data")
    return PersistenceService(data_dir=data_dir)

def _create_asset_store(container: Container) -> PersistentAssetStore:
    return PersistentAssetStore(
        container.resolve("persistence_service"),
        container.resolve("hook_manager"),
    )

async def provide_router(routers: list) -> list:
    routers.append(persistence_router)
    logger.debug("Provided 'persistence_router' to the application.")
    return routers

async def initialize_stores(container: Container):
    """钩子实现: 在所有服务注册后，异步预加载资产存储。"""
    logger.info("Initializing persistent asset store...")
    asset_store: PersistentAssetStore = container.resolve("asset_store")
    await asset_store.initialize()

def register_plugin(container: Container, hook_manager: HookManager):
    logger.info("--> 正在注册 [core_persistence] 插件...")
    container.register(
        "persistence_service", _create_persistence_service, singleton=True
    )
    container.register(
        "asset_store", _create_asset_store, singleton=True
    )
    logger.debug("Registered 'asset_store' with a persistent implementation.")
    hook_manager.add_implementation(
        "collect_api_routers", provide_router, plugin_name="core_persistence"
    )
    hook_manager.add_implementation(
        "services_post_register",
        initialize_stores,
        priority=90,
        plugin_name="core_persistence",
    )
    logger.info("插件 [core_persistence] 注册成功。")
