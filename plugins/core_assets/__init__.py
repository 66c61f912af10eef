# plugins/core_assets/__init__.py

import logging
from typing import List

from fastapi import APIRouter

from backend.core.contracts import Container, HookManager
from .contracts import AssetsOptions
from .file_gateway import FileGateway
from .resolver import AssetResolver
from .evaluation import AssetEvaluator
from .listeners import (
    expand_rendered_output,
    expand_script_assets,
    expand_template_assets,
    prepare_asset_insert,
    prepare_asset_update,
)
from .api import router as assets_router

logger = logging.getLogger(__name__)

PLUGIN_NAME = "core_assets"

# --- 服务工厂 ---
def _create_file_gateway(container: Container) -> FileGateway:
    return FileGateway(container.resolve("assets_options"))

def _create_asset_resolver(container: Container) -> AssetResolver:
    return AssetResolver(
        store=container.resolve("asset_store"),
        file_gateway=container.resolve("asset_file_gateway"),
        options=container.resolve("assets_options"),
    )

def _create_asset_evaluator(container: Container) -> AssetEvaluator:
    return AssetEvaluator(container.resolve("asset_resolver"))

# --- 钩子实现 ---
async def provide_router(routers: List[APIRouter]) -> List[APIRouter]:
    routers.append(assets_router)
    logger.debug("Provided 'assets_router' to the application.")
    return routers

async def announce_public_route(container: Container):
    options: AssetsOptions = container.resolve("assets_options")
    if options.public_access_enabled:
        logger.info("Assets public access is enabled; '/assets' is served without principal scoping.")

# --- 主注册函数 ---
def register_plugin(container: Container, hook_manager: HookManager):
    logger.info(f"--> 正在注册 [{PLUGIN_NAME}] 插件...")

    container.register("assets_options", AssetsOptions.from_env, singleton=True)
    container.register("asset_file_gateway", _create_file_gateway, singleton=True)
    container.register("asset_resolver", _create_asset_resolver, singleton=True)
    container.register("asset_evaluator", _create_asset_evaluator, singleton=True)

    hooks = {
        "before_render": expand_template_assets,
        "after_render": expand_rendered_output,
        "before_script": expand_script_assets,
        "before_asset_insert": prepare_asset_insert,
        "before_asset_update": prepare_asset_update,
        "collect_api_routers": provide_router,
        "services_post_register": announce_public_route,
    }
    for hook_name, implementation in hooks.items():
        hook_manager.add_implementation(hook_name, implementation, plugin_name=PLUGIN_NAME)

    logger.info(f"插件 [{PLUGIN_NAME}] 注册成功。")
