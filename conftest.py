# conftest.py

import pytest
from pathlib import Path
from typing import AsyncGenerator, Callable

from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from asgi_lifespan import LifespanManager

from backend.app import create_app
from backend.container import Container
from backend.core.hooks import HookManager
from plugins import core_assets, core_persistence
from plugins.core_assets.contracts import AssetsOptions, RequestContext


# --- 1. 磁盘上的链接文件 ---

@pytest.fixture
def files_dir(tmp_path: Path) -> Path:
    """链接型资产的根目录，包含一个 test/test.html 文件。"""
    root = tmp_path / "files"
    (root / "test").mkdir(parents=True)
    (root / "test" / "test.html").write_bytes(b"hello")
    return root


@pytest.fixture
def data_dir(tmp_path: Path, monkeypatch) -> Path:
    """资产存储目录，每个测试独立。"""
    path = tmp_path / "data"
    monkeypatch.setenv("ASSETS_DATA_DIR", str(path))
    return path


# --- 2. 服务级 Fixtures (不启动 FastAPI) ---

@pytest.fixture
def container_factory(files_dir: Path, data_dir: Path) -> Callable[..., Container]:
    """
    提供一个工厂：按给定选项组装一个已注册 core_persistence 和 core_assets 的容器。
    默认选项只允许链接 **/test.html。
    """
    def _factory(**option_overrides) -> Container:
        options = AssetsOptions(
            root_directory=files_dir,
            allowed_files=["**/test.html"],
        ).model_copy(update=option_overrides)

        container = Container()
        hook_manager = HookManager(container)
        container.register("container", lambda: container)
        container.register("hook_manager", lambda: hook_manager)
        core_persistence.register_plugin(container, hook_manager)
        core_assets.register_plugin(container, hook_manager)
        container.register("assets_options", lambda: options)
        return container

    return _factory


@pytest.fixture
def assets_container(container_factory: Callable[..., Container]) -> Container:
    return container_factory()


@pytest.fixture
def request_context() -> RequestContext:
    return RequestContext(base_url="http://localhost:5488")


# --- 3. 端到端 API Fixtures ---

@pytest.fixture
def app(files_dir: Path, data_dir: Path, monkeypatch) -> FastAPI:
    """
    创建一个完整加载插件的 FastAPI 应用实例。
    配置通过环境变量传入，与生产环境一致。
    """
    monkeypatch.setenv("ASSETS_ROOT_DIR", str(files_dir))
    monkeypatch.setenv("ASSETS_ALLOWED_FILES", "**/test.html,**/*.png")
    return create_app()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """
    一个正确处理应用生命周期的 AsyncClient：
    LifespanManager 负责触发启动/关闭事件，ASGITransport 把请求直接交给应用。
    """
    async with LifespanManager(app) as manager:
        transport = ASGITransport(app=manager.app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac


@pytest.fixture
def app_container(client: AsyncClient, app: FastAPI) -> Container:
    """client fixture 已经启动了应用，这里直接取出容器。"""
    return app.state.container
