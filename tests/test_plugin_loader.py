# tests/test_plugin_loader.py

from backend.container import Container
from backend.core.hooks import HookManager
from backend.core.loader import PluginLoader


def _loader(enabled=None) -> tuple[PluginLoader, Container, HookManager]:
    container = Container()
    hook_manager = HookManager(container)
    container.register("container", lambda: container)
    container.register("hook_manager", lambda: hook_manager)
    return PluginLoader(container, hook_manager, enabled=enabled), container, hook_manager


class TestPluginLoader:
    """插件发现与注册顺序。"""

    def test_discovers_all_plugins_in_priority_order(self, data_dir):
        loader, _, _ = _loader()
        assert loader.load_plugins() == ["core_logging", "core_persistence", "core_assets"]

    def test_enabled_filter(self, data_dir):
        loader, container, hook_manager = _loader(enabled=["core_assets", "core_persistence"])

        assert loader.load_plugins() == ["core_persistence", "core_assets"]
        assert container.has("asset_store")
        assert container.has("asset_evaluator")
        for hook in ("before_render", "after_render", "before_script", "before_asset_insert"):
            assert hook_manager.has_implementations(hook)

    def test_nothing_enabled(self):
        loader, container, _ = _loader(enabled=[])
        assert loader.load_plugins() == []
        assert not container.has("asset_store")
