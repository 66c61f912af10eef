# backend/container.py

import logging
import threading
from contextvars import ContextVar
from typing import Dict, Any, Callable, FrozenSet

from backend.core.contracts import Container as ContainerInterface

logger = logging.getLogger(__name__)

# 解析栈绑定到当前上下文（线程或 asyncio 任务），而不是容器实例
_resolution_stack: ContextVar[FrozenSet[str]] = ContextVar("container_resolution_stack", default=frozenset())


class Container(ContainerInterface):
    """服务容器：按名称注册工厂，按需创建实例，并检测循环依赖。"""
    def __init__(self):
        self._factories: Dict[str, Callable] = {}
        self._singletons: Dict[str, bool] = {}
        self._instances: Dict[str, Any] = {}
        self._lock = threading.RLock()

    def register(self, name: str, factory: Callable, singleton: bool = True) -> None:
        if name in self._factories:
            logger.warning(f"Overwriting service registration for '{name}'")
            self._instances.pop(name, None)
        self._factories[name] = factory
        self._singletons[name] = singleton

    def has(self, name: str) -> bool:
        return name in self._factories

    def _build(self, name: str) -> Any:
        factory = self._factories[name]
        try:
            return factory(self)
        except TypeError:
            # 允许无参工厂，例如 lambda: SomeService()
            return factory()

    def resolve(self, name: str) -> Any:
        """
        获取一个服务实例。
        单例在第一次解析时创建并缓存；非单例每次都调用工厂。
        """
        stack = _resolution_stack.get()
        if name in stack:
            path = " -> ".join(sorted(stack) + [name])
            raise RuntimeError(f"Circular dependency detected: {path}")

        token = _resolution_stack.set(stack | {name})
        try:
            if name not in self._factories:
                raise ValueError(f"Service '{name}' not found in container.")

            if not self._singletons.get(name, True):
                return self._build(name)

            if name in self._instances:
                return self._instances[name]

            with self._lock:
                if name not in self._instances:
                    self._instances[name] = self._build(name)
                    logger.debug(f"Resolved service '{name}'. Singleton: True")
                return self._instances[name]
        finally:
            _resolution_stack.reset(token)
