"""
服务生命周期管理

进程内只有一个 ServiceRegistry，持有所有服务的工厂函数：

- get(): 首次访问时创建实例（先创建依赖）
- startup(): 按依赖顺序创建服务并执行异步启动钩子（例如存储层 initialize）
- shutdown(): 按创建的逆序执行清理

测试中用 reset_service_registry() 换一个干净的注册表，
或用 set() 直接注入替身。

使用示例:
    registry = register_core_services(data_dir="data")
    await initialize_core_services(registry)

    note_service = registry.get("note_service")

    await registry.shutdown()
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ServiceDefinition:
    """服务定义"""
    name: str
    factory: Callable[[], Any]
    dependencies: list[str] = field(default_factory=list)
    on_startup: Callable[[Any], Awaitable[None]] | None = None
    cleanup: Callable[[Any], Any] | None = None
    instance: Any | None = None
    started: bool = False

    @property
    def created(self) -> bool:
        return self.instance is not None


class ServiceRegistry:
    """服务注册表"""

    def __init__(self):
        self._services: dict[str, ServiceDefinition] = {}
        self._created_order: list[str] = []

    def register(
        self,
        name: str,
        factory: Callable[[], T],
        dependencies: list[str] | None = None,
        on_startup: Callable[[T], Awaitable[None]] | None = None,
        cleanup: Callable[[T], Any] | None = None,
    ) -> "ServiceRegistry":
        """
        注册服务

        Args:
            name: 服务名称
            factory: 无参工厂函数
            dependencies: 需要先创建的服务
            on_startup: 异步启动钩子，startup() 时调用一次
            cleanup: 清理函数，可以返回协程；未提供时调用实例的 close()

        Returns:
            self，支持链式调用
        """
        if name in self._services:
            logger.warning(f"服务 {name} 已注册，将被覆盖")

        self._services[name] = ServiceDefinition(
            name=name,
            factory=factory,
            dependencies=dependencies or [],
            on_startup=on_startup,
            cleanup=cleanup,
        )
        return self

    def get(self, name: str) -> Any:
        """
        获取服务实例，首次访问时创建

        Raises:
            KeyError: 服务未注册
        """
        definition = self._definition(name)
        if definition.created:
            return definition.instance

        for dep_name in definition.dependencies:
            self.get(dep_name)

        try:
            definition.instance = definition.factory()
        except Exception as e:
            logger.error(f"服务 {name} 创建失败: {e}")
            raise

        self._created_order.append(name)
        logger.debug(f"服务 {name} 已创建")
        return definition.instance

    def set(self, name: str, instance: Any) -> None:
        """直接注入服务实例（视为已启动）"""
        if name not in self._services:
            self._services[name] = ServiceDefinition(name=name, factory=lambda: instance)

        definition = self._services[name]
        definition.instance = instance
        definition.started = True
        if name not in self._created_order:
            self._created_order.append(name)

    async def startup(self) -> None:
        """
        创建所有已注册服务并执行启动钩子

        钩子失败时异常直接抛出，由调用方决定是否中止启动。
        重复调用只会执行尚未启动的服务。
        """
        for name in list(self._services):
            self.get(name)

        for name in list(self._created_order):
            definition = self._services[name]
            if definition.started:
                continue
            if definition.on_startup is not None:
                await definition.on_startup(definition.instance)
            definition.started = True
            logger.debug(f"服务 {name} 已启动")

    def reset(self, name: str) -> None:
        """同步清理单个服务并标记为未创建"""
        definition = self._services.get(name)
        if definition is None or not definition.created:
            return

        result = self._run_cleanup(definition)
        if inspect.iscoroutine(result):
            result.close()
            logger.warning(f"服务 {name} 的清理函数是异步的，reset() 中已跳过")
        self._forget(definition)

    def reset_all(self) -> None:
        for name in reversed(self._created_order.copy()):
            self.reset(name)

    async def shutdown(self) -> None:
        """按创建的逆序清理所有服务"""
        logger.info("开始关闭所有服务...")

        for name in reversed(self._created_order.copy()):
            definition = self._services[name]
            result = self._run_cleanup(definition)
            if inspect.iscoroutine(result):
                try:
                    await result
                except Exception as e:
                    logger.warning(f"服务 {name} 异步清理失败: {e}")
            self._forget(definition)
            logger.debug(f"服务 {name} 已关闭")

        logger.info("所有服务已关闭")

    def _definition(self, name: str) -> ServiceDefinition:
        if name not in self._services:
            raise KeyError(f"服务未注册: {name}")
        return self._services[name]

    def _run_cleanup(self, definition: ServiceDefinition) -> Any:
        """执行清理，返回值可能是协程"""
        instance = definition.instance
        try:
            if definition.cleanup is not None:
                return definition.cleanup(instance)
            if hasattr(instance, "close"):
                return instance.close()
        except Exception as e:
            logger.warning(f"服务 {definition.name} 清理失败: {e}")
        return None

    def _forget(self, definition: ServiceDefinition) -> None:
        definition.instance = None
        definition.started = False
        if definition.name in self._created_order:
            self._created_order.remove(definition.name)

    @property
    def registered_services(self) -> list[str]:
        return list(self._services)

    @property
    def initialized_services(self) -> list[str]:
        """已创建的服务，按创建顺序"""
        return list(self._created_order)

    @property
    def started_services(self) -> list[str]:
        return [n for n in self._created_order if self._services[n].started]

    def __contains__(self, name: str) -> bool:
        return name in self._services


# ==================== 全局注册表 ====================

_registry: ServiceRegistry | None = None


def get_service_registry() -> ServiceRegistry:
    """获取全局服务注册表"""
    global _registry
    if _registry is None:
        _registry = ServiceRegistry()
    return _registry


def reset_service_registry() -> None:
    """丢弃全局注册表（用于测试），已创建的服务会先被清理"""
    global _registry
    if _registry is not None:
        _registry.reset_all()
    _registry = ServiceRegistry()


# ==================== 核心服务 ====================

def register_core_services(
    data_dir: Path | str,
    notes_box_name: str | None = None,
) -> ServiceRegistry:
    """
    注册笔记存储和笔记服务

    Args:
        data_dir: 数据目录（Settings.DATA_DIR）
        notes_box_name: 笔记存储盒名称
    """
    registry = get_service_registry()

    def _create_note_store():
        from domains.note_hub.core.store import NoteStore
        return NoteStore(data_dir=data_dir, box_name=notes_box_name)

    def _create_note_service():
        from domains.note_hub.services import NoteService
        return NoteService(registry.get("note_store"))

    registry.register(
        "note_store",
        _create_note_store,
        on_startup=lambda store: store.initialize(),
    )
    registry.register(
        "note_service",
        _create_note_service,
        dependencies=["note_store"],
    )

    logger.info(f"已注册 {len(registry.registered_services)} 个服务")
    return registry


async def initialize_core_services(registry: ServiceRegistry) -> None:
    """创建核心服务并初始化笔记存储（进程启动时调用一次）"""
    await registry.startup()


__all__ = [
    "ServiceRegistry",
    "ServiceDefinition",
    "get_service_registry",
    "reset_service_registry",
    "register_core_services",
    "initialize_core_services",
]
