"""Application lifecycle event handlers.

使用 ServiceRegistry 统一管理生命周期。
"""

from typing import Callable

from app.core.config import get_settings
from domains.core import get_service_registry, initialize_core_services, register_core_services
from domains.core.logging_config import get_logger

logger = get_logger(__name__)


def create_start_handler() -> Callable:
    """Create startup event handler."""

    async def start_app() -> None:
        logger.info("api_starting", component="api")
        settings = get_settings()

        # 注册并初始化核心服务，存储层初始化失败时直接中止启动
        registry = register_core_services(
            data_dir=settings.DATA_DIR,
            notes_box_name=settings.NOTES_BOX_NAME,
        )
        await initialize_core_services(registry)

        note_store = registry.get("note_store")
        logger.info(
            "note_store_initialized",
            component="note_store",
            path=str(note_store.path),
            total_notes=note_store.count(),
        )

        logger.info(
            "services_initialized",
            component="registry",
            services=registry.started_services,
        )
        logger.info("api_started", component="api", status="success")

    return start_app


def create_stop_handler() -> Callable:
    """Create shutdown event handler."""

    async def stop_app() -> None:
        logger.info("api_stopping", component="api")

        try:
            registry = get_service_registry()
            await registry.shutdown()
        except Exception as e:
            logger.warning("service_registry_stop_error", component="registry", error=str(e))

        logger.info("api_stopped", component="api", status="success")

    return stop_app
