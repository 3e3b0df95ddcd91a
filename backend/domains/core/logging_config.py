"""
结构化日志配置

structlog 负责事件字典的加工，渲染交给标准库 logging 的 ProcessorFormatter，
因此领域层用 logging.getLogger(__name__) 写的日志和 API 层用 get_logger()
写的事件日志走同一条输出链路：

- console: 开发时的彩色输出
- json: 部署时一行一个 JSON 事件
- 可选日志文件，始终为 JSON

每条事件都带有 service 字段；请求处理期间还会带上 request_id。
"""

import logging
import os
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import structlog

DEFAULT_SERVICE_NAME = "voice-notes-api"

# 只保留 WARNING 以上的第三方日志器
_NOISY_LOGGERS = ("uvicorn.access", "httpx", "watchfiles")


class LogFormat(str, Enum):
    JSON = "json"
    CONSOLE = "console"


@dataclass
class LogConfig:
    """日志配置"""
    level: str = "INFO"
    format: LogFormat = LogFormat.JSON
    service_name: str = DEFAULT_SERVICE_NAME
    log_file: Optional[Path] = None

    @classmethod
    def from_env(cls, service_name: str = DEFAULT_SERVICE_NAME) -> "LogConfig":
        """从 LOG_LEVEL / LOG_FORMAT / LOG_FILE 环境变量读取"""
        log_file = os.getenv("LOG_FILE")
        return cls(
            level=os.getenv("LOG_LEVEL", "INFO"),
            format=LogFormat.CONSOLE if os.getenv("LOG_FORMAT", "json").lower() == "console" else LogFormat.JSON,
            service_name=service_name,
            log_file=Path(log_file) if log_file else None,
        )

    @property
    def level_no(self) -> int:
        level = logging.getLevelName(self.level.upper())
        return level if isinstance(level, int) else logging.INFO


def _service_name_adder(service_name: str):
    def add_service_name(logger: Any, method_name: str, event_dict: dict) -> dict:
        event_dict.setdefault("service", service_name)
        return event_dict
    return add_service_name


def _pre_chain(config: LogConfig) -> list:
    """structlog 事件和标准库日志共用的处理器"""
    return [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        _service_name_adder(config.service_name),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _formatter(config: LogConfig, fmt: LogFormat) -> logging.Formatter:
    if fmt == LogFormat.JSON:
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )
    return structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=_pre_chain(config),
    )


def configure_logging(config: Optional[LogConfig] = None) -> LogConfig:
    """
    配置结构化日志

    可重复调用，每次都会替换根日志器上的 handler。

    Args:
        config: 日志配置，None 则从环境变量读取

    Returns:
        实际生效的配置
    """
    if config is None:
        config = LogConfig.from_env()

    level = config.level_no

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_pre_chain(config),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(_formatter(config, config.format))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)
    root_logger.setLevel(level)

    if config.log_file is not None:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
        file_handler.setFormatter(_formatter(config, LogFormat.JSON))
        root_logger.addHandler(file_handler)

    logging.getLogger("uvicorn").setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return config


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    获取结构化日志器

    使用示例:
        logger = get_logger(__name__)
        logger.info("note_created", note_id="note_3")
    """
    return structlog.get_logger(name)


def bind_request_context(request_id: str) -> None:
    """请求开始时绑定 request_id，之后该请求内的所有日志都会带上它"""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
