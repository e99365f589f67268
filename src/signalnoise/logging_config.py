"""structlog 配置模块

dev 模式：控制台可读输出
json 模式：结构化 JSON 输出（datetime / timedelta 统一转为字符串）
"""

import logging
import os
from datetime import date, datetime, timedelta
from typing import Any

import structlog


def _stringify_temporal(
    _logger: Any, _method: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """将日志字段中的时间值转为 ISO 字符串 / 秒数"""
    for key, value in event_dict.items():
        if isinstance(value, datetime | date):
            event_dict[key] = value.isoformat()
        elif isinstance(value, timedelta):
            event_dict[key] = int(value.total_seconds())
    return event_dict


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """初始化 structlog 配置

    参数为空时读取环境变量：
    - SIGNALNOISE_LOG_FORMAT: "json" 或 "dev"（默认）
    - SIGNALNOISE_LOG_LEVEL: 日志级别（默认 INFO）
    """
    log_format = log_format or os.environ.get("SIGNALNOISE_LOG_FORMAT", "dev")
    log_level = log_level or os.environ.get("SIGNALNOISE_LOG_LEVEL", "INFO")

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _stringify_temporal,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def bind_day_context(day: date) -> None:
    """将当前处理的日期绑定到日志上下文（CLI / 后台任务使用）"""
    structlog.contextvars.bind_contextvars(day=day.isoformat())
