"""
Structlog 日志配置模块

The SDK only emits events; it never configures logging on import. Host
applications keep their own setup, and the CLI calls ``configure_logging``
so that its log lines go to stderr and leave stdout for results.
"""
import json
import logging
import sys
from typing import IO, Any, Optional

import structlog
from structlog.stdlib import ProcessorFormatter


def _json_dumps(obj, default=None, **kwargs):
    # keep gateway text (item names, RtnMsg) readable
    return json.dumps(obj, ensure_ascii=False, default=default, **kwargs)


def configure_logging(debug: bool = False, stream: Optional[IO[str]] = None) -> None:
    """桥接标准库 logging 到 structlog 处理链。"""
    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]
    renderer = (
        structlog.dev.ConsoleRenderer(colors=False)
        if debug
        else structlog.processors.JSONRenderer(serializer=_json_dumps)
    )

    structlog.configure(
        processors=[*pre_chain, ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
