"""
Logging for the flow engine, API and CLI.

Modules log through ``logging.getLogger(__name__)``; records are rendered by
structlog. Flow runs bind ``run_id`` and ``mode`` (simulate or execute) as
contextvars, so every line a dispatcher, facade or provider writes during a
run carries them.

Output is JSON by default and a console renderer when running at DEBUG.
"""

import logging
import sys
from typing import List, Optional

import structlog

from .config import settings

# Chatty third-party loggers kept at WARNING
QUIET_LOGGERS = ("uvicorn.access", "httpcore", "httpx")


def _flow_processors() -> List[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def setup_logging(log_level: Optional[str] = None) -> None:
    """Install the structlog formatter on the root logger.

    Args:
        log_level: level name such as ``"DEBUG"``; defaults to ``settings.log_level``.
            Unknown names fall back to INFO.
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)

    processors = _flow_processors()
    if level == logging.DEBUG:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Stdlib records from intentcompass modules get the same processors
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=processors,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
