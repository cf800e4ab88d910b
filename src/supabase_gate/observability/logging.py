"""structlog setup for supabase-gate.

Gate components never configure logging. They receive a logger, bind
``scope=supabase-gate::<component>`` onto it with :func:`scoped`, and
emit snake_case events::

    logger = scoped(get_logger(), 'intercept_handler')
    logger.debug('protected_route_detected', path='/dashboard')

:func:`configure_logging` is called once by the app factory and the CLI.
Every entry carries the current request ID when one is set.
"""

from __future__ import annotations

import logging
import os
import sys
from contextvars import ContextVar

import structlog

LOGGER_PREFIX = "supabase-gate"

request_id_ctx: ContextVar[str | None] = ContextVar("supabase_gate_request_id", default=None)

# Libraries that log every outgoing call or request at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")

_configured = False


def _add_request_id(_logger, _method_name: str, event_dict: dict) -> dict:
    rid = request_id_ctx.get()
    if rid is not None:
        event_dict.setdefault("request_id", rid)
    return event_dict


def _pre_chain() -> list:
    """Processors shared by structlog loggers and foreign stdlib records."""
    return [
        structlog.contextvars.merge_contextvars,
        _add_request_id,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def configure_logging(
    *,
    level: str | None = None,
    json_output: bool | None = None,
) -> None:
    """Route structlog through stdlib logging with a single stdout handler.

    Args:
        level: Root level name. Falls back to ``LOG_LEVEL``, then INFO.
        json_output: JSON lines when true, console rendering otherwise.
            Falls back to ``LOG_FORMAT`` (``json`` unless set to
            ``console``).

    Only the first call has an effect.
    """
    global _configured
    if _configured:
        return
    _configured = True

    level_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    if json_output is None:
        json_output = os.environ.get("LOG_FORMAT", "json") != "console"

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            *_pre_chain(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_pre_chain(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, level_name, logging.INFO))

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name or LOGGER_PREFIX)


def scoped(logger, component: str):
    """Return ``logger`` bound to ``scope=supabase-gate::<component>``."""
    return logger.bind(scope=f"{LOGGER_PREFIX}::{component}")
