"""Observability infrastructure for supabase-gate.

Provides structured logging and request-ID correlation middleware.

Quick start::

    from supabase_gate.observability import configure_logging, get_logger
    from supabase_gate.observability.middleware import RequestIdMiddleware

    configure_logging()
    app.add_middleware(RequestIdMiddleware)
"""

from .logging import LOGGER_PREFIX, configure_logging, get_logger, request_id_ctx, scoped

__all__ = [
    "LOGGER_PREFIX",
    "configure_logging",
    "get_logger",
    "request_id_ctx",
    "scoped",
]
