"""Application wiring for the supabase gate.

``install_supabase_gate()`` adds the gate to an existing Starlette or
FastAPI app. ``create_app()`` builds a minimal FastAPI app around it.

Usage:
    # Existing app
    from supabase_gate import GateSettings, install_supabase_gate
    install_supabase_gate(app, GateSettings.from_env())

    # Testing (full DI control)
    app = create_app(settings, client_factory=fake_factory)
"""

from __future__ import annotations

from dataclasses import replace

import structlog
from fastapi import FastAPI
from starlette.applications import Starlette

from .middleware import SupabaseGateMiddleware
from .observability.logging import configure_logging, get_logger
from .observability.middleware import RequestIdMiddleware
from .protocols import AuthClientFactory
from .settings import GateSettings

HEALTH_PATH = '/health'


def install_supabase_gate(
    app: Starlette,
    settings: GateSettings,
    *,
    client_factory: AuthClientFactory | None = None,
    logger: structlog.stdlib.BoundLogger | None = None,
) -> None:
    """Add the gate and request-ID middleware to ``app``.

    Raises:
        ValueError: If ``settings.validate()`` reports errors, or no
            ``client_factory`` is given and Supabase credentials are missing.
    """
    errors = settings.validate()
    if client_factory is None and not (settings.supabase_url and settings.supabase_anon_key):
        errors.append('supabase_url and supabase_anon_key are required without a client_factory')
    if errors:
        raise ValueError('Invalid gate settings: ' + '; '.join(errors))

    app.add_middleware(
        SupabaseGateMiddleware,
        settings=settings,
        client_factory=client_factory,
        logger=logger,
    )
    # Added last so it runs first and every gate log line has a request_id.
    app.add_middleware(RequestIdMiddleware)


def create_app(
    settings: GateSettings | None = None,
    *,
    client_factory: AuthClientFactory | None = None,
) -> FastAPI:
    """Build a FastAPI app protected by the gate."""
    settings = settings or GateSettings.from_env()
    if HEALTH_PATH not in settings.passthrough_prefixes:
        settings = replace(
            settings,
            passthrough_prefixes=(*settings.passthrough_prefixes, HEALTH_PATH),
        )
    configure_logging()

    app = FastAPI(title='supabase-gate')
    app.state.settings = settings

    @app.get(HEALTH_PATH)
    async def health():
        return {'status': 'ok'}

    install_supabase_gate(
        app,
        settings,
        client_factory=client_factory,
        logger=get_logger(),
    )
    return app
