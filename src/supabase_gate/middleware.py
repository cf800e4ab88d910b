"""Access gate middleware.

Sits in front of the application's routes and, for every routed request:

1. Skips static assets and configured pass-through prefixes entirely.
2. Classifies the path as protected or open (:mod:`supabase_gate.policy`).
3. Resolves the caller's identity through the injected auth client.
4. Redirects anonymous callers of protected routes to the forbidden page
   (303, ``X-Status-Text: 403 Unauthorized``).
5. Dispatches the built-in ``/api/*`` auth endpoints to their handlers.
6. Forwards everything else with ``request.state.user`` set.

A provider failure other than "no session" ends the request with an
empty 500; nothing about the failure is sent to the caller.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Mapping

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Match, Mount
from starlette.staticfiles import StaticFiles
from starlette.types import ASGIApp, Scope

from .auth.client import create_gotrue_client_factory
from .handlers import HandlerOptions, find_auth_handler
from .identity import ProviderError, resolve_identity, user_of
from .observability.logging import get_logger
from .policy import classify
from .protocols import AuthClientFactory
from .redirects import resolve_redirects, set_location
from .responses import empty_response, prepare_response
from .settings import GateSettings

UNAUTHORIZED_TEXT = '403 Unauthorized'


def _targets_static_files(scope: Scope) -> bool:
    """Whether the request is served by a ``StaticFiles`` mount of the app."""
    app = scope.get('app')
    for route in getattr(app, 'routes', ()):
        if isinstance(route, Mount) and isinstance(route.app, StaticFiles):
            match, _ = route.matches(scope)
            if match is Match.FULL:
                return True
    return False


class AccessGate:
    """Per-request access decision and auth endpoint dispatch.

    Args:
        settings: Route policy and redirect configuration.
        client_factory: Creates the identity-provider client for a request.
        logger: Base logger; defaults to the package logger.
    """

    def __init__(
        self,
        settings: GateSettings,
        client_factory: AuthClientFactory,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._settings = settings
        self._client_factory = client_factory
        self._logger = logger if logger is not None else get_logger()
        # Patterns are fixed for the process; redirects are resolved per request.
        self._policy = settings.route_policy()
        self._redirect_overrides: Mapping[str, str] = settings.redirects

    def is_passthrough(self, request: Request) -> bool:
        path = request.url.path
        for prefix in self._settings.passthrough_prefixes:
            if path == prefix or path.startswith(prefix.rstrip('/') + '/'):
                return True
        return _targets_static_files(request.scope)

    async def handle(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        if self.is_passthrough(request):
            return await call_next(request)

        path = request.url.path
        prepared = prepare_response(request, self._logger, 'intercept_handler')
        headers, logger = prepared.headers, prepared.logger

        logger.debug('called', path=path)

        redirects = resolve_redirects(self._redirect_overrides)
        policy = replace(self._policy, redirects=redirects)
        result = classify(path, policy)

        if result.is_protected:
            logger.debug('protected_route_detected', path=path, rule=result.rule)

        client = self._client_factory(request)
        identity = await resolve_identity(client)

        if isinstance(identity, ProviderError):
            logger.error(
                'provider_error',
                path=path,
                code=identity.code,
                status_code=identity.status_code,
                transient=identity.transient,
            )
            response = empty_response(headers, 500)
            client.commit(response)
            return response

        user = user_of(identity)
        logger.debug('identity_resolved', path=path, email=user.email if user else None)

        if result.is_protected and user is None:
            # Redirect instead of a bare 403.
            set_location(headers, prepared.url, redirects.forbidden)
            logger.debug('redirect_unauthorized', location=headers['location'])
            response = empty_response(headers, 303, UNAUTHORIZED_TEXT)
            client.commit(response)
            return response

        request.state.user = user
        request.state.identity = identity
        request.state.supabase_logger = logger

        handler = find_auth_handler(path)
        if handler is not None:
            options = HandlerOptions(
                redirects=redirects,
                client_factory=lambda _request: client,
                logger=self._logger,
            )
            response = await handler(request, options)
            # Error branches of handlers leave refreshed cookies pending.
            client.commit(response)
            return response

        logger.debug('forward', path=path, email=user.email if user else None)
        response = await call_next(request)
        client.commit(response)
        return response


class SupabaseGateMiddleware(BaseHTTPMiddleware):
    """Starlette middleware wrapping :class:`AccessGate`.

    Args:
        app: The ASGI application.
        settings: Gate configuration.
        client_factory: Optional auth client factory. Defaults to GoTrue
            clients for ``settings.supabase_url``.
        logger: Optional base logger.
    """

    def __init__(
        self,
        app: ASGIApp,
        settings: GateSettings,
        client_factory: AuthClientFactory | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        super().__init__(app)
        if client_factory is None:
            if not settings.supabase_url or not settings.supabase_anon_key:
                raise ValueError(
                    'supabase_url and supabase_anon_key are required '
                    'unless a client_factory is given'
                )
            client_factory = create_gotrue_client_factory(
                settings.supabase_url,
                settings.supabase_anon_key,
                cookie_secure=settings.cookie_secure,
            )
        self._gate = AccessGate(settings, client_factory, logger)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        return await self._gate.handle(request, call_next)
