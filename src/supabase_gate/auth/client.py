"""Async Supabase Auth (GoTrue) client bound to one request's cookies.

This is the single point of Supabase HTTP interaction. One
:class:`GoTrueClient` is created per request; it reads the session from a
:class:`~supabase_gate.auth.storage.CookieSessionStorage` and queues
cookie updates that :meth:`GoTrueClient.commit` writes onto the response.
"""

from __future__ import annotations

from typing import Any, Mapping

import httpx
from starlette.responses import Response

from .errors import (
    AuthApiError,
    AuthInvalidResponseError,
    AuthRetryableFetchError,
    AuthSessionMissingError,
)
from .models import AuthSession, AuthUser
from .storage import CookieSessionStorage

# One pooled client per process unless the caller injects its own.
_shared_async_client: httpx.AsyncClient | None = None


def _get_shared_async_client() -> httpx.AsyncClient:
    global _shared_async_client
    if _shared_async_client is None:
        _shared_async_client = httpx.AsyncClient()
    return _shared_async_client


def _parse_error(resp: httpx.Response) -> AuthApiError:
    message = resp.text or resp.reason_phrase
    code: str | None = None

    try:
        payload = resp.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        # Newer GoTrue releases use code/msg, older ones error/error_description.
        code = payload.get('error_code') or payload.get('code') or payload.get('error')
        message = (
            payload.get('msg')
            or payload.get('message')
            or payload.get('error_description')
            or message
        )
        if code is not None and not isinstance(code, str):
            code = str(code)

    # Older releases report wrong passwords as a bare invalid_grant.
    if code == 'invalid_grant' and 'invalid login credentials' in str(message).lower():
        code = 'invalid_credentials'

    return AuthApiError(status_code=resp.status_code, message=str(message), code=code)


class GoTrueClient:
    """Minimal async GoTrue client with cookie session persistence.

    Args:
        supabase_url: Supabase project URL (e.g. ``https://xyz.supabase.co``).
        api_key: The project's anon/publishable key.
        storage: Session storage for the current request.
        http_client: Optional ``httpx.AsyncClient`` (shared one by default).
        timeout_seconds: Per-call timeout.
    """

    def __init__(
        self,
        *,
        supabase_url: str,
        api_key: str,
        storage: CookieSessionStorage,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        if not supabase_url:
            raise ValueError('supabase_url is required')
        if not api_key:
            raise ValueError('api_key is required')

        self._supabase_url = supabase_url.rstrip('/')
        self._api_key = api_key
        self._storage = storage
        self._timeout_seconds = float(timeout_seconds)
        self._client = http_client or _get_shared_async_client()

    @property
    def base_auth_url(self) -> str:
        return f'{self._supabase_url}/auth/v1'

    @property
    def storage(self) -> CookieSessionStorage:
        return self._storage

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        # Never log these headers.
        return {
            'apikey': self._api_key,
            'Authorization': f'Bearer {access_token or self._api_key}',
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json: Any = None,
        access_token: str | None = None,
    ) -> httpx.Response:
        try:
            resp = await self._client.request(
                method,
                f'{self.base_auth_url}{path}',
                params=params,
                json=json,
                headers=self._headers(access_token),
                timeout=self._timeout_seconds,
            )
        except httpx.TransportError as exc:
            raise AuthRetryableFetchError(
                status_code=0,
                message=f'auth API unreachable: {type(exc).__name__}',
                code='fetch_failed',
            ) from exc

        if resp.status_code >= 400:
            raise _parse_error(resp)
        return resp

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise AuthInvalidResponseError(
                status_code=resp.status_code,
                message='auth API returned invalid JSON',
                code='invalid_json',
            ) from exc

    # ── Session handling ─────────────────────────────────────────────

    async def _refresh(self, session: AuthSession) -> AuthSession:
        try:
            resp = await self._request(
                'POST',
                '/token',
                params={'grant_type': 'refresh_token'},
                json={'refresh_token': session.refresh_token},
            )
        except AuthApiError as exc:
            if 400 <= exc.status_code < 500:
                # Refresh token revoked or already used: the session is gone.
                self._storage.clear()
                raise AuthSessionMissingError() from exc
            raise

        refreshed = AuthSession.from_payload(self._json(resp))
        self._storage.save(refreshed)
        return refreshed

    async def get_session(self) -> AuthSession | None:
        """Return the current session, refreshing it when expired."""
        session = self._storage.load()
        if session is None:
            return None
        if session.is_expired():
            session = await self._refresh(session)
        return session

    # ── Operations ───────────────────────────────────────────────────

    async def get_user(self) -> AuthUser:
        """Return the user of the current session.

        Raises:
            AuthSessionMissingError: No session cookie is present.
            AuthError: The auth API rejected the session or failed.
        """
        session = await self.get_session()
        if session is None:
            raise AuthSessionMissingError()

        resp = await self._request('GET', '/user', access_token=session.access_token)
        return AuthUser.from_payload(self._json(resp))

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        resp = await self._request(
            'POST',
            '/token',
            params={'grant_type': 'password'},
            json={'email': email, 'password': password},
        )
        session = AuthSession.from_payload(self._json(resp))
        self._storage.save(session)
        return session

    async def sign_up(self, email: str, password: str) -> AuthUser:
        resp = await self._request(
            'POST',
            '/signup',
            json={'email': email, 'password': password},
        )
        payload = self._json(resp)
        if isinstance(payload, dict) and payload.get('access_token'):
            # Projects without email confirmation sign the user in right away.
            session = AuthSession.from_payload(payload)
            self._storage.save(session)
            if session.user is not None:
                return session.user
        return AuthUser.from_payload(payload)

    async def sign_out(self) -> None:
        session = self._storage.load()
        try:
            if session is not None:
                await self._request('POST', '/logout', access_token=session.access_token)
        except AuthApiError as exc:
            # Already invalidated server side; clearing the cookies is enough.
            if exc.status_code not in (401, 403, 404):
                raise
        finally:
            self._storage.clear()

    async def reset_password_for_email(self, email: str) -> None:
        await self._request('POST', '/recover', json={'email': email})

    async def verify_otp(self, type: str, token_hash: str) -> AuthSession | None:
        resp = await self._request(
            'POST',
            '/verify',
            json={'type': type, 'token_hash': token_hash},
        )
        payload = self._json(resp)
        if isinstance(payload, dict) and payload.get('access_token'):
            session = AuthSession.from_payload(payload)
            self._storage.save(session)
            return session
        return None

    def commit(self, response: Response) -> None:
        """Write pending session cookie changes onto ``response``."""
        self._storage.apply(response)


def create_gotrue_client_factory(
    supabase_url: str,
    api_key: str,
    *,
    cookie_secure: bool = False,
    http_client: httpx.AsyncClient | None = None,
    timeout_seconds: float = 30.0,
):
    """Return an ``AuthClientFactory`` producing per-request GoTrue clients."""

    def factory(request) -> GoTrueClient:
        storage = CookieSessionStorage.for_request(
            request, supabase_url, secure=cookie_secure,
        )
        return GoTrueClient(
            supabase_url=supabase_url,
            api_key=api_key,
            storage=storage,
            http_client=http_client,
            timeout_seconds=timeout_seconds,
        )

    return factory

