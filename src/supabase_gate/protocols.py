"""Provider protocol interfaces for dependency injection.

The gate never talks to Supabase directly. It asks an
:data:`AuthClientFactory` for a per-request :class:`AuthClient`, which
lets tests swap in an in-memory fake and keeps the HTTP client in one place
(:mod:`supabase_gate.auth.client`).
"""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

from starlette.requests import Request
from starlette.responses import Response

from .auth.models import AuthSession, AuthUser


@runtime_checkable
class AuthClient(Protocol):
    """Identity provider operations, bound to one request's session cookies.

    Every operation raises :class:`~supabase_gate.auth.errors.AuthError`
    on failure. ``commit`` writes pending cookie changes once; calling it
    again without new changes writes nothing.
    """

    async def get_user(self) -> AuthUser: ...
    async def sign_in_with_password(self, email: str, password: str) -> AuthSession: ...
    async def sign_up(self, email: str, password: str) -> AuthUser: ...
    async def sign_out(self) -> None: ...
    async def reset_password_for_email(self, email: str) -> None: ...
    async def verify_otp(self, type: str, token_hash: str) -> AuthSession | None: ...
    def commit(self, response: Response) -> None: ...


AuthClientFactory = Callable[[Request], AuthClient]
