"""Typed views over GoTrue user and session payloads."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

import jwt

from .errors import AuthInvalidResponseError

# Refresh this many seconds before the access token actually expires.
EXPIRY_MARGIN_SECONDS = 10


@dataclass(frozen=True, slots=True)
class AuthUser:
    """The authenticated user as reported by the auth API.

    Attributes:
        id: The Supabase ``auth.users`` UUID.
        email: Email address, empty for phone-only users.
        role: Supabase role (typically ``authenticated``).
        raw: Full user payload for downstream use.
    """

    id: str
    email: str = ''
    role: str = 'authenticated'
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> AuthUser:
        if not isinstance(payload, dict) or not payload.get('id'):
            raise AuthInvalidResponseError(
                status_code=500,
                message='auth response did not contain a user',
                code='invalid_user_payload',
            )
        return cls(
            id=str(payload['id']),
            email=str(payload.get('email') or ''),
            role=str(payload.get('role') or 'authenticated'),
            raw=payload,
        )


def _token_expiry(access_token: str) -> int | None:
    # Signature verification is the auth API's job; only ``exp`` is read here.
    try:
        claims = jwt.decode(access_token, options={'verify_signature': False})
    except jwt.InvalidTokenError:
        return None
    exp = claims.get('exp')
    return int(exp) if isinstance(exp, (int, float)) else None


@dataclass(frozen=True, slots=True)
class AuthSession:
    """An access/refresh token pair plus the user it belongs to."""

    access_token: str
    refresh_token: str
    expires_at: int | None = None
    token_type: str = 'bearer'
    user: AuthUser | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> AuthSession:
        if (
            not isinstance(payload, dict)
            or not payload.get('access_token')
            or not payload.get('refresh_token')
        ):
            raise AuthInvalidResponseError(
                status_code=500,
                message='auth response did not contain a session',
                code='invalid_session_payload',
            )

        expires_at = payload.get('expires_at')
        if not isinstance(expires_at, (int, float)):
            expires_in = payload.get('expires_in')
            if isinstance(expires_in, (int, float)):
                expires_at = int(time.time()) + int(expires_in)
            else:
                expires_at = _token_expiry(payload['access_token'])

        user_payload = payload.get('user')
        user = AuthUser.from_payload(user_payload) if user_payload else None

        raw = dict(payload)
        if expires_at is not None:
            raw['expires_at'] = int(expires_at)

        return cls(
            access_token=payload['access_token'],
            refresh_token=payload['refresh_token'],
            expires_at=int(expires_at) if expires_at is not None else None,
            token_type=payload.get('token_type') or 'bearer',
            user=user,
            raw=raw,
        )

    def is_expired(self, now: float | None = None) -> bool:
        if self.expires_at is None:
            return False
        now = time.time() if now is None else now
        return self.expires_at - EXPIRY_MARGIN_SECONDS <= now

    def to_payload(self) -> dict[str, Any]:
        return dict(self.raw)
