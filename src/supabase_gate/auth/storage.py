"""Cookie-backed session storage compatible with ``@supabase/ssr``.

The session JSON is stored as ``base64-<base64url(json)>`` in the cookie
``sb-<project-ref>-auth-token``. Values longer than
:data:`MAX_CHUNK_SIZE` are split over ``<name>.0``, ``<name>.1``, ...

Changes are queued and only written when :meth:`CookieSessionStorage.apply`
is called with the outgoing response, so the same storage can be used for
both reading the request and writing the response.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Mapping
from urllib.parse import urlsplit

from starlette.requests import Request
from starlette.responses import Response

from .errors import AuthInvalidResponseError
from .models import AuthSession

# ── Constants ─────────────────────────────────────────────────────────

BASE64_PREFIX = 'base64-'
MAX_CHUNK_SIZE = 3180
COOKIE_MAX_AGE_SECONDS = 400 * 24 * 60 * 60
COOKIE_PATH = '/'
COOKIE_SAMESITE = 'lax'


def cookie_name_for(supabase_url: str) -> str:
    """Return the auth cookie name for a Supabase project URL."""
    host = urlsplit(supabase_url).hostname or ''
    project_ref = host.split('.')[0] if host else 'local'
    return f'sb-{project_ref}-auth-token'


def _encode(session: AuthSession) -> str:
    raw = json.dumps(session.to_payload(), separators=(',', ':')).encode('utf-8')
    return BASE64_PREFIX + base64.urlsafe_b64encode(raw).decode('ascii').rstrip('=')


def _decode(value: str) -> dict:
    if value.startswith(BASE64_PREFIX):
        data = value[len(BASE64_PREFIX):]
        data += '=' * (-len(data) % 4)
        text = base64.urlsafe_b64decode(data.encode('ascii')).decode('utf-8')
    else:
        text = value
    return json.loads(text)


def _chunk(value: str, size: int = MAX_CHUNK_SIZE) -> list[str]:
    return [value[i:i + size] for i in range(0, len(value), size)] or ['']


class CookieSessionStorage:
    """Read the auth session from request cookies and queue cookie updates.

    Args:
        cookies: Cookies sent with the request.
        cookie_name: Base cookie name (see :func:`cookie_name_for`).
        secure: Whether written cookies get the ``Secure`` flag.
    """

    def __init__(
        self,
        cookies: Mapping[str, str],
        cookie_name: str,
        *,
        secure: bool = False,
        max_age: int = COOKIE_MAX_AGE_SECONDS,
    ) -> None:
        self._cookies = dict(cookies)
        self._cookie_name = cookie_name
        self._secure = secure
        self._max_age = max_age
        self._pending_set: dict[str, str] = {}
        self._pending_delete: set[str] = set()

    @classmethod
    def for_request(
        cls,
        request: Request,
        supabase_url: str,
        *,
        secure: bool = False,
    ) -> CookieSessionStorage:
        return cls(request.cookies, cookie_name_for(supabase_url), secure=secure)

    @property
    def cookie_name(self) -> str:
        return self._cookie_name

    @property
    def has_pending_changes(self) -> bool:
        return bool(self._pending_set or self._pending_delete)

    def _existing_names(self) -> list[str]:
        prefix = f'{self._cookie_name}.'
        return [
            name for name in self._cookies
            if name == self._cookie_name
            or (name.startswith(prefix) and name[len(prefix):].isdigit())
        ]

    def _raw_value(self) -> str | None:
        if self._cookie_name in self._cookies:
            return self._cookies[self._cookie_name]

        parts: list[str] = []
        index = 0
        while f'{self._cookie_name}.{index}' in self._cookies:
            parts.append(self._cookies[f'{self._cookie_name}.{index}'])
            index += 1
        return ''.join(parts) if parts else None

    def load(self) -> AuthSession | None:
        """Return the stored session, or None when absent or unreadable."""
        value = self._raw_value()
        if not value:
            return None
        try:
            return AuthSession.from_payload(_decode(value))
        except (ValueError, binascii.Error, UnicodeDecodeError, AuthInvalidResponseError):
            return None

    def save(self, session: AuthSession) -> None:
        chunks = _chunk(_encode(session))
        if len(chunks) == 1:
            new_values = {self._cookie_name: chunks[0]}
        else:
            new_values = {
                f'{self._cookie_name}.{i}': chunk for i, chunk in enumerate(chunks)
            }

        self._pending_set = new_values
        self._pending_delete = {
            name for name in self._existing_names() if name not in new_values
        }
        self._cookies = {
            name: value for name, value in self._cookies.items()
            if name not in self._pending_delete
        }
        self._cookies.update(new_values)

    def clear(self) -> None:
        self._pending_delete = set(self._existing_names()) | set(self._pending_set)
        self._pending_set = {}
        for name in self._pending_delete:
            self._cookies.pop(name, None)

    def apply(self, response: Response) -> None:
        """Write queued cookie changes onto ``response``."""
        for name in sorted(self._pending_delete):
            response.delete_cookie(
                name,
                path=COOKIE_PATH,
                secure=self._secure,
                samesite=COOKIE_SAMESITE,
            )
        for name, value in self._pending_set.items():
            response.set_cookie(
                name,
                value,
                max_age=self._max_age,
                path=COOKIE_PATH,
                secure=self._secure,
                httponly=False,
                samesite=COOKIE_SAMESITE,
            )
        self._pending_set = {}
        self._pending_delete = set()
