"""Redirect destination resolution.

Turns the user-supplied (possibly partial) ``redirects`` option into a
complete :class:`RedirectConfig` of slash-prefixed paths, and builds the
absolute ``location`` values the gate and the auth handlers send back.

A ``location`` always keeps only the origin (scheme, host and a
non-default port) of the request it was derived from. Userinfo, path,
query and fragment are dropped (RFC 7231 section 7.1.2).
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, MutableMapping, Union

import httpx
from starlette.datastructures import URL

# ── Constants ─────────────────────────────────────────────────────────

DEFAULT_FORBIDDEN = '/login'
DEFAULT_SIGNUP_SUCCESS = '/login'
DEFAULT_PASSWORD_RESET = '/update-password'

# Keys accepted in addition to the snake_case field names.
_KEY_ALIASES: dict[str, str] = {
    'signupSuccess': 'signup_success',
    'passwordReset': 'password_reset',
}

URLLike = Union[str, URL, httpx.URL]

_DEFAULT_PORTS = {'http': 80, 'https': 443}

# ── Types ─────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class RedirectConfig:
    """Resolved redirect destinations.

    Attributes:
        forbidden: Where unauthenticated access to a protected route goes.
        signup_success: Landing page after a successful sign up.
        password_reset: Where a password recovery link lands.
    """

    forbidden: str = DEFAULT_FORBIDDEN
    signup_success: str = DEFAULT_SIGNUP_SUCCESS
    password_reset: str = DEFAULT_PASSWORD_RESET

    def paths(self) -> tuple[str, ...]:
        return (self.forbidden, self.signup_success, self.password_reset)


# ── Resolution ───────────────────────────────────────────────────────


def _slashed(value: str) -> str:
    return value if value.startswith('/') else f'/{value}'


def _normalize_overrides(
    overrides: Mapping[str, Any] | RedirectConfig | None,
) -> dict[str, Any]:
    if overrides is None:
        return {}
    if isinstance(overrides, RedirectConfig):
        return {f.name: getattr(overrides, f.name) for f in fields(overrides)}
    if not isinstance(overrides, Mapping):
        return {}

    normalized: dict[str, Any] = {}
    for key, value in overrides.items():
        normalized[_KEY_ALIASES.get(key, key)] = value
    return normalized


def resolve_redirects(
    overrides: Mapping[str, Any] | RedirectConfig | None = None,
) -> RedirectConfig:
    """Merge ``overrides`` over the defaults and slash-prefix every path.

    Empty, missing or non-string overrides fall back to the default for
    that key. Resolving the same overrides twice gives equal results.
    """
    given = _normalize_overrides(overrides)
    resolved: dict[str, str] = {}

    for f in fields(RedirectConfig):
        value = given.get(f.name)
        if not isinstance(value, str) or not value:
            value = f.default
        resolved[f.name] = _slashed(value)

    return RedirectConfig(**resolved)


# ── Location helpers ─────────────────────────────────────────────────


def _origin(base: URLLike) -> str:
    if isinstance(base, httpx.URL):
        url = URL(str(base))
    elif isinstance(base, URL):
        url = base
    else:
        url = URL(base)
    host = url.hostname or ''
    if ':' in host:
        host = f'[{host}]'
    port = url.port
    if port is None or port == _DEFAULT_PORTS.get(url.scheme):
        return f'{url.scheme}://{host}'
    return f'{url.scheme}://{host}:{port}'


def to_absolute(base: URLLike, path: str) -> str:
    """Return ``{origin of base}/{path}`` with one leading slash stripped."""
    stripped = path[1:] if path.startswith('/') else path
    return f'{_origin(base)}/{stripped}'


def set_location(
    headers: MutableMapping[str, str],
    base: URLLike,
    path: str,
) -> None:
    """Set ``location`` to the absolute URL of ``path`` on ``base``'s origin."""
    headers['location'] = to_absolute(base, path)
