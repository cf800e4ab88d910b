"""Gate configuration settings.

``GateSettings`` is what ``install_supabase_gate()`` and ``create_app()``
accept. Only ``GateSettings.from_env()`` reads os.environ; tests build
the dataclass directly.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from .policy import RoutePolicy, compile_pattern
from .redirects import RedirectConfig, resolve_redirects

_TRUTHY = frozenset({'1', 'true', 'yes', 'on'})

DEFAULT_PASSTHROUGH_PREFIXES: tuple[str, ...] = ('/static/', '/favicon.ico')


@dataclass(frozen=True, slots=True)
class GateSettings:
    """Configuration for the supabase gate.

    All fields have sensible defaults for local development.
    Non-local environments must supply supabase_url and supabase_anon_key.
    """

    # ── Environment ────────────────────────────────────────────────
    environment: str = 'local'
    """One of: local, dev, staging, production."""

    # ── Supabase ───────────────────────────────────────────────────
    supabase_url: str = ''
    """Supabase project URL (e.g. https://xyz.supabase.co)."""

    supabase_anon_key: str = ''
    """Supabase anon/publishable key, sent as ``apikey`` to the auth API."""

    # ── Route policy ───────────────────────────────────────────────
    allow_pattern: re.Pattern[str] | None = None
    """Routes to allow. Replaces the default ``^/(signup|login|confirm)$``."""

    deny_pattern: re.Pattern[str] | None = None
    """Routes to protect even when allowed. Never applies to built-in routes."""

    protect_root: bool = False
    """Whether ``/`` requires a session."""

    redirects: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    """Partial redirect overrides: forbidden, signup_success, password_reset."""

    passthrough_prefixes: tuple[str, ...] = DEFAULT_PASSTHROUGH_PREFIXES
    """Asset paths that skip the gate entirely."""

    # ── Cookies ────────────────────────────────────────────────────
    cookie_secure: bool = False
    """Set the Secure flag on session cookies."""

    def __post_init__(self) -> None:
        object.__setattr__(self, 'allow_pattern', compile_pattern(self.allow_pattern))
        object.__setattr__(self, 'deny_pattern', compile_pattern(self.deny_pattern))
        object.__setattr__(self, 'redirects', MappingProxyType(dict(self.redirects or {})))

    @property
    def is_local(self) -> bool:
        return self.environment == 'local'

    def resolved_redirects(self) -> RedirectConfig:
        return resolve_redirects(self.redirects)

    def route_policy(self) -> RoutePolicy:
        return RoutePolicy(
            protect_root=self.protect_root,
            allow_pattern=self.allow_pattern,
            deny_pattern=self.deny_pattern,
            redirects=self.resolved_redirects(),
        )

    def validate(self) -> list[str]:
        """Return a list of configuration errors. Empty means valid."""
        errors: list[str] = []
        if not self.is_local:
            if not self.supabase_url:
                errors.append(f'{self.environment}: supabase_url is required')
            if not self.supabase_anon_key:
                errors.append(f'{self.environment}: supabase_anon_key is required')
            if self.supabase_url.startswith('http://'):
                errors.append(f'{self.environment}: supabase_url must use https')
        for prefix in self.passthrough_prefixes:
            if not prefix.startswith('/'):
                errors.append(f'passthrough prefix {prefix!r} must start with /')
        return errors

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> GateSettings:
        """Build settings from environment variables.

        This is a convenience factory for production use. Tests should
        construct GateSettings directly.

        Raises:
            ValueError: If a pattern variable is not a valid regex.
        """
        if env is None:
            env = dict(os.environ)

        redirects = {
            key: env[var]
            for key, var in (
                ('forbidden', 'SUPABASE_GATE_REDIRECT_FORBIDDEN'),
                ('signup_success', 'SUPABASE_GATE_REDIRECT_SIGNUP_SUCCESS'),
                ('password_reset', 'SUPABASE_GATE_REDIRECT_PASSWORD_RESET'),
            )
            if env.get(var)
        }

        passthrough_raw = env.get('SUPABASE_GATE_PASSTHROUGH', '')
        passthrough = (
            tuple(p.strip() for p in passthrough_raw.split(',') if p.strip())
            if passthrough_raw
            else DEFAULT_PASSTHROUGH_PREFIXES
        )

        environment = env.get('ENVIRONMENT', 'local')
        cookie_secure_raw = env.get('SUPABASE_GATE_COOKIE_SECURE')
        if cookie_secure_raw is None:
            cookie_secure = environment != 'local'
        else:
            cookie_secure = cookie_secure_raw.strip().lower() in _TRUTHY

        return cls(
            environment=environment,
            supabase_url=env.get('SUPABASE_URL', ''),
            supabase_anon_key=env.get('SUPABASE_ANON_KEY', ''),
            allow_pattern=env.get('SUPABASE_GATE_ALLOW_PATTERN') or None,
            deny_pattern=env.get('SUPABASE_GATE_DENY_PATTERN') or None,
            protect_root=env.get('SUPABASE_GATE_PROTECT_ROOT', '').strip().lower() in _TRUTHY,
            redirects=redirects,
            passthrough_prefixes=passthrough,
            cookie_secure=cookie_secure,
        )
