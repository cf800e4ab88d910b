"""Built-in auth API handlers and the path prefixes they serve."""

from __future__ import annotations

from .base import AuthHandler, HandlerOptions, read_form_fields
from .confirm import confirm_handler
from .login import login_handler
from .logout import logout_handler
from .recover import recover_handler
from .signup import signup_handler

# Checked in order; the first prefix that matches the request path wins.
AUTH_ROUTES: tuple[tuple[str, AuthHandler], ...] = (
    ('/api/signup', signup_handler),
    ('/api/login', login_handler),
    ('/api/logout', logout_handler),
    ('/api/confirm', confirm_handler),
    ('/api/recover', recover_handler),
)


def find_auth_handler(path: str) -> AuthHandler | None:
    """Return the built-in handler whose prefix starts ``path``, if any."""
    for prefix, handler in AUTH_ROUTES:
        if path.startswith(prefix):
            return handler
    return None


__all__ = [
    'AUTH_ROUTES',
    'AuthHandler',
    'HandlerOptions',
    'confirm_handler',
    'find_auth_handler',
    'login_handler',
    'logout_handler',
    'read_form_fields',
    'recover_handler',
    'signup_handler',
]
