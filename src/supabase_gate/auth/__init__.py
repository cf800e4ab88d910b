"""Supabase Auth (GoTrue) client, session storage and errors."""

from .client import GoTrueClient, create_gotrue_client_factory
from .errors import (
    NO_SESSION_STATUS,
    AuthApiError,
    AuthError,
    AuthInvalidResponseError,
    AuthRetryableFetchError,
    AuthSessionMissingError,
)
from .models import AuthSession, AuthUser
from .storage import CookieSessionStorage, cookie_name_for

__all__ = [
    'NO_SESSION_STATUS',
    'AuthApiError',
    'AuthError',
    'AuthInvalidResponseError',
    'AuthRetryableFetchError',
    'AuthSession',
    'AuthSessionMissingError',
    'AuthUser',
    'CookieSessionStorage',
    'GoTrueClient',
    'cookie_name_for',
    'create_gotrue_client_factory',
]
