"""Supabase-backed access gate for Starlette and FastAPI apps.

Decides per request whether a session is required, redirects anonymous
callers of protected routes, and serves the ``/api/{signup,login,logout,
recover,confirm}`` auth endpoints.
"""

from .app import create_app, install_supabase_gate
from .identity import Anonymous, Authenticated, Identity, ProviderError, resolve_identity
from .middleware import AccessGate, SupabaseGateMiddleware
from .policy import ClassificationResult, RoutePolicy, classify, is_protected
from .protocols import AuthClient, AuthClientFactory
from .redirects import RedirectConfig, resolve_redirects, to_absolute
from .settings import GateSettings

__all__ = [
    'AccessGate',
    'Anonymous',
    'AuthClient',
    'AuthClientFactory',
    'Authenticated',
    'ClassificationResult',
    'GateSettings',
    'Identity',
    'ProviderError',
    'RedirectConfig',
    'RoutePolicy',
    'SupabaseGateMiddleware',
    'classify',
    'create_app',
    'install_supabase_gate',
    'is_protected',
    'resolve_identity',
    'resolve_redirects',
    'to_absolute',
]
