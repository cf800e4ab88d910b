"""Per-request identity resolution.

The outcome of asking the identity provider "who is calling" is one of
:class:`Authenticated`, :class:`Anonymous` or :class:`ProviderError`.
A missing session is not an error: it resolves to :class:`Anonymous`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .auth.errors import NO_SESSION_STATUS, AuthError
from .auth.models import AuthUser
from .protocols import AuthClient


@dataclass(frozen=True, slots=True)
class Authenticated:
    user: AuthUser


@dataclass(frozen=True, slots=True)
class Anonymous:
    pass


@dataclass(frozen=True, slots=True)
class ProviderError:
    """The provider failed for a reason other than a missing session."""

    code: str | None
    status_code: int
    transient: bool
    message: str = ''


Identity = Union[Authenticated, Anonymous, ProviderError]

ANONYMOUS = Anonymous()


def user_of(identity: Identity) -> AuthUser | None:
    """Return the user of an identity, None unless authenticated."""
    if isinstance(identity, Authenticated):
        return identity.user
    return None


async def resolve_identity(client: AuthClient) -> Identity:
    """Ask ``client`` for the current user and classify the outcome."""
    try:
        user = await client.get_user()
    except AuthError as exc:
        if exc.status_code == NO_SESSION_STATUS:
            return ANONYMOUS
        return ProviderError(
            code=exc.code,
            status_code=exc.status_code,
            transient=exc.transient,
            message=exc.message,
        )

    if user is None:
        return ANONYMOUS
    return Authenticated(user=user)
