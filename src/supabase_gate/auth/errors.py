"""Supabase Auth (GoTrue) error hierarchy.

These errors never carry httpx objects, tokens or api keys, so they are
safe to log and to hold on to after a request completes.
"""

from __future__ import annotations

from dataclasses import dataclass

# Status GoTrue clients use for "there is no session to work with".
NO_SESSION_STATUS = 400


@dataclass(frozen=True, slots=True)
class AuthError(Exception):
    """Base error for every failed identity-provider operation."""

    status_code: int
    message: str
    code: str | None = None

    @property
    def transient(self) -> bool:
        """Whether repeating the same call later may succeed."""
        return self.status_code == 0 or self.status_code >= 500

    def __str__(self) -> str:
        bits: list[str] = [
            f'{type(self).__name__}(status={self.status_code})',
            self.message,
        ]
        if self.code:
            bits.append(f'code={self.code}')
        return ' '.join(bits)


class AuthApiError(AuthError):
    """The auth API answered with an error status."""


class AuthSessionMissingError(AuthError):
    """No usable session was found in the request cookies."""

    def __init__(
        self,
        status_code: int = NO_SESSION_STATUS,
        message: str = 'Auth session missing!',
        code: str | None = 'session_missing',
    ) -> None:
        super().__init__(status_code=status_code, message=message, code=code)


class AuthRetryableFetchError(AuthError):
    """The auth API could not be reached (network error or timeout)."""


class AuthInvalidResponseError(AuthError):
    """The auth API answered with a payload we could not interpret."""
