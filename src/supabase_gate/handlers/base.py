"""What every auth handler receives, plus form parsing shared between them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable

import structlog
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import Request
from starlette.responses import Response

from ..protocols import AuthClientFactory
from ..redirects import RedirectConfig


@dataclass(frozen=True, slots=True)
class HandlerOptions:
    """Per-request context handed to an auth handler.

    Attributes:
        redirects: Resolved redirect destinations for this request.
        client_factory: Creates the identity-provider client for the request.
        logger: Base logger; handlers bind their own scope onto it.
    """

    redirects: RedirectConfig
    client_factory: AuthClientFactory
    logger: structlog.stdlib.BoundLogger


AuthHandler = Callable[[Request, HandlerOptions], Awaitable[Response]]


async def read_form_fields(request: Request, *names: str) -> dict[str, str]:
    """Return the named form fields as strings, '' when absent.

    An unparseable body counts as an empty form.
    """
    try:
        form = await request.form()
    except (MultiPartException, HTTPException):
        return {name: '' for name in names}

    values: dict[str, str] = {}
    for name in names:
        value = form.get(name)
        values[name] = value if isinstance(value, str) else ''
    return values
