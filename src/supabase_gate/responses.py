"""Helpers shared by the gate and every auth handler.

Every response produced here has an empty body. Information for the user
travels in the status code, the ``location`` header and the
:data:`STATUS_TEXT_HEADER` header (ASGI has no reason-phrase channel).
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from starlette.datastructures import URL
from starlette.requests import Request
from starlette.responses import Response

from .observability.logging import scoped

STATUS_TEXT_HEADER = 'X-Status-Text'


@dataclass
class PreparedResponse:
    """Headers with a default ``location``, a scoped logger and the base URL."""

    headers: dict[str, str]
    logger: structlog.stdlib.BoundLogger
    url: URL


def prepare_response(
    request: Request,
    logger: structlog.stdlib.BoundLogger,
    component: str,
    path: str = '/',
) -> PreparedResponse:
    """Prepare what almost every endpoint needs.

    The returned ``url`` is the request URL with its path set to ``path``
    and query and fragment dropped; ``headers['location']`` points at it.
    """
    url = request.url.replace(path=path, query='', fragment='')
    headers = {'location': str(url)}
    return PreparedResponse(headers=headers, logger=scoped(logger, component), url=url)


def empty_response(
    headers: dict[str, str],
    status_code: int,
    status_text: str = '',
) -> Response:
    """Build a body-less response, attaching ``status_text`` when given."""
    if status_text:
        # Header values must be latin-1; user-supplied emails may not be.
        headers = {
            **headers,
            STATUS_TEXT_HEADER: status_text.encode('latin-1', 'replace').decode('latin-1'),
        }
    return Response(status_code=status_code, headers=headers)


def bail(
    headers: dict[str, str],
    logger: structlog.stdlib.BoundLogger,
    error: BaseException,
    silent: bool = False,
    status_text: str = '',
) -> Response:
    """Abort an operation: log ``error`` and return an empty response.

    Returns a 303 back to the prepared location, or a 500 when ``silent``
    (the caller gets no detail about what went wrong).
    """
    logger.error('bail', error=str(error), error_type=type(error).__name__)
    status_code = 500 if silent else 303
    return empty_response(headers, status_code, status_text)
