"""Request-ID correlation middleware.

Install it outermost (``install_supabase_gate`` does) so that the gate's
own log lines already carry ``request_id``.
"""

from __future__ import annotations

import re
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from .logging import request_id_ctx

REQUEST_ID_HEADER = "X-Request-ID"

# Client supplied IDs end up in logs; anything else is replaced.
_ACCEPTED_REQUEST_ID = re.compile(r"[A-Za-z0-9-]{8,128}")


def accept_request_id(incoming: str | None) -> str:
    """Return ``incoming`` when well formed, else a fresh UUID4 string."""
    if incoming and _ACCEPTED_REQUEST_ID.fullmatch(incoming):
        return incoming
    return str(uuid.uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Expose the request ID as ``request.state.request_id`` and in logs.

    The ID is echoed back in the ``X-Request-ID`` response header.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        rid = accept_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = rid

        reset_token = request_id_ctx.set(rid)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(reset_token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
