"""``GET/POST /api/logout``: end the session and clear its cookies."""

from __future__ import annotations

from starlette.requests import Request
from starlette.responses import Response

from ..auth.errors import AuthError
from ..responses import bail, empty_response, prepare_response
from .base import HandlerOptions


async def logout_handler(request: Request, options: HandlerOptions) -> Response:
    prepared = prepare_response(request, options.logger, 'logout_handler')
    headers, logger = prepared.headers, prepared.logger

    logger.debug('called')

    client = options.client_factory(request)
    try:
        await client.sign_out()
    except AuthError as exc:
        return bail(headers, logger, exc, silent=True)

    logger.debug('handler_success', location=headers['location'])
    response = empty_response(headers, 302)
    client.commit(response)
    return response
