"""``POST /api/recover``: send a password recovery email."""

from __future__ import annotations

from starlette.requests import Request
from starlette.responses import Response

from ..auth.errors import AuthError
from ..responses import bail, empty_response, prepare_response
from .base import HandlerOptions, read_form_fields


async def recover_handler(request: Request, options: HandlerOptions) -> Response:
    prepared = prepare_response(request, options.logger, 'recover_handler')
    headers, logger = prepared.headers, prepared.logger

    email = (await read_form_fields(request, 'email'))['email']
    if not email:
        return bail(headers, logger, ValueError('Failed to parse email form field.'))

    logger.debug('called', email=email)

    client = options.client_factory(request)
    try:
        await client.reset_password_for_email(email)
    except AuthError as exc:
        return bail(headers, logger, exc, silent=True)

    logger.debug('handler_success', location=headers['location'])
    return empty_response(headers, 303)
