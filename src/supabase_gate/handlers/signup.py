"""``POST /api/signup``: register a new email/password user."""

from __future__ import annotations

from starlette.requests import Request
from starlette.responses import Response

from ..auth.errors import AuthError
from ..redirects import set_location
from ..responses import bail, empty_response, prepare_response
from .base import HandlerOptions, read_form_fields

PARSE_FAILURE_TEXT = 'Failed to parse email or password form fields.'
SUCCESS_TEXT = (
    'Thanks for signing up. Your email address must be confirmed before you can log in.'
)


async def signup_handler(request: Request, options: HandlerOptions) -> Response:
    prepared = prepare_response(request, options.logger, 'signup_handler')
    headers, logger = prepared.headers, prepared.logger

    fields = await read_form_fields(request, 'email', 'password')
    email, password = fields['email'], fields['password']
    if not email or not password:
        return bail(headers, logger, ValueError(PARSE_FAILURE_TEXT), status_text=PARSE_FAILURE_TEXT)

    logger.debug('called', email=email)

    client = options.client_factory(request)
    try:
        await client.sign_up(email, password)
    except AuthError as exc:
        return bail(headers, logger, exc, silent=True)

    set_location(headers, prepared.url, options.redirects.signup_success)
    logger.debug('handler_success', location=headers['location'])
    response = empty_response(headers, 303, SUCCESS_TEXT)
    client.commit(response)
    return response
