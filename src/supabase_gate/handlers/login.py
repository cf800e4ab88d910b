"""``POST /api/login``: email/password sign in."""

from __future__ import annotations

from starlette.requests import Request
from starlette.responses import Response

from ..auth.errors import AuthError
from ..redirects import set_location
from ..responses import bail, empty_response, prepare_response
from .base import HandlerOptions, read_form_fields


def _not_confirmed(exc: AuthError) -> bool:
    return exc.code == 'email_not_confirmed' or 'not confirmed' in exc.message.lower()


async def login_handler(request: Request, options: HandlerOptions) -> Response:
    prepared = prepare_response(request, options.logger, 'login_handler')
    headers, logger = prepared.headers, prepared.logger

    fields = await read_form_fields(request, 'email', 'password')
    email, password = fields['email'], fields['password']
    if not email or not password:
        error = ValueError('Failed to parse email or password form fields.')
        return bail(headers, logger, error)

    logger.debug('called', email=email)

    client = options.client_factory(request)
    try:
        session = await client.sign_in_with_password(email, password)
    except AuthError as exc:
        if exc.status_code == 400 and _not_confirmed(exc):
            logger.debug('email_not_confirmed', location=headers['location'])
            return empty_response(
                headers,
                303,
                'Email not confirmed. Please confirm your email address before signing in.',
            )
        if exc.status_code == 400 and exc.code == 'invalid_credentials':
            set_location(headers, prepared.url, options.redirects.forbidden)
            logger.debug('invalid_credentials', location=headers['location'])
            return empty_response(headers, 303, 'Invalid login credentials.')
        return bail(headers, logger, exc, silent=True)

    logger.debug('handler_success', location=headers['location'])
    user_email = session.user.email if session.user else email
    response = empty_response(headers, 303, f'Welcome back {user_email}')
    client.commit(response)
    return response
