"""``GET /api/confirm``: landing point of email confirmation links.

Supabase email templates link here with ``?token_hash=...&type=...``.
``signup`` confirmations continue to the forbidden (login) page,
``recovery`` links to the password reset page with the recovery session
already set.
"""

from __future__ import annotations

from starlette.requests import Request
from starlette.responses import Response

from ..auth.errors import AuthError
from ..redirects import set_location
from ..responses import bail, empty_response, prepare_response
from .base import HandlerOptions

OTP_TYPE_SIGNUP = 'signup'
OTP_TYPE_RECOVERY = 'recovery'


async def confirm_handler(request: Request, options: HandlerOptions) -> Response:
    prepared = prepare_response(request, options.logger, 'confirm_handler')
    headers, logger = prepared.headers, prepared.logger

    token_hash = request.query_params.get('token_hash')
    otp_type = request.query_params.get('type')

    logger.debug('called', type=otp_type, has_token_hash=bool(token_hash))

    if not token_hash or not otp_type:
        return empty_response(headers, 303)

    client = options.client_factory(request)
    try:
        await client.verify_otp(otp_type, token_hash)
    except AuthError as exc:
        return bail(headers, logger, exc)

    status_text = ''
    if otp_type == OTP_TYPE_SIGNUP:
        set_location(headers, prepared.url, options.redirects.forbidden)
        status_text = 'Thanks for confirming your email address. You can now log in.'
    elif otp_type == OTP_TYPE_RECOVERY:
        set_location(headers, prepared.url, options.redirects.password_reset)
        status_text = (
            f'Password reset. Please visit {headers["location"]} to set a new password.'
        )

    logger.debug('handler_success', type=otp_type, location=headers['location'])
    response = empty_response(headers, 303, status_text)
    client.commit(response)
    return response
