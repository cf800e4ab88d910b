"""Tests for the built-in /api auth endpoints, driven through the gate."""

from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from supabase_gate.auth.errors import AuthApiError
from supabase_gate.responses import STATUS_TEXT_HEADER
from supabase_gate.settings import GateSettings

from fake_auth import FAKE_COOKIE_NAME, TEST_EMAIL, TEST_PASSWORD

BASE_URL = 'http://127.0.0.1'


@pytest.fixture
def app(make_app):
    return make_app()


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url=BASE_URL) as c:
        yield c


def _session_cookie(token: str) -> dict[str, str]:
    return {'Cookie': f'{FAKE_COOKIE_NAME}={token}'}


# =====================================================================
# 1. /api/login
# =====================================================================


class TestLogin:

    @pytest.mark.asyncio
    async def test_valid_credentials_set_session_cookie(self, client):
        r = await client.post('/api/login', data={'email': TEST_EMAIL, 'password': TEST_PASSWORD})
        assert r.status_code == 303
        assert r.headers['location'] == f'{BASE_URL}/'
        assert FAKE_COOKIE_NAME in r.headers['set-cookie']
        assert r.headers[STATUS_TEXT_HEADER] == f'Welcome back {TEST_EMAIL}'
        assert r.content == b''

    @pytest.mark.asyncio
    async def test_wrong_password_redirects_to_forbidden(self, client):
        r = await client.post('/api/login', data={'email': TEST_EMAIL, 'password': 'nope'})
        assert r.status_code == 303
        assert r.headers['location'].endswith('/login')
        assert 'invalid' in r.headers[STATUS_TEXT_HEADER].lower()
        assert 'set-cookie' not in r.headers

    @pytest.mark.asyncio
    async def test_unconfirmed_email(self, client, provider):
        provider.add_user('new@example.com', 'pw123456', confirmed=False)
        r = await client.post('/api/login', data={'email': 'new@example.com', 'password': 'pw123456'})
        assert r.status_code == 303
        assert r.headers['location'] == f'{BASE_URL}/'
        assert r.headers[STATUS_TEXT_HEADER].startswith('Email not confirmed')

    @pytest.mark.asyncio
    async def test_missing_fields_bail_without_provider_call(self, client, provider):
        r = await client.post('/api/login', data={'email': TEST_EMAIL})
        assert r.status_code == 303
        assert 'sign_in_with_password' not in provider.calls

    @pytest.mark.asyncio
    async def test_unexpected_provider_error_is_500(self, client, provider):
        provider.fail('sign_in_with_password', AuthApiError(500, 'database error', 'unexpected_failure'))
        r = await client.post('/api/login', data={'email': TEST_EMAIL, 'password': TEST_PASSWORD})
        assert r.status_code == 500
        assert r.content == b''
        assert STATUS_TEXT_HEADER not in r.headers

    @pytest.mark.asyncio
    async def test_location_uses_request_origin_only(self, client):
        r = await client.post(
            '/api/login?next=/x',
            data={'email': TEST_EMAIL, 'password': 'nope'},
        )
        assert r.headers['location'] == f'{BASE_URL}/login'


# =====================================================================
# 2. /api/signup
# =====================================================================


class TestSignup:

    @pytest.mark.asyncio
    async def test_success_redirects_to_signup_success(self, client, provider):
        r = await client.post('/api/signup', data={'email': 'fresh@example.com', 'password': 'pw123456'})
        assert r.status_code == 303
        assert r.headers['location'] == f'{BASE_URL}/login'
        assert r.headers[STATUS_TEXT_HEADER].startswith('Thanks for signing up')
        assert provider.users['fresh@example.com']['confirmed'] is False

    @pytest.mark.asyncio
    async def test_custom_signup_success_target(self, make_app):
        app = make_app(GateSettings(redirects={'signup_success': 'welcome'}))
        async with AsyncClient(transport=ASGITransport(app=app), base_url=BASE_URL) as client:
            r = await client.post('/api/signup', data={'email': 'a@example.com', 'password': 'pw123456'})
            assert r.headers['location'] == f'{BASE_URL}/welcome'

    @pytest.mark.asyncio
    async def test_missing_fields(self, client):
        r = await client.post('/api/signup', data={'password': 'pw123456'})
        assert r.status_code == 303
        assert r.headers[STATUS_TEXT_HEADER] == 'Failed to parse email or password form fields.'

    @pytest.mark.asyncio
    async def test_provider_error_is_500(self, client):
        r = await client.post('/api/signup', data={'email': TEST_EMAIL, 'password': 'pw123456'})
        assert r.status_code == 500


# =====================================================================
# 3. /api/logout
# =====================================================================


class TestLogout:

    @pytest.mark.asyncio
    async def test_signed_in_logout_clears_session(self, client, provider):
        token = provider.open_session(TEST_EMAIL)
        r = await client.get('/api/logout', headers=_session_cookie(token))
        assert r.status_code == 302
        assert r.headers['location'] == f'{BASE_URL}/'
        assert f'{FAKE_COOKIE_NAME}=""' in r.headers['set-cookie']
        assert token not in provider.sessions

    @pytest.mark.asyncio
    async def test_post_logout(self, client, provider):
        token = provider.open_session(TEST_EMAIL)
        r = await client.post('/api/logout', headers=_session_cookie(token))
        assert r.status_code == 302

    @pytest.mark.asyncio
    async def test_anonymous_logout_is_forbidden(self, client, provider):
        r = await client.get('/api/logout')
        assert r.status_code == 303
        assert r.headers[STATUS_TEXT_HEADER] == '403 Unauthorized'
        assert 'sign_out' not in provider.calls

    @pytest.mark.asyncio
    async def test_provider_error_is_500(self, client, provider):
        token = provider.open_session(TEST_EMAIL)
        provider.fail('sign_out', AuthApiError(502, 'bad gateway', None))
        r = await client.get('/api/logout', headers=_session_cookie(token))
        assert r.status_code == 500


# =====================================================================
# 4. /api/recover
# =====================================================================


class TestRecover:

    @pytest.mark.asyncio
    async def test_sends_recovery_email(self, client, provider):
        token = provider.open_session(TEST_EMAIL)
        r = await client.post('/api/recover', data={'email': TEST_EMAIL}, headers=_session_cookie(token))
        assert r.status_code == 303
        assert provider.recovery_emails == [TEST_EMAIL]

    @pytest.mark.asyncio
    async def test_missing_email(self, client, provider):
        token = provider.open_session(TEST_EMAIL)
        r = await client.post('/api/recover', data={}, headers=_session_cookie(token))
        assert r.status_code == 303
        assert provider.recovery_emails == []

    @pytest.mark.asyncio
    async def test_provider_error_is_500(self, client, provider):
        token = provider.open_session(TEST_EMAIL)
        provider.fail('reset_password_for_email', AuthApiError(429, 'rate limited', 'over_email_send_rate_limit'))
        r = await client.post('/api/recover', data={'email': TEST_EMAIL}, headers=_session_cookie(token))
        assert r.status_code == 500


# =====================================================================
# 5. /api/confirm
# =====================================================================


class TestConfirm:

    @pytest.mark.asyncio
    async def test_signup_confirmation(self, client, provider):
        provider.add_user('new@example.com', 'pw123456', confirmed=False)
        token_hash = provider.issue_otp('new@example.com', 'signup')

        r = await client.get(f'/api/confirm?token_hash={token_hash}&type=signup')
        assert r.status_code == 303
        assert r.headers['location'] == f'{BASE_URL}/login'
        assert 'You can now log in' in r.headers[STATUS_TEXT_HEADER]
        assert provider.users['new@example.com']['confirmed'] is True
        assert FAKE_COOKIE_NAME in r.headers['set-cookie']

    @pytest.mark.asyncio
    async def test_recovery_confirmation(self, client, provider):
        token_hash = provider.issue_otp(TEST_EMAIL, 'recovery')

        r = await client.get(f'/api/confirm?token_hash={token_hash}&type=recovery')
        assert r.status_code == 303
        assert r.headers['location'] == f'{BASE_URL}/update-password'
        assert r.headers[STATUS_TEXT_HEADER] == (
            f'Password reset. Please visit {BASE_URL}/update-password to set a new password.'
        )

    @pytest.mark.asyncio
    async def test_invalid_token_bails(self, client, provider):
        r = await client.get('/api/confirm?token_hash=unknown&type=signup')
        assert r.status_code == 303
        assert r.headers['location'] == f'{BASE_URL}/'
        assert 'verify_otp' in provider.calls

    @pytest.mark.asyncio
    async def test_missing_params(self, client, provider):
        r = await client.get('/api/confirm')
        assert r.status_code == 303
        assert r.headers['location'] == f'{BASE_URL}/'
        assert 'verify_otp' not in provider.calls
