"""Tests for GateSettings: defaults, validation and environment loading."""

from __future__ import annotations

import re

import pytest

from supabase_gate.policy import RoutePolicy
from supabase_gate.redirects import RedirectConfig
from supabase_gate.settings import DEFAULT_PASSTHROUGH_PREFIXES, GateSettings


class TestDefaults:

    def test_local_defaults_are_valid(self):
        settings = GateSettings()
        assert settings.is_local
        assert settings.validate() == []
        assert settings.passthrough_prefixes == DEFAULT_PASSTHROUGH_PREFIXES

    def test_string_patterns_are_compiled(self):
        settings = GateSettings(allow_pattern='^/docs', deny_pattern=re.compile('^/docs/x'))
        assert isinstance(settings.allow_pattern, re.Pattern)
        assert settings.deny_pattern.pattern == '^/docs/x'

    def test_invalid_pattern_raises(self):
        with pytest.raises(ValueError):
            GateSettings(deny_pattern='[')

    def test_redirects_are_read_only(self):
        settings = GateSettings(redirects={'forbidden': 'nope'})
        with pytest.raises(TypeError):
            settings.redirects['forbidden'] = 'x'

    def test_route_policy(self):
        settings = GateSettings(protect_root=True, redirects={'forbidden': 'signin'})
        policy = settings.route_policy()
        assert isinstance(policy, RoutePolicy)
        assert policy.protect_root is True
        assert policy.redirects == RedirectConfig(
            forbidden='/signin',
            signup_success='/login',
            password_reset='/update-password',
        )


class TestValidate:

    def test_production_requires_credentials(self):
        errors = GateSettings(environment='production').validate()
        assert any('supabase_url' in e for e in errors)
        assert any('supabase_anon_key' in e for e in errors)

    def test_production_requires_https(self):
        settings = GateSettings(
            environment='production',
            supabase_url='http://proj.supabase.co',
            supabase_anon_key='anon',
        )
        assert settings.validate() == ['production: supabase_url must use https']

    def test_passthrough_prefix_must_be_absolute(self):
        errors = GateSettings(passthrough_prefixes=('static/',)).validate()
        assert errors == ["passthrough prefix 'static/' must start with /"]

    def test_complete_production_settings(self):
        settings = GateSettings(
            environment='production',
            supabase_url='https://proj.supabase.co',
            supabase_anon_key='anon',
        )
        assert settings.validate() == []


class TestFromEnv:

    def test_empty_env(self):
        settings = GateSettings.from_env({})
        assert settings == GateSettings()
        assert settings.cookie_secure is False

    def test_reads_every_variable(self):
        settings = GateSettings.from_env({
            'ENVIRONMENT': 'staging',
            'SUPABASE_URL': 'https://proj.supabase.co',
            'SUPABASE_ANON_KEY': 'anon',
            'SUPABASE_GATE_ALLOW_PATTERN': '^/public',
            'SUPABASE_GATE_DENY_PATTERN': '^/public/admin',
            'SUPABASE_GATE_PROTECT_ROOT': 'true',
            'SUPABASE_GATE_REDIRECT_FORBIDDEN': 'signin',
            'SUPABASE_GATE_REDIRECT_SIGNUP_SUCCESS': '/welcome',
            'SUPABASE_GATE_REDIRECT_PASSWORD_RESET': 'reset',
            'SUPABASE_GATE_PASSTHROUGH': '/assets/, /robots.txt',
        })

        assert settings.environment == 'staging'
        assert settings.supabase_url == 'https://proj.supabase.co'
        assert settings.supabase_anon_key == 'anon'
        assert settings.allow_pattern.pattern == '^/public'
        assert settings.deny_pattern.pattern == '^/public/admin'
        assert settings.protect_root is True
        assert dict(settings.redirects) == {
            'forbidden': 'signin',
            'signup_success': '/welcome',
            'password_reset': 'reset',
        }
        assert settings.passthrough_prefixes == ('/assets/', '/robots.txt')
        assert settings.cookie_secure is True

    def test_cookie_secure_override(self):
        settings = GateSettings.from_env({
            'ENVIRONMENT': 'production',
            'SUPABASE_GATE_COOKIE_SECURE': 'false',
        })
        assert settings.cookie_secure is False

    @pytest.mark.parametrize('raw', ['', '0', 'no', 'false'])
    def test_protect_root_falsy(self, raw):
        settings = GateSettings.from_env({'SUPABASE_GATE_PROTECT_ROOT': raw})
        assert settings.protect_root is False

    def test_invalid_pattern_raises(self):
        with pytest.raises(ValueError, match='invalid route pattern'):
            GateSettings.from_env({'SUPABASE_GATE_ALLOW_PATTERN': '('})
