"""Shared fixtures: an in-memory identity provider and a gated test app."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles

from supabase_gate.app import install_supabase_gate
from supabase_gate.settings import GateSettings

from fake_auth import TEST_EMAIL, TEST_PASSWORD, FakeAuthProvider


@pytest.fixture
def provider() -> FakeAuthProvider:
    fake = FakeAuthProvider()
    fake.add_user(TEST_EMAIL, TEST_PASSWORD)
    return fake


@pytest.fixture
def static_dir(tmp_path: Path) -> Path:
    directory = tmp_path / 'assets'
    directory.mkdir()
    (directory / 'app.css').write_text('body {}')
    return directory


def _page(name: str):
    async def page(request: Request):
        user = getattr(request.state, 'user', None)
        return {'page': name, 'email': user.email if user else None}

    return page


@pytest.fixture
def make_app(provider, static_dir):
    """Return a factory building a gated FastAPI app for given settings."""

    def _make(settings: GateSettings | None = None) -> FastAPI:
        app = FastAPI()

        for path in (
            '/',
            '/protected',
            '/login',
            '/signup',
            '/confirm',
            '/auth/login',
            '/customredirect',
            '/update-password',
        ):
            app.add_api_route(path, _page(path), methods=['GET'])

        app.mount('/assets', StaticFiles(directory=static_dir), name='assets')

        install_supabase_gate(
            app,
            settings or GateSettings(),
            client_factory=provider.factory,
        )
        return app

    return _make
