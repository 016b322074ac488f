"""Pytest fixtures shared across the suite."""
from __future__ import annotations

import pytest

from api import create_app
from models import storage
from models.user import User
from utils.security import hash_password

from tests.helpers import PASSWORD


@pytest.fixture
def app(tmp_path):
    app = create_app("testing", {"UPLOAD_FOLDER": str(tmp_path / "uploads")})
    yield app
    with app.app_context():
        storage.drop_all()


@pytest.fixture
def client(app):
    # cookies are sent explicitly so each test controls what the server sees
    return app.test_client(use_cookies=False)


@pytest.fixture
def token_manager(app):
    return app.extensions["token_manager"]


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield


@pytest.fixture
def make_user(app):
    def _make(username="alice", email="alice@example.com", password=PASSWORD):
        with app.app_context():
            user = User(
                username=username,
                email=email,
                full_name=username.title(),
                avatar="http://localhost/media/a.png",
                password_hash=hash_password(password),
            )
            storage.new(user)
            storage.save()
            return user.id
    return _make
