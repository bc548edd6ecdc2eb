import os

# must be set before `models` is imported: DBStorage picks its engine at import
os.environ["APP_ENV"] = "test"
os.environ.pop("DATABASE_URL", None)

from datetime import timedelta  # noqa: E402

import pytest  # noqa: E402

from api import create_app  # noqa: E402
from models import identities, storage  # noqa: E402
from models.user import User  # noqa: E402
from utils.security import CredentialCodec, hash_password  # noqa: E402
from utils.sessions import SessionAuthority  # noqa: E402

PASSWORD = "correct-horse"


@pytest.fixture
def app():
    storage.drop_all()
    storage.reload()
    app = create_app("testing")
    yield app
    storage.close()


@pytest.fixture
def client(app):
    # tokens are passed explicitly (header or Cookie header) in every test
    return app.test_client(use_cookies=False)


@pytest.fixture
def codec():
    return CredentialCodec(
        access_secret="test-access-secret",
        refresh_secret="test-refresh-secret",
        access_expires=timedelta(minutes=15),
        refresh_expires=timedelta(days=10),
    )


@pytest.fixture
def authority(app, codec):
    return SessionAuthority(identities, codec)


@pytest.fixture
def make_user(app):
    def _make(username="alice", email=None, password=PASSWORD, fullname=None, **extra):
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            fullname=fullname or username.title(),
            password_hash=hash_password(password),
            **extra,
        )
        storage.new(user)
        storage.save()
        return user

    return _make


@pytest.fixture
def login(client):
    """Log in through the API; returns the response data (user + tokens)."""
    def _login(email, password=PASSWORD):
        resp = client.post("/api/v1/session/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return resp.get_json()["data"]

    return _login


def bearer(token):
    return {"Authorization": f"Bearer {token}"}
