import os
from collections.abc import Iterator
from typing import TYPE_CHECKING

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_suite.db")

from jose import jwt  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from fieldreports.api.deps import get_db_session  # noqa: E402
from fieldreports.api.routes.auth import refresh_token_store  # noqa: E402
from fieldreports.core.config import get_settings  # noqa: E402
from fieldreports.main import app  # noqa: E402
from fieldreports.models import Base  # noqa: E402

if TYPE_CHECKING:
    from fastapi.testclient import TestClient

EMAIL = "user@example.com"
PASSWORD = "changeme"


@pytest.fixture()
def client() -> Iterator["TestClient"]:
    pytest.importorskip("fastapi")
    from fastapi.testclient import TestClient

    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session_factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    def override_get_db() -> Iterator[Session]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db_session] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.pop(get_db_session, None)
    engine.dispose()


class _DiscardingS3Client:
    exceptions = type("Exceptions", (), {"NoSuchKey": type("NoSuchKey", (Exception,), {})})

    def head_bucket(self, **_: object) -> None:
        return None

    def get_object(self, **_: object) -> dict[str, object]:
        raise self.exceptions.NoSuchKey()

    def put_object(self, **_: object) -> dict[str, str]:
        return {"ETag": "discarded"}


@pytest.fixture(autouse=True)
def discard_audit_archive(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("fieldreports.obs.audit.boto3.client", lambda *args, **kwargs: _DiscardingS3Client())


@pytest.fixture(autouse=True)
def reset_refresh_store() -> Iterator[None]:
    refresh_token_store.reset()
    yield
    refresh_token_store.reset()


def _signup(client: "TestClient") -> tuple[str, str]:
    response = client.post(
        "/api/auth/signup",
        json={"email": EMAIL, "password": PASSWORD, "full_name": "Ada Officer"},
    )
    assert response.status_code == 201
    body = response.json()
    return body["access_token"], body["refresh_token"]


def test_signup_returns_signed_tokens(client: "TestClient") -> None:
    access_token, refresh_token = _signup(client)

    settings = get_settings()
    access_payload = jwt.decode(access_token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    refresh_payload = jwt.decode(refresh_token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])

    assert access_payload["email"] == EMAIL
    assert access_payload["type"] == "access"
    assert refresh_payload["type"] == "refresh"
    assert access_payload["sub"] == refresh_payload["sub"]


def test_duplicate_signup_conflicts(client: "TestClient") -> None:
    _signup(client)

    response = client.post("/api/auth/signup", json={"email": "USER@example.com", "password": PASSWORD})

    assert response.status_code == 409


def test_login_and_me(client: "TestClient") -> None:
    _signup(client)

    response = client.post("/api/auth/login", json={"email": EMAIL, "password": PASSWORD})
    assert response.status_code == 200
    token = response.json()["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == EMAIL
    assert me.json()["full_name"] == "Ada Officer"


def test_login_rejects_wrong_password(client: "TestClient") -> None:
    _signup(client)

    response = client.post("/api/auth/login", json={"email": EMAIL, "password": "wrong-password"})

    assert response.status_code == 401


def test_login_rejects_invalid_email(client: "TestClient") -> None:
    response = client.post("/api/auth/login", json={"email": "not-an-email", "password": PASSWORD})

    assert response.status_code == 422


def test_me_requires_token(client: "TestClient") -> None:
    assert client.get("/api/auth/me").status_code in {401, 403}


def test_refresh_rotates_and_blacklists_previous(client: "TestClient") -> None:
    _, refresh_token = _signup(client)

    first = client.post("/api/auth/refresh", json={"refresh_token": refresh_token})
    assert first.status_code == 200
    assert first.json()["refresh_token"] != refresh_token

    replay = client.post("/api/auth/refresh", json={"refresh_token": refresh_token})
    assert replay.status_code == 401


def test_refresh_rejects_access_token(client: "TestClient") -> None:
    access_token, _ = _signup(client)

    response = client.post("/api/auth/refresh", json={"refresh_token": access_token})

    assert response.status_code == 400


def test_logout_revokes_refresh_token(client: "TestClient") -> None:
    _, refresh_token = _signup(client)

    response = client.post("/api/auth/logout", json={"refresh_token": refresh_token})
    assert response.status_code == 204

    replay = client.post("/api/auth/refresh", json={"refresh_token": refresh_token})
    assert replay.status_code == 401
