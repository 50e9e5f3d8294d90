import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.main import create_app

NO_OAUTH = {
    "GOOGLE_CLIENT_ID": None,
    "GOOGLE_CLIENT_SECRET": None,
    "FACEBOOK_CLIENT_ID": None,
    "FACEBOOK_CLIENT_SECRET": None,
    "DISCORD_CLIENT_ID": None,
    "DISCORD_CLIENT_SECRET": None,
}


@pytest.fixture
def users_file(tmp_path: Path) -> Path:
    return tmp_path / "users.json"


@pytest.fixture
def settings(tmp_path: Path, users_file: Path) -> Settings:
    """Settings isolated from the developer's .env and environment."""
    return Settings(
        _env_file=None,
        USERS_FILE=str(users_file),
        STATIC_DIR=str(tmp_path / "public"),
        **NO_OAUTH,
    )


@pytest.fixture
def app(settings: Settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def read_users(path: Path) -> list[dict]:
    return json.loads(path.read_text(encoding="utf-8"))


def register(client: TestClient, email: str = "an@example.com", password: str = "secret", name: str = "An"):
    return client.post(
        "/api/register",
        json={"name": name, "email": email, "password": password},
    )
