import asyncio
import sys
from dataclasses import replace
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from tournament_api.config import Settings
from tournament_api.main import create_app
from tournament_api.security import hash_password
from tournament_api.services.file_store import LocalFileStore
from tournament_api.storage import InMemoryStorage
from tournament_api.tokens import claims_for_user, issue_token

TEST_SECRET = "test-secret-that-is-long-enough-for-hmac"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        session_secret=TEST_SECRET,
        session_secret_configured=True,
        storage_backend="memory",
        upload_local_path=str(tmp_path / "uploads"),
    )


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def file_store(tmp_path):
    return LocalFileStore(str(tmp_path / "uploads"))


@pytest.fixture
def make_client(settings, storage, file_store):
    """Client factory; keyword arguments override settings fields."""

    def _make(**overrides):
        app = create_app(replace(settings, **overrides), storage, file_store)
        return TestClient(app, raise_server_exceptions=False)

    return _make


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def make_user(storage):
    def _make(username, role, *, password="password123", is_active=True):
        return asyncio.run(
            storage.create_user(
                username=username,
                password_hash=hash_password(password),
                role=role,
                is_active=is_active,
            )
        )

    return _make


@pytest.fixture
def auth_headers(settings):
    def _headers(user):
        token = issue_token(claims_for_user(user), settings.session_secret)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def team_payload():
    def _payload(team_name="Alpha", game="valorant", **overrides):
        players = [
            {
                "name": f"Player {n}",
                "gamingId": f"gamer{n}",
                "valorantId": f"player{n}#EUW" if game == "valorant" else "",
            }
            for n in range(1, 6)
        ]
        payload = {
            "teamName": team_name,
            "game": game,
            "captainEmail": "captain@example.com",
            "captainPhone": "0771234567",
            "players": players,
        }
        payload.update(overrides)
        return payload

    return _payload
