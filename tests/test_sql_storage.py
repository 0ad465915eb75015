import asyncio
from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from tournament_api.main import create_app
from tournament_api.schemas import GameScoreCreate, SecretChallengeCreate, TeamCreate, UserUpdate
from tournament_api.storage import (
    DuplicateEntryError,
    DuplicateTeamNameError,
    DuplicateUsernameError,
    SQLStorage,
)

MEMORY_URL = "sqlite+aiosqlite://"


def _team(team_payload, name, game="valorant"):
    return TeamCreate.model_validate(team_payload(name, game=game))


def _with_storage(coro_fn):
    async def _run():
        storage = SQLStorage.from_url(MEMORY_URL)
        await storage.initialize()
        try:
            await coro_fn(storage)
        finally:
            await storage.close()

    asyncio.run(_run())


def test_team_names_are_unique_case_insensitively(team_payload):
    async def scenario(storage):
        created = await storage.create_team(_team(team_payload, "Alpha"), status="confirmed")
        assert created.registered_at is not None
        assert len(created.players) == 5

        with pytest.raises(DuplicateTeamNameError):
            await storage.create_team(_team(team_payload, "ALPHA"), status="confirmed")

        assert await storage.team_exists("alpha")
        found = await storage.get_team_by_name("aLpHa")
        assert found.id == created.id
        assert len(await storage.list_teams()) == 1

    _with_storage(scenario)


def test_counts_queue_and_status_changes(team_payload):
    async def scenario(storage):
        queued = await storage.create_team(_team(team_payload, "Queued", game="cod"), status="queued")
        await storage.create_team(_team(team_payload, "Later", game="cod"), status="queued")
        await storage.create_team(_team(team_payload, "Valo"), status="confirmed")

        assert await storage.count_teams("cod", ("queued",)) == 2
        assert await storage.count_teams("valorant", ("confirmed", "approved")) == 1
        assert [t.team_name for t in await storage.list_queued_teams("cod")] == ["Queued", "Later"]

        approved = await storage.set_team_status(queued.id, "approved", approved_by="marshal")
        assert approved.status == "approved"
        assert approved.approved_by == "marshal"
        assert await storage.count_teams("cod", ("confirmed", "approved")) == 1

        deleted = await storage.delete_team(queued.id)
        assert deleted.id == queued.id
        assert await storage.delete_team(queued.id) is None

    _with_storage(scenario)


def test_scores_are_ordered_numerically():
    async def scenario(storage):
        for score in ("10.000s", "0.950s", "1.200s"):
            await storage.create_score(GameScoreCreate(player_name="p", score=score, game_type="reaction"))
        await storage.create_score(GameScoreCreate(player_name="p", score="0.1s", game_type="aim"))

        top = await storage.top_scores("reaction", 20)
        assert [s.score for s in top] == ["0.950s", "1.200s", "10.000s"]
        assert len(await storage.list_scores()) == 4

        assert await storage.delete_score(top[0].id) is True
        assert await storage.delete_score(top[0].id) is False

    _with_storage(scenario)


def test_top_scores_put_non_numeric_last_and_cap_in_the_query():
    async def scenario(storage):
        for score in ("DNF", "2s", "fast", "0.4s", "10s"):
            await storage.create_score(GameScoreCreate(player_name="p", score=score, game_type="reaction"))

        everything = await storage.top_scores("reaction", 20)
        assert [s.score for s in everything] == ["0.4s", "2s", "10s", "DNF", "fast"]
        assert [s.score for s in await storage.top_scores("reaction", 2)] == ["0.4s", "2s"]
        assert await storage.top_scores("reaction", 0) == []

    _with_storage(scenario)


def test_users():
    async def scenario(storage):
        user = await storage.create_user(username="alice", password_hash="hash", role="admin")
        with pytest.raises(DuplicateUsernameError):
            await storage.create_user(username="alice", password_hash="hash", role="admin")

        assert (await storage.get_user_by_username("alice")).password_hash == "hash"
        assert await storage.get_user_by_username("ALICE") is None

        updated = await storage.update_user(user.id, UserUpdate(is_active=False))
        assert updated.is_active is False
        assert updated.role == "admin"

        await storage.touch_last_login(user.id)
        assert (await storage.get_user(user.id)).last_login is not None

        [listed] = await storage.list_users()
        assert not hasattr(listed, "password_hash")

        assert await storage.delete_user(user.id) is True
        assert await storage.get_user(user.id) is None

    _with_storage(scenario)


def test_secret_challenge():
    async def scenario(storage):
        await storage.create_secret_challenge(SecretChallengeCreate(player_email="a@example.com", score=100))
        await storage.create_secret_challenge(SecretChallengeCreate(player_email="b@example.com", score=900))
        with pytest.raises(DuplicateEntryError):
            await storage.create_secret_challenge(SecretChallengeCreate(player_email="a@example.com", score=5))

        board = await storage.secret_leaderboard(10)
        assert [entry.score for entry in board] == [900, 100]
        assert await storage.has_completed_secret("b@example.com")
        assert await storage.has_completed_secret(" B@Example.com ")
        with pytest.raises(DuplicateEntryError):
            await storage.create_secret_challenge(SecretChallengeCreate(player_email="A@EXAMPLE.com", score=5))

    _with_storage(scenario)


def test_app_runs_on_sql_storage(settings, file_store, team_payload):
    app = create_app(replace(settings, storage_backend="sql"), SQLStorage.from_url(MEMORY_URL), file_store)

    with TestClient(app) as client:
        assert client.post("/api/teams", json=team_payload("Alpha")).status_code == 201
        assert client.get("/api/teams/check/ALPHA").json() == {"exists": True}
        duplicate = client.post("/api/teams", json=team_payload("alpha"))
        assert duplicate.status_code == 400
        assert duplicate.json()["field"] == "teamName"
