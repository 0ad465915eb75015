import asyncio
from dataclasses import replace

from fastapi.testclient import TestClient

from tournament_api.main import create_app
from tournament_api.routing import route_table
from tournament_api.storage import InMemoryStorage


def test_unknown_route_lists_available_endpoints(client):
    response = client.get("/api/nope")

    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "API endpoint not found"
    assert body["requestedUrl"] == "/api/nope"
    assert body["method"] == "GET"
    assert "/api/teams (POST)" in body["availableEndpoints"]
    assert "/api/admin/users/:user_id (DELETE)" in body["availableEndpoints"]


def test_wrong_method_is_404_listing(client):
    response = client.put("/api/teams")

    assert response.status_code == 404
    assert response.json()["method"] == "PUT"
    assert "availableEndpoints" in response.json()


def test_non_hex_id_does_not_match(client, make_user, auth_headers):
    admin = make_user("admin", "admin")

    response = client.delete("/api/admin/teams/not-an-id", headers=auth_headers(admin))

    assert response.status_code == 404
    assert response.json()["error"] == "API endpoint not found"


def test_bare_options_is_200(client):
    response = client.options("/api/anything")

    assert response.status_code == 200


def test_cors_preflight(client):
    response = client.options(
        "/api/teams",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "POST"},
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] in {"*", "http://localhost:5173"}


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["storage"] == "memory"
    assert body["hasSessionSecret"] is True
    assert body["hasDatabaseUrl"] is False


class _BrokenStorage(InMemoryStorage):
    async def list_teams(self):
        raise RuntimeError("database exploded")


def _broken_client(settings, file_store, auth_headers, **overrides):
    storage = _BrokenStorage()
    admin = asyncio.run(storage.create_user(username="admin", password_hash="x", role="admin"))
    client = TestClient(create_app(replace(settings, **overrides), storage, file_store), raise_server_exceptions=False)
    client.headers.update(auth_headers(admin))
    return client


def test_unhandled_error_is_500_with_message(settings, file_store, auth_headers):
    client = _broken_client(settings, file_store, auth_headers)

    response = client.get("/api/admin/teams")

    assert response.status_code == 500
    assert response.json()["error"] == "database exploded"
    assert "timestamp" in response.json()


def test_unhandled_error_text_hidden_in_production(settings, file_store, auth_headers):
    client = _broken_client(settings, file_store, auth_headers, environment="production")

    response = client.get("/api/admin/teams")

    assert response.status_code == 500
    assert response.json()["error"] == "Internal server error"


def test_server_errors_carry_cors_headers(settings, file_store, auth_headers):
    client = _broken_client(settings, file_store, auth_headers)

    response = client.get("/api/admin/teams", headers={"Origin": "http://localhost:5173"})

    assert response.status_code == 500
    assert response.json()["error"] == "database exploded"
    assert "access-control-allow-origin" in response.headers


def test_route_table_lists_every_included_route(client):
    table = route_table(client.app)

    described = {route.describe() for route in table}
    assert len(table) == 26
    assert {
        "/api/health (GET)",
        "/api/admin/login (POST)",
        "/api/teams/check/:team_name (GET)",
        "/api/game-scores/leaderboard/:game_type (GET)",
        "/api/secret-challenge/check/:email (GET)",
        "/api/admin/teams/:team_id/approve (POST)",
        "/api/admin/files/:file_id (GET)",
    } <= described


def test_not_found_listing_matches_route_table(client):
    body = client.get("/api/nonexistent").json()

    assert body["availableEndpoints"]
    assert body["availableEndpoints"] == [route.describe() for route in route_table(client.app)]
