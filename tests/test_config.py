from tournament_api.config import DEV_SESSION_SECRET, Settings
from tournament_api.database import DEFAULT_SQLITE_URL


def test_defaults_without_environment():
    settings = Settings.from_env({})

    assert settings.session_secret == DEV_SESSION_SECRET
    assert settings.session_secret_configured is False
    assert settings.database_url == DEFAULT_SQLITE_URL
    assert settings.database_configured is False
    assert settings.token_lifetime_seconds == 86400
    assert settings.allowed_origins == ("*",)
    assert settings.leaderboard_limit == 20
    assert settings.registration_open is True
    assert (settings.valorant_max_teams, settings.cod_max_teams, settings.cod_max_queue) == (8, 12, 5)
    assert settings.is_production is False


def test_values_from_environment():
    settings = Settings.from_env(
        {
            "NODE_ENV": "production",
            "SESSION_SECRET": "s" * 40,
            "DATABASE_URL": "postgres://user:pw@db/app",
            "ALLOWED_ORIGINS": "https://a.example, https://b.example",
            "REGISTRATION_OPEN": "false",
            "REQUIRE_PAYMENT_PROOF": "yes",
            "COD_MAX_QUEUE": "3",
            "STORAGE_BACKEND": "Memory",
            "SUPERUSER_USERNAME": "root",
            "SUPERUSER_PASSWORD": "changeme",
        }
    )

    assert settings.is_production is True
    assert settings.session_secret_configured is True
    assert settings.database_url == "postgresql+asyncpg://user:pw@db/app"
    assert settings.database_configured is True
    assert settings.allowed_origins == ("https://a.example", "https://b.example")
    assert settings.registration_open is False
    assert settings.require_payment_proof is True
    assert settings.cod_max_queue == 3
    assert settings.storage_backend == "memory"
    assert settings.superuser_username == "root"


def test_bad_integer_falls_back_to_default():
    assert Settings.from_env({"LEADERBOARD_LIMIT": "many"}).leaderboard_limit == 20


def test_secret_is_not_in_repr():
    assert "s" * 40 not in repr(Settings.from_env({"SESSION_SECRET": "s" * 40}))
