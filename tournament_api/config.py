"""Runtime configuration read from the environment (and an optional ``.env``)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

from tournament_api.database import DEFAULT_SQLITE_URL, database_url_from_env

load_dotenv()

logger = logging.getLogger("config")

DEV_SESSION_SECRET = "game-night-secret-key"
TOKEN_LIFETIME_SECONDS = 24 * 60 * 60
MAX_UPLOAD_BYTES = 5 * 1024 * 1024

_TRUTHY = {"1", "true", "yes", "on"}


def _flag(value: Optional[str], default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUTHY


def _int(value: Optional[str], default: int) -> int:
    try:
        return int(value) if value is not None and value.strip() else default
    except ValueError:
        logger.warning("Ignoring non-integer setting %r, using %s", value, default)
        return default


def _origins(value: Optional[str]) -> Tuple[str, ...]:
    if not value or not value.strip():
        return ("*",)
    return tuple(o.strip() for o in value.split(",") if o.strip())


@dataclass(frozen=True)
class Settings:
    environment: str = "development"
    session_secret: str = field(default=DEV_SESSION_SECRET, repr=False)
    session_secret_configured: bool = False
    token_lifetime_seconds: int = TOKEN_LIFETIME_SECONDS
    database_url: str = DEFAULT_SQLITE_URL
    database_configured: bool = False
    storage_backend: str = "sql"
    file_storage: str = "local"
    upload_local_path: str = "storage/uploads"
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    allowed_origins: Tuple[str, ...] = field(default_factory=lambda: ("*",))
    leaderboard_limit: int = 20
    registration_open: bool = True
    require_payment_proof: bool = False
    valorant_max_teams: int = 8
    cod_max_teams: int = 12
    cod_max_queue: int = 5
    db_init_max_attempts: int = 10
    db_init_retry_seconds: float = 1.0
    superuser_username: Optional[str] = None
    superuser_password: Optional[str] = field(default=None, repr=False)

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env

        secret = env.get("SESSION_SECRET")
        if not secret:
            logger.warning("SESSION_SECRET is not set; using the development secret.")
        elif len(secret) < 32:
            logger.warning("SESSION_SECRET should be at least 32 characters long.")

        database_url = database_url_from_env(env)

        try:
            retry_seconds = float(env.get("DB_INIT_RETRY_SECONDS", "1.0"))
        except ValueError:
            retry_seconds = 1.0

        return cls(
            environment=env.get("ENVIRONMENT") or env.get("NODE_ENV") or "development",
            session_secret=secret or DEV_SESSION_SECRET,
            session_secret_configured=bool(secret),
            token_lifetime_seconds=_int(env.get("SESSION_TTL_SECONDS"), TOKEN_LIFETIME_SECONDS),
            database_url=database_url or DEFAULT_SQLITE_URL,
            database_configured=database_url is not None,
            storage_backend=env.get("STORAGE_BACKEND", "sql").strip().lower(),
            file_storage=env.get("FILE_STORAGE", "local").strip().lower(),
            upload_local_path=env.get("UPLOAD_LOCAL_PATH", "storage/uploads"),
            max_upload_bytes=_int(env.get("UPLOAD_MAX_BYTES"), MAX_UPLOAD_BYTES),
            allowed_origins=_origins(env.get("ALLOWED_ORIGINS")),
            leaderboard_limit=_int(env.get("LEADERBOARD_LIMIT"), 20),
            registration_open=_flag(env.get("REGISTRATION_OPEN"), True),
            require_payment_proof=_flag(env.get("REQUIRE_PAYMENT_PROOF"), False),
            valorant_max_teams=_int(env.get("VALORANT_MAX_TEAMS"), 8),
            cod_max_teams=_int(env.get("COD_MAX_TEAMS"), 12),
            cod_max_queue=_int(env.get("COD_MAX_QUEUE"), 5),
            db_init_max_attempts=_int(env.get("DB_INIT_MAX_ATTEMPTS"), 10),
            db_init_retry_seconds=retry_seconds,
            superuser_username=env.get("SUPERUSER_USERNAME") or None,
            superuser_password=env.get("SUPERUSER_PASSWORD") or None,
        )
