# tournament_api/database.py
from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional

from sqlalchemy.engine import URL
from sqlalchemy.engine.url import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

# Local development database, next to the package.
DEFAULT_SQLITE_URL: str = (
    "sqlite+aiosqlite:///" + (Path(__file__).resolve().parents[1] / "tournament.db").as_posix()
)

# libpq ``sslmode`` values asyncpg understands as its ``ssl`` flag; the rest
# ("prefer", "allow") are dropped and the driver default applies.
ASYNCPG_SSL = {
    "require": "true",
    "verify-ca": "true",
    "verify-full": "true",
    "disable": "false",
}


def async_database_url(raw_url: str) -> str:
    """``raw_url`` with an async driver: asyncpg for Postgres, aiosqlite for SQLite.

    Hosted Postgres URLs (Vercel, Railway, Neon) come as ``postgres://`` with a
    libpq ``sslmode``; asyncpg wants ``postgresql+asyncpg://`` and ``ssl``.
    """
    url = make_url(raw_url)
    backend = url.get_backend_name()

    if backend in {"postgres", "postgresql"}:
        query = {key: value for key, value in url.query.items() if key != "sslmode"}
        ssl = ASYNCPG_SSL.get(str(url.query.get("sslmode", "")).strip().lower())
        if ssl is not None:
            query["ssl"] = ssl
        url = url.set(drivername="postgresql+asyncpg", query=query)
    elif backend == "sqlite":
        url = url.set(drivername="sqlite+aiosqlite")

    return url.render_as_string(hide_password=False)


def database_url_from_env(env: Mapping[str, str]) -> Optional[str]:
    """DATABASE_URL, else POSTGRES_URL, else the PGHOST/PGDATABASE/PGUSER family; None if unset."""
    raw_url = env.get("DATABASE_URL") or env.get("POSTGRES_URL")
    if raw_url:
        return async_database_url(raw_url)

    host, database, user = env.get("PGHOST"), env.get("PGDATABASE"), env.get("PGUSER")
    if not (host and database and user):
        return None

    port = (env.get("PGPORT") or "").strip()
    ssl = ASYNCPG_SSL.get((env.get("PGSSLMODE") or "").strip().lower())
    return URL.create(
        drivername="postgresql+asyncpg",
        username=user,
        password=env.get("PGPASSWORD") or None,
        host=host,
        port=int(port) if port.isdigit() else None,
        database=database,
        query={"ssl": ssl} if ssl else {},
    ).render_as_string(hide_password=False)


# Optional echo flag for local debugging
ECHO = os.getenv("SQLALCHEMY_ECHO", "0").lower() in {"1", "true", "yes"}

Base = declarative_base()


def _is_memory_sqlite(database_url: str) -> bool:
    url = make_url(database_url)
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def build_engine(database_url: str) -> AsyncEngine:
    if _is_memory_sqlite(database_url):
        # One shared connection, otherwise every checkout sees an empty database.
        return create_async_engine(
            database_url,
            echo=ECHO,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(
        database_url,
        echo=ECHO,
        pool_pre_ping=True,
    )


def build_session_factory(bind_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind_engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


async def init_models(bind_engine: AsyncEngine) -> None:
    """Create any missing table. Existing tables are not altered."""
    import tournament_api.models  # noqa: F401  registers the tables on Base

    async with bind_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
