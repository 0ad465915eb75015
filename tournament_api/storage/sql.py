"""SQLAlchemy (async) implementation of the storage interface."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Iterable, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine

from tournament_api.database import build_engine, build_session_factory, init_models
from tournament_api.leaderboard import score_value
from tournament_api.models import GameScore, SecretChallenge, Team, User
from tournament_api.models.team import utcnow
from tournament_api.schemas import (
    GameScoreCreate,
    GameScoreRead,
    SecretChallengeCreate,
    SecretChallengeRead,
    TeamCreate,
    TeamRead,
    UserRead,
    UserRecord,
    UserUpdate,
)
from tournament_api.storage.base import (
    DuplicateEntryError,
    DuplicateTeamNameError,
    DuplicateUsernameError,
    TournamentStorage,
    email_key,
    team_name_key,
)

if TYPE_CHECKING:
    from tournament_api.services.file_store import StoredFile

logger = logging.getLogger("storage")


def _team_record(row: Team) -> TeamRead:
    return TeamRead.model_validate(
        {
            "id": row.id,
            "team_name": row.team_name,
            "game": row.game,
            "captain_email": row.captain_email,
            "captain_phone": row.captain_phone,
            "players": row.players,
            "bank_slip_file_id": row.bank_slip_file_id,
            "bank_slip_file_name": row.bank_slip_file_name,
            "bank_slip_content_type": row.bank_slip_content_type,
            "status": row.status or "confirmed",
            "queued_at": row.queued_at,
            "approved_by": row.approved_by,
            "approved_at": row.approved_at,
            "registered_at": row.registered_at,
        }
    )


def _score_record(row: GameScore) -> GameScoreRead:
    return GameScoreRead(
        id=row.id,
        player_name=row.player_name,
        score=row.score,
        game_type=row.game_type,
        created_at=row.created_at,
    )


def _user_record(row: User) -> UserRecord:
    return UserRecord(
        id=row.id,
        username=row.username,
        role=row.role,
        is_active=row.is_active,
        created_at=row.created_at,
        last_login=row.last_login,
        password_hash=row.password_hash,
    )


def _secret_record(row: SecretChallenge) -> SecretChallengeRead:
    return SecretChallengeRead(
        id=row.id,
        player_email=row.player_email,
        score=row.score,
        completed_at=row.completed_at,
    )


class SQLStorage(TournamentStorage):
    backend_name = "sql"

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        init_max_attempts: int = 1,
        init_retry_seconds: float = 1.0,
    ) -> None:
        self.engine = engine
        self.session_factory = build_session_factory(engine)
        self.init_max_attempts = max(init_max_attempts, 1)
        self.init_retry_seconds = init_retry_seconds

    @classmethod
    def from_url(cls, database_url: str, **kwargs) -> "SQLStorage":
        return cls(build_engine(database_url), **kwargs)

    async def initialize(self) -> None:
        """Create tables, retrying while the database is still coming up."""
        attempt = 0
        while True:
            attempt += 1
            try:
                await init_models(self.engine)
            except (OperationalError, DBAPIError, OSError) as exc:  # pragma: no cover - depends on timing
                if attempt >= self.init_max_attempts:
                    logger.exception("Database not reachable after %s attempts", attempt)
                    raise
                wait_time = self.init_retry_seconds * min(2 ** (attempt - 1), 8)
                logger.warning(
                    "Database not ready (attempt %s/%s): %s. Retrying in %.1f seconds...",
                    attempt,
                    self.init_max_attempts,
                    exc,
                    wait_time,
                )
                await asyncio.sleep(wait_time)
            else:
                return

    async def close(self) -> None:
        await self.engine.dispose()

    # ---- teams -------------------------------------------------------

    async def create_team(
        self,
        payload: TeamCreate,
        *,
        status: str,
        bank_slip: Optional["StoredFile"] = None,
    ) -> TeamRead:
        row = Team(
            team_name=payload.team_name,
            team_name_key=team_name_key(payload.team_name),
            game=payload.game,
            captain_email=str(payload.captain_email),
            captain_phone=payload.captain_phone,
            players=[player.model_dump() for player in payload.players],
            status=status,
            queued_at=utcnow() if status == "queued" else None,
        )
        if bank_slip is not None:
            row.bank_slip_file_id = bank_slip.file_id
            row.bank_slip_file_name = bank_slip.filename
            row.bank_slip_content_type = bank_slip.content_type

        async with self.session_factory() as session:
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateTeamNameError(payload.team_name) from exc
            return _team_record(row)

    async def get_team(self, team_id: str) -> Optional[TeamRead]:
        async with self.session_factory() as session:
            row = await session.get(Team, team_id)
            return _team_record(row) if row else None

    async def get_team_by_name(self, team_name: str) -> Optional[TeamRead]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Team).where(Team.team_name_key == team_name_key(team_name))
            )
            row = result.scalar_one_or_none()
            return _team_record(row) if row else None

    async def list_teams(self) -> List[TeamRead]:
        async with self.session_factory() as session:
            result = await session.execute(select(Team).order_by(Team.registered_at.desc()))
            return [_team_record(row) for row in result.scalars().all()]

    async def delete_team(self, team_id: str) -> Optional[TeamRead]:
        async with self.session_factory() as session:
            row = await session.get(Team, team_id)
            if row is None:
                return None
            deleted = _team_record(row)
            await session.delete(row)
            await session.commit()
            return deleted

    async def count_teams(self, game: str, statuses: Iterable[str]) -> int:
        async with self.session_factory() as session:
            count = await session.scalar(
                select(func.count(Team.id)).where(Team.game == game, Team.status.in_(list(statuses)))
            )
            return int(count or 0)

    async def list_queued_teams(self, game: str) -> List[TeamRead]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Team)
                .where(Team.game == game, Team.status == "queued")
                .order_by(Team.queued_at.asc())
            )
            return [_team_record(row) for row in result.scalars().all()]

    async def set_team_status(
        self, team_id: str, status: str, *, approved_by: Optional[str] = None
    ) -> Optional[TeamRead]:
        async with self.session_factory() as session:
            row = await session.get(Team, team_id)
            if row is None:
                return None
            row.status = status
            if status == "approved":
                row.approved_by = approved_by
                row.approved_at = utcnow()
            await session.commit()
            return _team_record(row)

    async def get_file_owner(self, file_id: str) -> Optional[TeamRead]:
        async with self.session_factory() as session:
            result = await session.execute(select(Team).where(Team.bank_slip_file_id == file_id))
            row = result.scalars().first()
            return _team_record(row) if row else None

    # ---- reaction game scores ---------------------------------------

    async def create_score(self, payload: GameScoreCreate) -> GameScoreRead:
        row = GameScore(
            player_name=payload.player_name,
            score=payload.score,
            score_value=score_value(payload.score),
            game_type=payload.game_type,
        )
        async with self.session_factory() as session:
            session.add(row)
            await session.commit()
            return _score_record(row)

    async def top_scores(self, game_type: str, limit: int) -> List[GameScoreRead]:
        query = (
            select(GameScore)
            .where(GameScore.game_type == game_type)
            .order_by(GameScore.score_value.is_(None), GameScore.score_value.asc(), GameScore.score.asc())
            .limit(max(limit, 0))
        )
        async with self.session_factory() as session:
            result = await session.execute(query)
            return [_score_record(row) for row in result.scalars().all()]

    async def list_scores(self) -> List[GameScoreRead]:
        async with self.session_factory() as session:
            result = await session.execute(select(GameScore).order_by(GameScore.created_at.desc()))
            return [_score_record(row) for row in result.scalars().all()]

    async def delete_score(self, score_id: str) -> bool:
        async with self.session_factory() as session:
            row = await session.get(GameScore, score_id)
            if row is None:
                return False
            await session.delete(row)
            await session.commit()
            return True

    # ---- admin accounts ---------------------------------------------

    async def create_user(
        self, *, username: str, password_hash: str, role: str, is_active: bool = True
    ) -> UserRecord:
        row = User(username=username, password_hash=password_hash, role=role, is_active=is_active)
        async with self.session_factory() as session:
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateUsernameError(username) from exc
            return _user_record(row)

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        async with self.session_factory() as session:
            row = await session.get(User, user_id)
            return _user_record(row) if row else None

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        async with self.session_factory() as session:
            result = await session.execute(select(User).where(User.username == username))
            row = result.scalar_one_or_none()
            return _user_record(row) if row else None

    async def list_users(self) -> List[UserRead]:
        async with self.session_factory() as session:
            result = await session.execute(select(User).order_by(User.created_at.asc()))
            return [_user_record(row).public() for row in result.scalars().all()]

    async def update_user(self, user_id: str, changes: UserUpdate) -> Optional[UserRecord]:
        async with self.session_factory() as session:
            row = await session.get(User, user_id)
            if row is None:
                return None
            if changes.role is not None:
                row.role = changes.role
            if changes.is_active is not None:
                row.is_active = changes.is_active
            await session.commit()
            return _user_record(row)

    async def delete_user(self, user_id: str) -> bool:
        async with self.session_factory() as session:
            row = await session.get(User, user_id)
            if row is None:
                return False
            await session.delete(row)
            await session.commit()
            return True

    async def touch_last_login(self, user_id: str) -> None:
        async with self.session_factory() as session:
            await session.execute(update(User).where(User.id == user_id).values(last_login=utcnow()))
            await session.commit()

    # ---- secret challenge -------------------------------------------

    async def create_secret_challenge(self, payload: SecretChallengeCreate) -> SecretChallengeRead:
        row = SecretChallenge(player_email=email_key(str(payload.player_email)), score=payload.score)
        async with self.session_factory() as session:
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateEntryError("Player has already completed the secret challenge") from exc
            return _secret_record(row)

    async def secret_leaderboard(self, limit: int) -> List[SecretChallengeRead]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(SecretChallenge)
                .order_by(SecretChallenge.score.desc(), SecretChallenge.completed_at.asc())
                .limit(limit)
            )
            return [_secret_record(row) for row in result.scalars().all()]

    async def has_completed_secret(self, player_email: str) -> bool:
        async with self.session_factory() as session:
            found = await session.scalar(
                select(SecretChallenge.id).where(SecretChallenge.player_email == email_key(player_email))
            )
            return found is not None
