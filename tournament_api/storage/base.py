"""The storage-adapter interface every backend implements."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Optional

from tournament_api.schemas import (
    FileInfo,
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

if TYPE_CHECKING:
    from tournament_api.services.file_store import StoredFile

# Statuses that occupy a tournament slot (as opposed to waiting in the queue).
CONFIRMED_STATUSES = ("confirmed", "approved")


class StorageError(Exception):
    """Base class for business conditions raised by a storage backend."""


class DuplicateTeamNameError(StorageError):
    def __init__(self, team_name: str) -> None:
        super().__init__(f"Team name already exists: {team_name}")
        self.team_name = team_name


class DuplicateUsernameError(StorageError):
    def __init__(self, username: str) -> None:
        super().__init__(f"Username already exists: {username}")
        self.username = username


class DuplicateEntryError(StorageError):
    """A one-per-player record (the secret challenge) already exists."""


def team_name_key(team_name: str) -> str:
    return (team_name or "").strip().lower()


def email_key(email: str) -> str:
    """Secret-challenge entries are one per address, whatever its case."""
    return (email or "").strip().lower()


class TournamentStorage:
    backend_name = "base"

    async def initialize(self) -> None:
        return None

    async def close(self) -> None:
        return None

    # ---- teams -------------------------------------------------------

    async def create_team(
        self,
        payload: TeamCreate,
        *,
        status: str,
        bank_slip: Optional["StoredFile"] = None,
    ) -> TeamRead:  # pragma: no cover - interface only
        raise NotImplementedError

    async def get_team(self, team_id: str) -> Optional[TeamRead]:  # pragma: no cover
        raise NotImplementedError

    async def get_team_by_name(self, team_name: str) -> Optional[TeamRead]:  # pragma: no cover
        raise NotImplementedError

    async def list_teams(self) -> List[TeamRead]:  # pragma: no cover
        raise NotImplementedError

    async def delete_team(self, team_id: str) -> Optional[TeamRead]:  # pragma: no cover
        """Delete a team and return what was deleted, or ``None`` if it did not exist."""
        raise NotImplementedError

    async def count_teams(self, game: str, statuses: Iterable[str]) -> int:  # pragma: no cover
        raise NotImplementedError

    async def list_queued_teams(self, game: str) -> List[TeamRead]:  # pragma: no cover
        raise NotImplementedError

    async def set_team_status(
        self, team_id: str, status: str, *, approved_by: Optional[str] = None
    ) -> Optional[TeamRead]:  # pragma: no cover
        raise NotImplementedError

    async def team_exists(self, team_name: str) -> bool:
        return await self.get_team_by_name(team_name) is not None

    async def list_files(self) -> List[FileInfo]:
        return [
            FileInfo(
                id=team.bank_slip_file_id,
                filename=team.bank_slip_file_name,
                content_type=team.bank_slip_content_type,
                team_id=team.id,
                team_name=team.team_name,
                uploaded_at=team.registered_at,
            )
            for team in await self.list_teams()
            if team.bank_slip_file_id
        ]

    async def get_file_owner(self, file_id: str) -> Optional[TeamRead]:
        for team in await self.list_teams():
            if team.bank_slip_file_id == file_id:
                return team
        return None

    # ---- reaction game scores ---------------------------------------

    async def create_score(self, payload: GameScoreCreate) -> GameScoreRead:  # pragma: no cover
        raise NotImplementedError

    async def top_scores(self, game_type: str, limit: int) -> List[GameScoreRead]:  # pragma: no cover
        raise NotImplementedError

    async def list_scores(self) -> List[GameScoreRead]:  # pragma: no cover
        raise NotImplementedError

    async def delete_score(self, score_id: str) -> bool:  # pragma: no cover
        raise NotImplementedError

    # ---- admin accounts ---------------------------------------------

    async def create_user(
        self, *, username: str, password_hash: str, role: str, is_active: bool = True
    ) -> UserRecord:  # pragma: no cover
        raise NotImplementedError

    async def get_user(self, user_id: str) -> Optional[UserRecord]:  # pragma: no cover
        raise NotImplementedError

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:  # pragma: no cover
        raise NotImplementedError

    async def list_users(self) -> List[UserRead]:  # pragma: no cover
        raise NotImplementedError

    async def update_user(self, user_id: str, changes: UserUpdate) -> Optional[UserRecord]:  # pragma: no cover
        raise NotImplementedError

    async def delete_user(self, user_id: str) -> bool:  # pragma: no cover
        raise NotImplementedError

    async def touch_last_login(self, user_id: str) -> None:  # pragma: no cover
        raise NotImplementedError

    # ---- secret challenge -------------------------------------------

    async def create_secret_challenge(
        self, payload: SecretChallengeCreate
    ) -> SecretChallengeRead:  # pragma: no cover
        raise NotImplementedError

    async def secret_leaderboard(self, limit: int) -> List[SecretChallengeRead]:  # pragma: no cover
        raise NotImplementedError

    async def has_completed_secret(self, player_email: str) -> bool:  # pragma: no cover
        raise NotImplementedError
