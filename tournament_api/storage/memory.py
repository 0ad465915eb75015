"""In-process storage backend for tests and local demos. Data lives as long as the object."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

from tournament_api.ids import new_object_id
from tournament_api.leaderboard import best_first
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


class InMemoryStorage(TournamentStorage):
    backend_name = "memory"

    def __init__(self) -> None:
        self.teams: Dict[str, TeamRead] = {}
        self.scores: Dict[str, GameScoreRead] = {}
        self.users: Dict[str, UserRecord] = {}
        self.secret_challenges: Dict[str, SecretChallengeRead] = {}

    # ---- teams -------------------------------------------------------

    async def create_team(
        self,
        payload: TeamCreate,
        *,
        status: str,
        bank_slip: Optional["StoredFile"] = None,
    ) -> TeamRead:
        key = team_name_key(payload.team_name)
        if any(team_name_key(team.team_name) == key for team in self.teams.values()):
            raise DuplicateTeamNameError(payload.team_name)

        now = utcnow()
        team = TeamRead(
            id=new_object_id(),
            team_name=payload.team_name,
            game=payload.game,
            captain_email=str(payload.captain_email),
            captain_phone=payload.captain_phone,
            players=[player.model_copy() for player in payload.players],
            bank_slip_file_id=bank_slip.file_id if bank_slip else None,
            bank_slip_file_name=bank_slip.filename if bank_slip else None,
            bank_slip_content_type=bank_slip.content_type if bank_slip else None,
            status=status,
            queued_at=now if status == "queued" else None,
            registered_at=now,
        )
        self.teams[team.id] = team
        return team.model_copy(deep=True)

    async def get_team(self, team_id: str) -> Optional[TeamRead]:
        team = self.teams.get(team_id)
        return team.model_copy(deep=True) if team else None

    async def get_team_by_name(self, team_name: str) -> Optional[TeamRead]:
        key = team_name_key(team_name)
        for team in self.teams.values():
            if team_name_key(team.team_name) == key:
                return team.model_copy(deep=True)
        return None

    async def list_teams(self) -> List[TeamRead]:
        ordered = sorted(self.teams.values(), key=lambda team: team.registered_at, reverse=True)
        return [team.model_copy(deep=True) for team in ordered]

    async def delete_team(self, team_id: str) -> Optional[TeamRead]:
        return self.teams.pop(team_id, None)

    async def count_teams(self, game: str, statuses: Iterable[str]) -> int:
        wanted = set(statuses)
        return sum(1 for team in self.teams.values() if team.game == game and team.status in wanted)

    async def list_queued_teams(self, game: str) -> List[TeamRead]:
        queued = [team for team in self.teams.values() if team.game == game and team.status == "queued"]
        queued.sort(key=lambda team: team.queued_at or team.registered_at)
        return [team.model_copy(deep=True) for team in queued]

    async def set_team_status(
        self, team_id: str, status: str, *, approved_by: Optional[str] = None
    ) -> Optional[TeamRead]:
        team = self.teams.get(team_id)
        if team is None:
            return None
        changes = {"status": status}
        if status == "approved":
            changes.update(approved_by=approved_by, approved_at=utcnow())
        self.teams[team_id] = team.model_copy(update=changes)
        return self.teams[team_id].model_copy(deep=True)

    # ---- reaction game scores ---------------------------------------

    async def create_score(self, payload: GameScoreCreate) -> GameScoreRead:
        score = GameScoreRead(
            id=new_object_id(),
            player_name=payload.player_name,
            score=payload.score,
            game_type=payload.game_type,
            created_at=utcnow(),
        )
        self.scores[score.id] = score
        return score

    async def top_scores(self, game_type: str, limit: int) -> List[GameScoreRead]:
        return best_first([s for s in self.scores.values() if s.game_type == game_type], limit)

    async def list_scores(self) -> List[GameScoreRead]:
        return sorted(self.scores.values(), key=lambda score: score.created_at, reverse=True)

    async def delete_score(self, score_id: str) -> bool:
        return self.scores.pop(score_id, None) is not None

    # ---- admin accounts ---------------------------------------------

    async def create_user(
        self, *, username: str, password_hash: str, role: str, is_active: bool = True
    ) -> UserRecord:
        if any(user.username == username for user in self.users.values()):
            raise DuplicateUsernameError(username)
        user = UserRecord(
            id=new_object_id(),
            username=username,
            password_hash=password_hash,
            role=role,
            is_active=is_active,
            created_at=utcnow(),
        )
        self.users[user.id] = user
        return user

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        return self.users.get(user_id)

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        for user in self.users.values():
            if user.username == username:
                return user
        return None

    async def list_users(self) -> List[UserRead]:
        ordered = sorted(self.users.values(), key=lambda user: user.created_at)
        return [user.public() for user in ordered]

    async def update_user(self, user_id: str, changes: UserUpdate) -> Optional[UserRecord]:
        user = self.users.get(user_id)
        if user is None:
            return None
        self.users[user_id] = user.model_copy(update=changes.model_dump(exclude_none=True))
        return self.users[user_id]

    async def delete_user(self, user_id: str) -> bool:
        return self.users.pop(user_id, None) is not None

    async def touch_last_login(self, user_id: str) -> None:
        user = self.users.get(user_id)
        if user is not None:
            self.users[user_id] = user.model_copy(update={"last_login": utcnow()})

    # ---- secret challenge -------------------------------------------

    async def create_secret_challenge(self, payload: SecretChallengeCreate) -> SecretChallengeRead:
        email = email_key(str(payload.player_email))
        if await self.has_completed_secret(email):
            raise DuplicateEntryError("Player has already completed the secret challenge")
        entry = SecretChallengeRead(
            id=new_object_id(),
            player_email=email,
            score=payload.score,
            completed_at=utcnow(),
        )
        self.secret_challenges[entry.id] = entry
        return entry

    async def secret_leaderboard(self, limit: int) -> List[SecretChallengeRead]:
        ordered = sorted(
            self.secret_challenges.values(),
            key=lambda entry: (-entry.score, entry.completed_at),
        )
        return ordered[:limit]

    async def has_completed_secret(self, player_email: str) -> bool:
        key = email_key(player_email)
        return any(entry.player_email == key for entry in self.secret_challenges.values())
