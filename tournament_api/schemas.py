# tournament_api/schemas.py
# ------------------------------------------------------------
# Pydantic v2 schemas, organized by domain
# ------------------------------------------------------------
from datetime import datetime
import re
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel

from tournament_api.roles import Role


PLAYER_SLOTS = 5
GAMES = ("valorant", "cod")
Game = Literal["valorant", "cod"]
TeamStatus = Literal["confirmed", "queued", "approved", "rejected"]

_CONTROL_CHAR_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")
_SCRIPT_TAG_RE = re.compile(r"<\s*/?\s*script", re.IGNORECASE)


def _sanitize_single_line_text(value: Any, *, allow_empty: bool = False, allow_angle_brackets: bool = False) -> Any:
    # Non-strings are left for pydantic's own type check to reject.
    if not isinstance(value, str):
        return value
    cleaned = _CONTROL_CHAR_RE.sub("", value).strip()
    if not allow_empty and not cleaned:
        raise ValueError("Value cannot be empty")
    if any(ch in {"\n", "\r"} for ch in cleaned):
        raise ValueError("Value must be a single line of text")
    if not allow_angle_brackets and ("<" in cleaned or ">" in cleaned):
        raise ValueError("HTML tags are not allowed in this field")
    if _SCRIPT_TAG_RE.search(cleaned):
        raise ValueError("Script tags are not allowed")
    return cleaned


class CamelModel(BaseModel):
    """Snake-case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================
# Teams
# ============================================================

class Player(CamelModel):
    name: str = Field(min_length=1, max_length=50)
    gaming_id: str = Field(min_length=1, max_length=50)
    valorant_id: Optional[str] = Field(default=None, max_length=50)

    @field_validator("name", "gaming_id", mode="before")
    @classmethod
    def _clean_text(cls, value: Any) -> Any:
        return _sanitize_single_line_text(value, allow_angle_brackets=True)

    @field_validator("valorant_id", mode="before")
    @classmethod
    def _blank_is_absent(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = _sanitize_single_line_text(value, allow_empty=True, allow_angle_brackets=True)
            return value or None
        return value


def flat_player_field(index: int, attribute: str) -> str:
    """Form field name for a player attribute, e.g. ``(2, "gamingId") -> "player3GamingId"``."""
    return f"player{index + 1}{attribute[:1].upper()}{attribute[1:]}"


class TeamCreate(CamelModel):
    team_name: str = Field(min_length=3, max_length=20)
    captain_email: EmailStr
    captain_phone: str = Field(min_length=10, max_length=15)
    players: List[Player] = Field(min_length=PLAYER_SLOTS, max_length=PLAYER_SLOTS)
    # Declared after ``players`` so its validator can see them.
    game: Game

    @model_validator(mode="before")
    @classmethod
    def _fold_flat_players(cls, data: Any) -> Any:
        """Accept the registration form's flat ``player1Name``/``player1GamingId``/... fields."""
        if not isinstance(data, dict) or "players" in data:
            return data
        data = dict(data)
        players = []
        for index in range(PLAYER_SLOTS):
            player = {}
            for attribute in ("name", "gamingId", "valorantId"):
                value = data.pop(flat_player_field(index, attribute), None)
                if value is not None:
                    player[attribute] = value
            players.append(player)
        data["players"] = players
        return data

    @field_validator("team_name", "captain_phone", mode="before")
    @classmethod
    def _clean_text(cls, value: Any) -> Any:
        return _sanitize_single_line_text(value)

    @field_validator("game", mode="before")
    @classmethod
    def _normalize_game(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("game")
    @classmethod
    def _valorant_ids_required(cls, value: str, info: ValidationInfo) -> str:
        players = info.data.get("players")
        if value == "valorant" and players:
            if any(not player.valorant_id for player in players):
                raise ValueError(
                    "Valorant user IDs are required for all players "
                    "when registering for Valorant tournament"
                )
        return value


class TeamRead(CamelModel):
    id: str = Field(alias="_id")
    team_name: str
    game: Game
    captain_email: str
    captain_phone: str
    players: List[Player]
    bank_slip_file_id: Optional[str] = None
    bank_slip_file_name: Optional[str] = None
    bank_slip_content_type: Optional[str] = None
    status: TeamStatus = "confirmed"
    queued_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    registered_at: datetime


class FileInfo(CamelModel):
    id: str = Field(alias="_id")
    filename: Optional[str] = None
    content_type: Optional[str] = None
    team_id: str
    team_name: str
    uploaded_at: datetime


# ============================================================
# Reaction game scores
# ============================================================

class GameScoreCreate(CamelModel):
    player_name: str = Field(min_length=1, max_length=50)
    score: str = Field(min_length=1, max_length=32)
    game_type: str = Field(min_length=1, max_length=50)

    @field_validator("player_name", "score", "game_type", mode="before")
    @classmethod
    def _clean_text(cls, value: Any) -> Any:
        return _sanitize_single_line_text(value)


class GameScoreRead(CamelModel):
    id: str = Field(alias="_id")
    player_name: str
    score: str
    game_type: str
    created_at: datetime


# ============================================================
# Secret challenge
# ============================================================

class SecretChallengeCreate(CamelModel):
    player_email: EmailStr
    score: int = Field(ge=0, le=2000)

    @field_validator("player_email", mode="before")
    @classmethod
    def _email_length(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            if len(value) < 5:
                raise ValueError("Email too short")
            if len(value) > 100:
                raise ValueError("Email too long")
        return value

    @field_validator("player_email")
    @classmethod
    def _lowercase_email(cls, value: str) -> str:
        return value.lower()


class SecretChallengeRead(CamelModel):
    id: str = Field(alias="_id")
    player_email: str
    score: int
    completed_at: datetime


# ============================================================
# Admin accounts
# ============================================================

class LoginRequest(BaseModel):
    username: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=1, max_length=128)


class UserCreate(BaseModel):
    username: str = Field(min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_]+$")
    password: str = Field(min_length=6, max_length=100)
    role: Role


class UserUpdate(CamelModel):
    role: Optional[Role] = None
    is_active: Optional[bool] = None


class UserRead(CamelModel):
    id: str = Field(alias="_id")
    username: str
    role: Role
    is_active: bool = True
    created_at: datetime
    last_login: Optional[datetime] = None


class UserRecord(UserRead):
    """A stored account including its password hash. Never returned by a route."""

    password_hash: str

    def public(self) -> UserRead:
        return UserRead.model_validate(self.model_dump(exclude={"password_hash"}))
