from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Index, String

from tournament_api.database import Base
from tournament_api.ids import new_object_id


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Team(Base):
    __tablename__ = "teams"

    id = Column(String(24), primary_key=True, default=new_object_id)
    team_name = Column(String(20), nullable=False)
    # Lower-cased name; the unique index is what actually prevents duplicates.
    team_name_key = Column(String(20), nullable=False, unique=True)
    game = Column(String(16), nullable=False, index=True)
    captain_email = Column(String(255), nullable=False)
    captain_phone = Column(String(15), nullable=False)
    # Five {"name", "gaming_id", "valorant_id"} entries
    players = Column(JSON, nullable=False)

    bank_slip_file_id = Column(String(24), nullable=True, index=True)
    bank_slip_file_name = Column(String(255), nullable=True)
    bank_slip_content_type = Column(String(64), nullable=True)

    status = Column(String(16), nullable=False, default="confirmed", index=True)
    queued_at = Column(DateTime(timezone=True), nullable=True)
    approved_by = Column(String(50), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    registered_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_teams_game_status", "game", "status"),
    )

    def __repr__(self) -> str:
        return f"<Team id={self.id} name={self.team_name!r} game={self.game} status={self.status}>"
