from sqlalchemy import Column, DateTime, Integer, String

from tournament_api.database import Base
from tournament_api.ids import new_object_id
from tournament_api.models.team import utcnow


class SecretChallenge(Base):
    __tablename__ = "secret_challenges"

    id = Column(String(24), primary_key=True, default=new_object_id)
    player_email = Column(String(100), unique=True, nullable=False)
    score = Column(Integer, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
