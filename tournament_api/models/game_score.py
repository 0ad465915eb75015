from sqlalchemy import Column, DateTime, Float, String

from tournament_api.database import Base
from tournament_api.ids import new_object_id
from tournament_api.models.team import utcnow


class GameScore(Base):
    __tablename__ = "game_scores"

    id = Column(String(24), primary_key=True, default=new_object_id)
    player_name = Column(String(50), nullable=False)
    # Formatted elapsed time for the reaction game, e.g. "0.812s"
    score = Column(String(32), nullable=False)
    # Leading number of score; NULL sorts last on the leaderboard
    score_value = Column(Float, nullable=True, index=True)
    game_type = Column(String(50), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
