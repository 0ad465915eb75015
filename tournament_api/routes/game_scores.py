import logging

from fastapi import APIRouter, Depends, HTTPException, status

from tournament_api.config import Settings
from tournament_api.deps.security import get_settings, get_storage
from tournament_api.schemas import GameScoreCreate
from tournament_api.storage.base import TournamentStorage

logger = logging.getLogger("scores")

router = APIRouter(prefix="/api/game-scores", tags=["Game Scores"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_score(payload: GameScoreCreate, storage: TournamentStorage = Depends(get_storage)):
    try:
        score = await storage.create_score(payload)
    except Exception:
        logger.error("Error saving game score", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
    return score.model_dump(mode="json", by_alias=True)


@router.get("/leaderboard/{game_type}")
async def leaderboard(
    game_type: str,
    storage: TournamentStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    """Best scores first; the list is capped and not paginated."""
    scores = await storage.top_scores(game_type, settings.leaderboard_limit)
    return [score.model_dump(mode="json", by_alias=True) for score in scores]
