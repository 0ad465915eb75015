import logging

from fastapi import APIRouter, Depends, HTTPException, status

from tournament_api.deps.security import get_storage
from tournament_api.schemas import SecretChallengeCreate
from tournament_api.storage.base import DuplicateEntryError, TournamentStorage

logger = logging.getLogger("secret_challenge")

router = APIRouter(prefix="/api/secret-challenge", tags=["Secret Challenge"])

SECRET_LEADERBOARD_LIMIT = 10


@router.post("", status_code=status.HTTP_201_CREATED)
async def complete_challenge(payload: SecretChallengeCreate, storage: TournamentStorage = Depends(get_storage)):
    try:
        entry = await storage.create_secret_challenge(payload)
    except DuplicateEntryError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="You have already completed the secret challenge!",
        )
    logger.info("Secret challenge completed with score %s", entry.score)
    return {
        "message": "Secret challenge completed successfully!",
        "entry": entry.model_dump(mode="json", by_alias=True),
    }


@router.get("/leaderboard")
async def secret_leaderboard(storage: TournamentStorage = Depends(get_storage)):
    entries = await storage.secret_leaderboard(SECRET_LEADERBOARD_LIMIT)
    return [entry.model_dump(mode="json", by_alias=True) for entry in entries]


@router.get("/check/{email}")
async def check_completion(email: str, storage: TournamentStorage = Depends(get_storage)):
    return {"hasCompleted": await storage.has_completed_secret(email)}
