from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from tournament_api.config import Settings
from tournament_api.deps.security import get_settings, get_storage
from tournament_api.storage.base import TournamentStorage

router = APIRouter(prefix="/api", tags=["Health"])


@router.get("/health")
async def health(
    settings: Settings = Depends(get_settings),
    storage: TournamentStorage = Depends(get_storage),
):
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "storage": storage.backend_name,
        "hasDatabaseUrl": settings.database_configured,
        "hasSessionSecret": settings.session_secret_configured,
    }
