# tournament_api/routes/teams.py

import logging
import pathlib
import re
import time
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.datastructures import UploadFile

from tournament_api.config import Settings
from tournament_api.deps.security import get_file_store, get_settings, get_storage
from tournament_api.errors import validation_error
from tournament_api.schemas import GAMES, TeamCreate
from tournament_api.services.file_store import FileStore, StoredFile
from tournament_api.storage.base import CONFIRMED_STATUSES, DuplicateTeamNameError, TournamentStorage

logger = logging.getLogger("teams")

ALLOWED_PROOF_TYPES = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/bmp",
        "image/webp",
        "application/pdf",
    }
)
PROOF_FIELD = "bankSlip"
DUPLICATE_NAME_DETAIL = {
    "message": "Team name already exists. Please choose a different name.",
    "field": "teamName",
}

# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------

async def read_submission(request: Request) -> Tuple[Dict[str, Any], Optional[UploadFile]]:
    """Form fields plus the optional payment-proof upload, from a JSON or multipart body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        fields: Dict[str, Any] = {}
        upload = None
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if key == PROOF_FIELD and value.filename:
                    upload = value
            else:
                fields[key] = value
        return fields, upload

    try:
        body = await request.json()
    except ValueError:
        raise validation_error("body", "Request body must be JSON or multipart form data")
    if not isinstance(body, dict):
        raise validation_error("body", "Request body must be a JSON object")
    return body, None


async def read_payment_proof(upload: UploadFile, max_bytes: int) -> Tuple[bytes, str]:
    content_type = (upload.content_type or "").split(";")[0].strip().lower()
    if content_type not in ALLOWED_PROOF_TYPES:
        raise validation_error(
            PROOF_FIELD,
            "Bank slip must be an image file (JPEG, PNG, GIF, BMP, WebP) or PDF file",
        )
    try:
        data = await upload.read(max_bytes + 1)
    finally:
        await upload.close()
    if len(data) > max_bytes:
        raise validation_error(PROOF_FIELD, f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB")
    if not data:
        raise validation_error(PROOF_FIELD, "Uploaded file is empty")
    return data, content_type


def payment_proof_filename(team: TeamCreate, original_name: str) -> str:
    """``<TeamName>-<CaptainName>-<epoch ms><ext>`` with everything but letters and digits stripped."""
    extension = pathlib.Path(original_name or "").suffix.lower()
    if not re.fullmatch(r"\.[a-z0-9]{1,8}", extension):
        extension = ""
    clean_team = re.sub(r"[^A-Za-z0-9]", "", team.team_name)
    clean_leader = re.sub(r"[^A-Za-z0-9]", "", team.players[0].name)
    return f"{clean_team}-{clean_leader}-{int(time.time() * 1000)}{extension}"


async def registration_availability(storage: TournamentStorage, settings: Settings, game: str) -> Dict[str, Any]:
    if not settings.registration_open:
        return {"game": game, "isAvailable": False, "message": "Tournament registration is currently closed."}

    if game == "valorant":
        registered = await storage.count_teams(game, CONFIRMED_STATUSES)
        max_teams = settings.valorant_max_teams
        available = registered < max_teams
        return {
            "game": game,
            "registered": registered,
            "maxTeams": max_teams,
            "isAvailable": available,
            "message": (
                f"Registration is open. {max_teams - registered} spots remaining."
                if available
                else f"Registration is closed for {game}. Maximum {max_teams} teams allowed."
            ),
        }

    confirmed = await storage.count_teams(game, CONFIRMED_STATUSES)
    queued = await storage.count_teams(game, ("queued",))
    available = confirmed < settings.cod_max_teams and queued < settings.cod_max_queue
    if available:
        message = "Registration is open. You will be added to the registration queue."
    elif confirmed >= settings.cod_max_teams:
        message = f"Registration is closed for {game}. Tournament is full."
    else:
        message = f"Registration queue is full for {game}. Please try again later."
    return {
        "game": game,
        "confirmed": confirmed,
        "queued": queued,
        "maxTeams": settings.cod_max_teams,
        "maxQueue": settings.cod_max_queue,
        "isAvailable": available,
        "message": message,
    }

# -------------------------------------------------------------------
# Router
# -------------------------------------------------------------------

router = APIRouter(prefix="/api/teams", tags=["Teams"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def register_team(
    request: Request,
    storage: TournamentStorage = Depends(get_storage),
    file_store: FileStore = Depends(get_file_store),
    settings: Settings = Depends(get_settings),
):
    """
    Register a team. Nothing is uploaded or written until the submission has
    passed validation, the capacity check and the duplicate-name check.
    """
    try:
        if not settings.registration_open:
            raise HTTPException(
                status_code=400,
                detail={"message": "Tournament registration is currently closed.", "field": "general"},
            )

        fields, upload = await read_submission(request)
        try:
            team_in = TeamCreate.model_validate(fields)
        except ValidationError as exc:
            raise RequestValidationError(exc.errors())

        proof: Optional[Tuple[bytes, str]] = None
        if upload is not None:
            proof = await read_payment_proof(upload, settings.max_upload_bytes)
        elif settings.require_payment_proof and team_in.game == "valorant":
            raise validation_error(PROOF_FIELD, "Bank slip is required for Valorant tournament registration")

        availability = await registration_availability(storage, settings, team_in.game)
        if not availability["isAvailable"]:
            raise HTTPException(status_code=400, detail={"message": availability["message"], "field": "game"})

        if await storage.team_exists(team_in.team_name):
            raise HTTPException(status_code=400, detail=DUPLICATE_NAME_DETAIL)

        stored: Optional[StoredFile] = None
        if proof is not None:
            data, content_type = proof
            stored = await file_store.save(data, payment_proof_filename(team_in, upload.filename), content_type)
            logger.info("Stored payment proof %s (%d bytes, %s backend)", stored.file_id, stored.size, stored.backend)

        team_status = "queued" if team_in.game == "cod" else "confirmed"
        try:
            team = await storage.create_team(team_in, status=team_status, bank_slip=stored)
        except DuplicateTeamNameError:
            # Lost a race with a concurrent registration; the unique index caught it.
            if stored is not None:
                logger.warning("Payment proof %s left without a team", stored.file_id)
            raise HTTPException(status_code=400, detail=DUPLICATE_NAME_DETAIL)

    except (HTTPException, RequestValidationError):
        raise
    except Exception:
        logger.error("Error registering team", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    logger.info("Registered team %s (%s, %s)", team.team_name, team.game, team.status)
    body = team.model_dump(mode="json", by_alias=True)
    if team.status == "queued":
        body.update(
            message=(
                "Your team has been added to the COD registration queue. The first teams in the "
                "queue will be contacted with payment details and have 24 hours to complete payment."
            ),
            isQueued=True,
        )
    return JSONResponse(status_code=status.HTTP_201_CREATED, content=body)


@router.get("/check/{team_name}")
async def check_team_name(team_name: str, storage: TournamentStorage = Depends(get_storage)):
    return {"exists": await storage.team_exists(team_name)}


@router.get("/check-availability/{game}")
async def check_availability(
    game: str,
    storage: TournamentStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    if game not in GAMES:
        raise HTTPException(status_code=400, detail="Invalid game type")
    return await registration_availability(storage, settings, game)


@router.get("/stats")
async def team_stats(
    storage: TournamentStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    valorant = await storage.count_teams("valorant", CONFIRMED_STATUSES)
    cod_confirmed = await storage.count_teams("cod", CONFIRMED_STATUSES)
    cod_queued = await storage.count_teams("cod", ("queued",))
    return {
        "valorant": {"registered": valorant, "total": settings.valorant_max_teams},
        "cod": {
            "registered": cod_confirmed + cod_queued,
            "confirmed": cod_confirmed,
            "queued": cod_queued,
            "total": settings.cod_max_teams,
            "maxQueue": settings.cod_max_queue,
        },
    }
