# tournament_api/routes/admin.py
"""Admin dashboard: teams, the COD queue, reaction scores and admin accounts."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from tournament_api.config import Settings
from tournament_api.deps.security import get_file_store, get_settings, get_storage, require_roles
from tournament_api.roles import BASE_ADMIN_ROLES, USER_ADMIN_ROLES, USER_VIEW_ROLES
from tournament_api.schemas import UserCreate, UserUpdate
from tournament_api.security import hash_password
from tournament_api.services.file_store import FileStore
from tournament_api.storage.base import CONFIRMED_STATUSES, DuplicateUsernameError, TournamentStorage
from tournament_api.tokens import SessionClaims

logger = logging.getLogger("admin")

router = APIRouter(prefix="/api/admin", tags=["Admin"])

require_admin = require_roles(BASE_ADMIN_ROLES)
require_user_viewer = require_roles(USER_VIEW_ROLES)
require_user_admin = require_roles(USER_ADMIN_ROLES)


# ---------------------------
# Teams
# ---------------------------

@router.get("/teams")
async def list_teams(
    storage: TournamentStorage = Depends(get_storage),
    _: SessionClaims = Depends(require_admin),
):
    return [team.model_dump(mode="json", by_alias=True) for team in await storage.list_teams()]


@router.delete("/teams/{team_id:objectid}")
async def delete_team(
    team_id: str,
    storage: TournamentStorage = Depends(get_storage),
    file_store: FileStore = Depends(get_file_store),
    claims: SessionClaims = Depends(require_admin),
):
    team = await storage.delete_team(team_id)
    if team is None:
        raise HTTPException(status_code=404, detail="Team not found")

    if team.bank_slip_file_id:
        try:
            await file_store.delete(team.bank_slip_file_id)
        except Exception as exc:
            logger.warning("Could not delete payment proof %s: %s", team.bank_slip_file_id, exc)

    logger.info("Team %s deleted by %s", team.team_name, claims.username)
    return {"message": "Team deleted successfully"}


@router.get("/cod-queue")
async def cod_queue(
    storage: TournamentStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
    _: SessionClaims = Depends(require_admin),
):
    queued = await storage.list_queued_teams("cod")
    confirmed = await storage.count_teams("cod", CONFIRMED_STATUSES)
    return {
        "queue": [team.model_dump(mode="json", by_alias=True) for team in queued],
        "confirmed": confirmed,
        "maxTeams": settings.cod_max_teams,
        "maxQueue": settings.cod_max_queue,
    }


@router.post("/teams/{team_id:objectid}/approve")
async def approve_team(
    team_id: str,
    storage: TournamentStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
    claims: SessionClaims = Depends(require_admin),
):
    team = await storage.get_team(team_id)
    if team is None:
        raise HTTPException(status_code=404, detail="Team not found")
    if team.status != "queued":
        raise HTTPException(status_code=400, detail="Only queued teams can be approved")
    if await storage.count_teams(team.game, CONFIRMED_STATUSES) >= settings.cod_max_teams:
        raise HTTPException(status_code=400, detail="Tournament is full. Cannot approve more teams.")

    team = await storage.set_team_status(team_id, "approved", approved_by=claims.username)
    logger.info("Team %s approved by %s", team.team_name, claims.username)
    return {"message": "Team approved successfully", "team": team.model_dump(mode="json", by_alias=True)}


@router.post("/teams/{team_id:objectid}/reject")
async def reject_team(
    team_id: str,
    storage: TournamentStorage = Depends(get_storage),
    claims: SessionClaims = Depends(require_admin),
):
    team = await storage.get_team(team_id)
    if team is None:
        raise HTTPException(status_code=404, detail="Team not found")
    if team.status != "queued":
        raise HTTPException(status_code=400, detail="Only queued teams can be rejected")

    await storage.set_team_status(team_id, "rejected")
    logger.info("Team %s rejected by %s", team.team_name, claims.username)
    return {"message": "Team rejected"}


# ---------------------------
# Reaction game scores
# ---------------------------

@router.get("/scores")
async def list_scores(
    storage: TournamentStorage = Depends(get_storage),
    _: SessionClaims = Depends(require_admin),
):
    return [score.model_dump(mode="json", by_alias=True) for score in await storage.list_scores()]


@router.delete("/scores/{score_id:objectid}")
async def delete_score(
    score_id: str,
    storage: TournamentStorage = Depends(get_storage),
    _: SessionClaims = Depends(require_admin),
):
    if not await storage.delete_score(score_id):
        raise HTTPException(status_code=404, detail="Score not found")
    return {"message": "Score deleted successfully"}


# ---------------------------
# Admin accounts
# ---------------------------

@router.get("/users")
async def list_users(
    storage: TournamentStorage = Depends(get_storage),
    _: SessionClaims = Depends(require_user_viewer),
):
    return [user.model_dump(mode="json", by_alias=True) for user in await storage.list_users()]


@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    storage: TournamentStorage = Depends(get_storage),
    claims: SessionClaims = Depends(require_user_admin),
):
    try:
        user = await storage.create_user(
            username=payload.username,
            password_hash=hash_password(payload.password),
            role=payload.role,
        )
    except DuplicateUsernameError:
        raise HTTPException(status_code=400, detail="Username already exists")

    logger.info("User %s (%s) created by %s", user.username, user.role, claims.username)
    return {"message": "User created successfully", "user": user.public().model_dump(mode="json", by_alias=True)}


@router.put("/users/{user_id:objectid}")
async def update_user(
    user_id: str,
    payload: UserUpdate,
    storage: TournamentStorage = Depends(get_storage),
    claims: SessionClaims = Depends(require_user_admin),
):
    if user_id == claims.user_id and payload.is_active is False:
        raise HTTPException(status_code=400, detail="Cannot deactivate your own account")

    user = await storage.update_user(user_id, payload)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return {"message": "User updated successfully", "user": user.public().model_dump(mode="json", by_alias=True)}


@router.delete("/users/{user_id:objectid}")
async def delete_user(
    user_id: str,
    storage: TournamentStorage = Depends(get_storage),
    claims: SessionClaims = Depends(require_user_admin),
):
    if user_id == claims.user_id:
        raise HTTPException(status_code=400, detail="Cannot delete your own account")
    if not await storage.delete_user(user_id):
        raise HTTPException(status_code=404, detail="User not found")

    logger.info("User %s deleted by %s", user_id, claims.username)
    return {"message": "User deleted successfully"}
