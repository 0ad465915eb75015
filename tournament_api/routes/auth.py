import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from tournament_api.config import Settings
from tournament_api.deps.security import TOKEN_COOKIE, get_session, get_settings, get_storage
from tournament_api.schemas import LoginRequest, UserRecord
from tournament_api.security import verify_password
from tournament_api.storage.base import TournamentStorage
from tournament_api.tokens import SessionClaims, claims_for_user, issue_token

logger = logging.getLogger("auth")

router = APIRouter(prefix="/api/admin", tags=["Admin: Session"])


async def authenticate(storage: TournamentStorage, username: str, password: str) -> UserRecord | None:
    """The stored account if the credentials match; unknown user and bad password look the same."""
    user = await storage.get_user_by_username(username)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


@router.post("/login")
async def login(
    payload: LoginRequest,
    response: Response,
    storage: TournamentStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    user = await authenticate(storage, payload.username, payload.password)
    if user is None:
        logger.info("Failed admin login for %r", payload.username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account is deactivated")

    await storage.touch_last_login(user.id)

    token = issue_token(
        claims_for_user(user),
        settings.session_secret,
        lifetime_seconds=settings.token_lifetime_seconds,
    )
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        max_age=settings.token_lifetime_seconds,
        path="/",
        httponly=True,
        samesite="strict",
        secure=settings.is_production,
    )
    return {
        "message": "Login successful",
        "user": user.public().model_dump(mode="json", by_alias=True),
        "token": token,
    }


@router.get("/me")
async def read_me(claims: SessionClaims = Depends(get_session)):
    return {"user": claims.model_dump(by_alias=True)}


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(TOKEN_COOKIE, path="/", httponly=True, samesite="strict")
    return {"message": "Logout successful"}
