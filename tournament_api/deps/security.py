# tournament_api/deps/security.py
from typing import Callable, Iterable, Optional

from fastapi import Depends, HTTPException, Request, status

from tournament_api.config import Settings
from tournament_api.services.file_store import FileStore
from tournament_api.storage.base import TournamentStorage
from tournament_api.tokens import Invalid, InvalidReason, SessionClaims, verify_token

TOKEN_COOKIE = "token"


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> TournamentStorage:
    return request.app.state.storage


def get_file_store(request: Request) -> FileStore:
    return request.app.state.file_store


def token_from_request(request: Request) -> Optional[str]:
    """Bearer header first, then the session cookie."""
    header = request.headers.get("authorization")
    if header and header.startswith("Bearer "):
        return header[len("Bearer "):].strip() or None
    return request.cookies.get(TOKEN_COOKIE) or None


def get_session(request: Request, settings: Settings = Depends(get_settings)) -> SessionClaims:
    """401 unless the request carries a valid, unexpired token of an active account."""
    token = token_from_request(request)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = verify_token(token, settings.session_secret)
    if isinstance(result, Invalid):
        detail = "Token expired" if result.reason is InvalidReason.EXPIRED else "Invalid or expired token"
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not result.claims.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account is deactivated")
    return result.claims


def require_roles(allowed: Iterable[str]) -> Callable[..., SessionClaims]:
    """Dependency factory: 403 unless the session's role is in ``allowed``."""
    allowed = frozenset(allowed)

    def _require(claims: SessionClaims = Depends(get_session)) -> SessionClaims:
        if claims.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return claims

    _require.allowed_roles = allowed
    return _require
