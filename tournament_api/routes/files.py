import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from tournament_api.deps.security import get_file_store, get_storage, require_roles
from tournament_api.roles import BASE_ADMIN_ROLES
from tournament_api.services.file_store import FileNotStoredError, FileStore
from tournament_api.storage.base import TournamentStorage
from tournament_api.tokens import SessionClaims

logger = logging.getLogger("files")

router = APIRouter(prefix="/api/admin/files", tags=["Admin: Files"])

require_admin = require_roles(BASE_ADMIN_ROLES)


def _content_disposition(filename: str, download: bool) -> str:
    disposition = "attachment" if download else "inline"
    ascii_name = filename.encode("ascii", "ignore").decode().replace('"', "") or "file"
    return f"{disposition}; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"


@router.get("")
async def list_files(
    storage: TournamentStorage = Depends(get_storage),
    _: SessionClaims = Depends(require_admin),
):
    """Every uploaded payment proof with the team it belongs to."""
    return [info.model_dump(mode="json", by_alias=True) for info in await storage.list_files()]


@router.get("/{file_id:objectid}")
async def get_file(
    file_id: str,
    download: bool = False,
    storage: TournamentStorage = Depends(get_storage),
    file_store: FileStore = Depends(get_file_store),
    _: SessionClaims = Depends(require_admin),
):
    team = await storage.get_file_owner(file_id)
    if team is None:
        raise HTTPException(status_code=404, detail="File not found")

    try:
        data = await file_store.read(file_id)
    except FileNotStoredError:
        logger.warning("Team %s references missing file %s", team.team_name, file_id)
        raise HTTPException(status_code=404, detail="File not found")

    filename = team.bank_slip_file_name or file_id
    return Response(
        content=data,
        media_type=team.bank_slip_content_type or "application/octet-stream",
        headers={"Content-Disposition": _content_disposition(filename, download)},
    )
