"""FastAPI dependencies shared by the routers."""

from .security import (
    get_file_store,
    get_session,
    get_settings,
    get_storage,
    require_roles,
    token_from_request,
)

__all__ = [
    "get_file_store",
    "get_session",
    "get_settings",
    "get_storage",
    "require_roles",
    "token_from_request",
]
