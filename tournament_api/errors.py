"""Exception handlers: every failure leaves as a JSON body with a stable shape."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tournament_api.routing import route_table
from tournament_api.schemas import flat_player_field

logger = logging.getLogger("errors")

VALIDATION_MESSAGE = "Please fix the following errors:"
# Detail Starlette gives the 404 it raises when no route matches.
ROUTER_NOT_FOUND = "Not Found"


def _field_name(loc: Sequence[Any]) -> str:
    parts = list(loc)
    if parts and parts[0] in {"body", "query", "path", "form"}:
        parts = parts[1:]
    # ("players", 2, "gamingId") is reported the way the form names it: player3GamingId
    if len(parts) >= 3 and parts[0] == "players" and isinstance(parts[1], int):
        return flat_player_field(parts[1], str(parts[2]))
    return ".".join(str(p) for p in parts)


def _error_message(error: Dict[str, Any]) -> str:
    ctx = error.get("ctx") or {}
    # Our own ValueErrors: drop pydantic's "Value error, " prefix.
    if error.get("type") == "value_error" and "error" in ctx:
        return str(ctx["error"])
    return str(error.get("msg", "Invalid value"))


def format_validation_errors(errors: Sequence[Dict[str, Any]]) -> List[Dict[str, str]]:
    return [{"field": _field_name(err.get("loc", ())), "message": _error_message(err)} for err in errors]


def validation_error(field: str, message: str) -> RequestValidationError:
    """A single-field 400 raised outside pydantic (uploads, form parsing)."""
    return RequestValidationError([{"loc": ("body", field), "msg": message, "type": "value_error.custom"}])


def not_found_body(request: Request) -> Dict[str, Any]:
    return {
        "error": "API endpoint not found",
        "availableEndpoints": [route.describe() for route in route_table(request.app)],
        "requestedUrl": request.url.path,
        "method": request.method,
    }


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": VALIDATION_MESSAGE, "errors": format_validation_errors(exc.errors())},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Router-level misses: no route matched at all (404 "Not Found"), or the path
    # matched under another method (405). Handlers never raise either of those.
    if exc.status_code == 405 or (exc.status_code == 404 and exc.detail == ROUTER_NOT_FOUND):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=not_found_body(request))

    content = exc.detail if isinstance(exc.detail, dict) else {"message": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """500 body for an exception nothing else handled; the text is hidden in production."""
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    production = request.app.state.settings.is_production
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error" if production else (str(exc) or exc.__class__.__name__),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


async def catch_unhandled_errors(request: Request, call_next):
    """HTTP middleware turning uncaught exceptions into the 500 body.

    Registered inside the CORS middleware so error responses carry the CORS
    headers too; an exception handler for ``Exception`` would run outside it.
    """
    try:
        return await call_next(request)
    except Exception as exc:
        return await unhandled_exception_handler(request, exc)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
