import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from tournament_api.bootstrap import ensure_superuser
from tournament_api.config import Settings
from tournament_api.errors import catch_unhandled_errors, register_exception_handlers
from tournament_api.routes import admin, auth, files, game_scores, health, secret_challenge, teams
from tournament_api.routing import include_routers
from tournament_api.services.file_store import FileStore, build_file_store
from tournament_api.storage import TournamentStorage, build_storage


def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[TournamentStorage] = None,
    file_store: Optional[FileStore] = None,
) -> FastAPI:
    """Build the API. Anything not passed in is built from the environment."""

    # ----- Logging -----
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )

    settings = settings or Settings.from_env()
    storage = storage or build_storage(settings)
    file_store = file_store or build_file_store(settings)

    # ----- FastAPI app -----
    app = FastAPI(
        title="Tournament API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings
    app.state.storage = storage
    app.state.file_store = file_store

    # ----- Bare OPTIONS requests (no preflight headers) -----
    @app.middleware("http")
    async def answer_options(request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=200)
        return await call_next(request)

    # ----- Uncaught exceptions become the 500 body, still inside CORS -----
    app.middleware("http")(catch_unhandled_errors)

    # ----- CORS (outermost) -----
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "Origin", "X-Requested-With"],
        expose_headers=["Content-Disposition"],
        max_age=86400,
    )

    register_exception_handlers(app)

    # ----- Include routers -----
    include_routers(
        app,
        [
            health.router,
            auth.router,
            teams.router,
            game_scores.router,
            secret_challenge.router,
            admin.router,
            files.router,
        ],
    )

    @app.on_event("startup")
    async def on_startup():
        logging.info(
            "Starting tournament API (environment=%s, storage=%s, files=%s, hasDatabaseUrl=%s, hasSessionSecret=%s)",
            settings.environment,
            storage.backend_name,
            file_store.backend_name,
            settings.database_configured,
            settings.session_secret_configured,
        )
        await storage.initialize()
        if settings.superuser_username and settings.superuser_password:
            await ensure_superuser(storage, settings.superuser_username, settings.superuser_password)

    @app.on_event("shutdown")
    async def on_shutdown():
        await storage.close()

    return app
