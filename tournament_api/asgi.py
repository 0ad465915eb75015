"""ASGI entry point: ``uvicorn tournament_api.asgi:app``."""

from tournament_api.main import create_app

app = create_app()
