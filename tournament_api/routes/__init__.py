from . import admin, auth, files, game_scores, health, secret_challenge, teams

__all__ = ["admin", "auth", "files", "game_scores", "health", "secret_challenge", "teams"]
