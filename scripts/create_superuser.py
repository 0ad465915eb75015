import asyncio
import sys

from tournament_api.bootstrap import ensure_superuser
from tournament_api.config import Settings
from tournament_api.storage import build_storage


async def main() -> int:
    """Create the first superuser from SUPERUSER_USERNAME / SUPERUSER_PASSWORD."""

    settings = Settings.from_env()
    if not (settings.superuser_username and settings.superuser_password):
        print("Set SUPERUSER_USERNAME and SUPERUSER_PASSWORD first.", file=sys.stderr)
        return 1

    storage = build_storage(settings)
    await storage.initialize()
    try:
        user = await ensure_superuser(storage, settings.superuser_username, settings.superuser_password)
    finally:
        await storage.close()
    print(f"Superuser ready: {user.username} ({user.role})")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
