"""First-run account setup."""

import logging

from tournament_api.schemas import UserRecord
from tournament_api.security import hash_password
from tournament_api.storage.base import DuplicateUsernameError, TournamentStorage

logger = logging.getLogger("bootstrap")


async def ensure_superuser(storage: TournamentStorage, username: str, password: str) -> UserRecord:
    """Create ``username`` as an active superuser unless an account with that name exists.

    An existing account is returned untouched, whatever its role or password.
    """
    existing = await storage.get_user_by_username(username)
    if existing is not None:
        logger.info("Superuser %s already exists", username)
        return existing

    try:
        user = await storage.create_user(
            username=username,
            password_hash=hash_password(password),
            role="superuser",
        )
    except DuplicateUsernameError:
        # Created concurrently by another worker.
        return await storage.get_user_by_username(username)

    logger.info("Created superuser %s", username)
    return user
