"""Admin account roles and the allowlists that gate privileged routes."""

from typing import FrozenSet, Literal

Role = Literal["admin", "superuser", "elite_board", "top_board"]

# View/delete teams, scores and uploaded files; manage the COD queue.
BASE_ADMIN_ROLES: FrozenSet[str] = frozenset({"admin", "superuser", "elite_board"})
# List admin accounts.
USER_VIEW_ROLES: FrozenSet[str] = frozenset({"superuser", "elite_board"})
# Create, update and delete admin accounts.
USER_ADMIN_ROLES: FrozenSet[str] = frozenset({"superuser"})
