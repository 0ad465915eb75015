"""ORM models; importing this package registers every table with ``Base``."""

from .game_score import GameScore
from .secret_challenge import SecretChallenge
from .team import Team
from .user import User

__all__ = ["GameScore", "SecretChallenge", "Team", "User"]
