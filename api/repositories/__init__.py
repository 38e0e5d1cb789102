"""Repository layer for database operations.

Repositories encapsulate all database queries; services orchestrate them and
routes never query directly.
"""

from repositories.activity_repository import ActivityRepository, PointsAggregate
from repositories.user_repository import UserRepository
from repositories.utils import log_slow_query

__all__ = [
    "ActivityRepository",
    "PointsAggregate",
    "UserRepository",
    "log_slow_query",
]
