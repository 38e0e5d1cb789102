"""API route modules."""

from routes.activity_routes import router as activity_router
from routes.checkin_routes import router as checkin_router
from routes.health_routes import router as health_router
from routes.leaderboard_routes import router as leaderboard_router
from routes.users_routes import router as users_router

__all__ = [
    "activity_router",
    "checkin_router",
    "health_router",
    "leaderboard_router",
    "users_router",
]
