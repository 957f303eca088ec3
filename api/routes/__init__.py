"""API Routes Package."""

from api.routes import health, activities, approvals

__all__ = [
    "health",
    "activities",
    "approvals",
]
