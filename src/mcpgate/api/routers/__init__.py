"""Admin/OAuth app routers."""

from .admin import admin_router
from .health import health_router
from .oauth import oauth_router

__all__ = [
    "admin_router",
    "health_router",
    "oauth_router",
]
