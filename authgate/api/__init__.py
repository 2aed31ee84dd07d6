# authgate API routers
from authgate.api.auth import router as auth_router
from authgate.api.health import router as health_router
from authgate.api.profile import router as profile_router

__all__ = [
    "auth_router",
    "health_router",
    "profile_router",
]
