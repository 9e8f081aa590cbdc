# Routers package
from . import scans_router
from . import dashboard_router

__all__ = [
    "scans_router",
    "dashboard_router",
]
