"""
API v1 routes package.
"""

from .import_routes import router as import_router
from .activity_routes import router as activity_router
from .dashboard_routes import router as dashboard_router
from .provider_platform_routes import router as provider_platform_router
from .provider_mapping_routes import router as provider_mapping_router
from .record_routes import router as record_router

__all__ = [
    "import_router",
    "activity_router",
    "dashboard_router",
    "provider_platform_router",
    "provider_mapping_router",
    "record_router"
]
