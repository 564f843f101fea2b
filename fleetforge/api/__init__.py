from fleetforge.api.catalog import router as catalog_router
from fleetforge.api.fleets import router as fleets_router
from fleetforge.api.health import router as health_router
from fleetforge.api.saved_fleets import router as saved_fleets_router

__all__ = [
    "catalog_router",
    "fleets_router",
    "health_router",
    "saved_fleets_router",
]
