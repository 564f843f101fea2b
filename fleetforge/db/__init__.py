from fleetforge.db.database import get_session, init_db
from fleetforge.db.operations import (
    delete_saved_fleet,
    get_saved_fleet,
    list_saved_fleets,
    save_fleet,
    saved_fleet_to_roster,
)

__all__ = [
    "delete_saved_fleet",
    "get_saved_fleet",
    "get_session",
    "init_db",
    "list_saved_fleets",
    "save_fleet",
    "saved_fleet_to_roster",
]
