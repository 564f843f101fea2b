"""
FleetForge services.

Catalog access, availability evaluation and the fleet-building flow.
"""

from fleetforge.services.availability import (
    available_slot_types,
    derive_slot_context,
    evaluate_candidate,
    is_available,
)
from fleetforge.services.catalog import (
    CatalogAccessor,
    catalog_key,
    get_catalog_accessor,
    load_catalog_snapshot,
)
from fleetforge.services.fleet_session import (
    FleetSession,
    SessionRegistry,
    get_session_registry,
    normalize_faction,
)
from fleetforge.services.roster import (
    Roster,
    RosterImport,
    fleet_from_roster,
    fleet_to_roster,
)
from fleetforge.services.selection import (
    CandidateView,
    PickerFilter,
    PickerState,
    SelectionController,
)
from fleetforge.services.sorting import SortDirection, SortOption, sort_candidates

__all__ = [
    "CandidateView",
    "CatalogAccessor",
    "FleetSession",
    "PickerFilter",
    "PickerState",
    "Roster",
    "RosterImport",
    "SelectionController",
    "SessionRegistry",
    "SortDirection",
    "SortOption",
    "available_slot_types",
    "catalog_key",
    "derive_slot_context",
    "evaluate_candidate",
    "fleet_from_roster",
    "fleet_to_roster",
    "get_catalog_accessor",
    "get_session_registry",
    "is_available",
    "load_catalog_snapshot",
    "normalize_faction",
    "sort_candidates",
]
