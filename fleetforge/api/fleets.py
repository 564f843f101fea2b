"""
Fleet-building API endpoints.

Each fleet session lives in memory and owns its fleet and uniqueness
ledger. Every mutation goes through the session: open a picker, list its
candidates with their legality, pick one, or remove an entry.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from fleetforge.config import settings
from fleetforge.models.availability import AvailabilityReason, AvailabilityStatus, PointWindow
from fleetforge.models.catalog import CatalogKind, ObjectiveType
from fleetforge.services.availability import available_slot_types
from fleetforge.services.catalog import CatalogAccessor, get_catalog_accessor
from fleetforge.services.fleet_session import (
    FleetSession,
    SessionRegistry,
    get_session_registry,
)
from fleetforge.services.roster import Roster, fleet_from_roster, fleet_to_roster
from fleetforge.services.selection import CandidateView, PickerFilter
from fleetforge.services.sorting import SortDirection, SortOption

router = APIRouter(prefix="/fleets", tags=["fleets"])


# =============================================================================
# REQUEST / RESPONSE MODELS
# =============================================================================


class StartFleetRequest(BaseModel):
    faction: str = Field(..., description="Faction the fleet is built for", examples=["empire"])


class UpgradeEntryResponse(BaseModel):
    entry_id: str
    id: str
    name: str
    type: str
    points: int


class ShipEntryResponse(BaseModel):
    """A ship with its attached upgrades and the slots it offers."""

    entry_id: str
    id: str
    name: str
    chassis: str
    points: int = Field(..., description="Ship cost including upgrades")
    slots: list[str] = Field(default_factory=list)
    upgrades: list[UpgradeEntryResponse] = Field(default_factory=list)


class SquadronEntryResponse(BaseModel):
    entry_id: str
    id: str
    name: str
    count: int
    points: int


class ObjectiveEntryResponse(BaseModel):
    entry_id: str
    id: str
    name: str
    type: ObjectiveType


class FleetResponse(BaseModel):
    """Current state of one fleet session."""

    session_id: str
    faction: str
    points: int
    point_limit: int
    squadron_points: int
    ships: list[ShipEntryResponse] = Field(default_factory=list)
    squadrons: list[SquadronEntryResponse] = Field(default_factory=list)
    objectives: list[ObjectiveEntryResponse] = Field(default_factory=list)
    picker_open: bool = False
    notice: str | None = Field(
        default=None,
        description="One-shot notice, e.g. after a rejected unique pick",
    )


class OpenPickerRequest(BaseModel):
    """What to pick and how to filter the listing."""

    kind: CatalogKind
    min_points: int = Field(default=0, ge=0)
    max_points: int | None = Field(default=None, ge=0)
    upgrade_type: str | None = None
    ship_entry_id: str | None = None
    objective_type: ObjectiveType | None = None
    disqualified_types: list[str] = Field(default_factory=list)
    disabled_types: list[str] = Field(default_factory=list)


class CandidateResponse(BaseModel):
    id: str
    name: str
    points: int
    unique: bool
    cardimage: str = ""
    status: AvailabilityStatus
    reason: AvailabilityReason | None = None
    message: str = ""
    enabled: bool


class PickerResponse(BaseModel):
    session_id: str
    kind: CatalogKind
    candidates: list[CandidateResponse]
    count: int


class PickRequest(BaseModel):
    candidate_id: str = Field(..., description="Id of a listed candidate")


class SquadronCountRequest(BaseModel):
    count: int = Field(..., ge=1)


class RosterLoadResponse(BaseModel):
    fleet: FleetResponse
    warnings: list[str] = Field(default_factory=list)


# =============================================================================
# HELPERS
# =============================================================================


def fleet_response(session_id: str, session: FleetSession) -> FleetResponse:
    """Render a session's fleet. Consumes any pending notice."""
    fleet = session.fleet
    return FleetResponse(
        session_id=session_id,
        faction=fleet.faction,
        points=fleet.total_points(),
        point_limit=settings.fleet_point_limit,
        squadron_points=fleet.squadron_points(),
        ships=[
            ShipEntryResponse(
                entry_id=ship.entry_id,
                id=ship.record.id,
                name=ship.record.name,
                chassis=ship.record.chassis,
                points=ship.points,
                slots=available_slot_types(ship),
                upgrades=[
                    UpgradeEntryResponse(
                        entry_id=u.entry_id,
                        id=u.record.id,
                        name=u.record.name,
                        type=u.record.upgrade_type,
                        points=u.points,
                    )
                    for u in ship.upgrades
                ],
            )
            for ship in fleet.ships
        ],
        squadrons=[
            SquadronEntryResponse(
                entry_id=s.entry_id,
                id=s.record.id,
                name=s.record.name,
                count=s.count,
                points=s.points,
            )
            for s in fleet.squadrons
        ],
        objectives=[
            ObjectiveEntryResponse(
                entry_id=o.entry_id,
                id=o.record.id,
                name=o.record.name,
                type=o.objective_type,
            )
            for o in fleet.objectives
        ],
        picker_open=session.picker is not None,
        notice=session.pop_notice(),
    )


def candidate_response(view: CandidateView) -> CandidateResponse:
    return CandidateResponse(
        id=view.record.id,
        name=view.record.name,
        points=view.record.points,
        unique=view.record.unique,
        cardimage=view.record.cardimage,
        status=view.result.status,
        reason=view.result.reason,
        message=view.result.message,
        enabled=view.enabled,
    )


def picker_response(
    session_id: str,
    kind: CatalogKind,
    views: list[CandidateView],
) -> PickerResponse:
    return PickerResponse(
        session_id=session_id,
        kind=kind,
        candidates=[candidate_response(v) for v in views],
        count=len(views),
    )


def bad_request(error: ValueError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


Registry = Annotated[SessionRegistry, Depends(get_session_registry)]
Accessor = Annotated[CatalogAccessor, Depends(get_catalog_accessor)]


# =============================================================================
# SESSION LIFECYCLE
# =============================================================================


@router.post("", response_model=FleetResponse, status_code=status.HTTP_201_CREATED)
async def start_fleet(
    request: StartFleetRequest,
    registry: Registry,
    accessor: Accessor,
) -> FleetResponse:
    """Start a fleet session with an empty fleet and ledger."""
    session_id, session = registry.start_session(accessor, request.faction)
    return fleet_response(session_id, session)


@router.get("/{session_id}", response_model=FleetResponse)
async def get_fleet(session_id: str, registry: Registry) -> FleetResponse:
    return fleet_response(session_id, registry.get(session_id))


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def end_fleet(session_id: str, registry: Registry) -> None:
    """End a session. Its fleet is discarded unless it was saved."""
    registry.end_session(session_id)


# =============================================================================
# PICKER
# =============================================================================


@router.post("/{session_id}/picker", response_model=PickerResponse)
async def open_picker(
    session_id: str,
    request: OpenPickerRequest,
    registry: Registry,
) -> PickerResponse:
    """
    Open a picker and list its candidates with their legality.

    Any picker already open in this session is cancelled first.
    """
    session = registry.get(session_id)
    try:
        picker_filter = PickerFilter(
            kind=request.kind,
            window=PointWindow(min_points=request.min_points, max_points=request.max_points),
            upgrade_type=request.upgrade_type,
            ship_entry_id=request.ship_entry_id,
            objective_type=request.objective_type,
            disqualified_types=frozenset(request.disqualified_types),
            disabled_types=frozenset(request.disabled_types),
        )
    except ValueError as e:
        raise bad_request(e) from e

    session.open_picker(picker_filter)
    return picker_response(session_id, request.kind, session.listing())


@router.get("/{session_id}/picker", response_model=PickerResponse)
async def list_picker(
    session_id: str,
    registry: Registry,
    sort: SortOption = SortOption.CUSTOM,
    direction: SortDirection = SortDirection.ASC,
) -> PickerResponse:
    """Re-list the open picker, optionally sorted. Legality is recomputed."""
    session = registry.get(session_id)
    views = session.listing(sort, direction)
    return picker_response(session_id, session.picker_filter.kind, views)


@router.post("/{session_id}/picker/pick", response_model=FleetResponse)
async def pick(session_id: str, request: PickRequest, registry: Registry) -> FleetResponse:
    """
    Commit a listed candidate to the fleet.

    A rejected pick answers 409 with the failed rule and leaves the picker
    open.
    """
    session = registry.get(session_id)
    session.pick(request.candidate_id)
    return fleet_response(session_id, session)


@router.delete("/{session_id}/picker", response_model=FleetResponse)
async def cancel_picker(session_id: str, registry: Registry) -> FleetResponse:
    session = registry.get(session_id)
    session.cancel()
    return fleet_response(session_id, session)


# =============================================================================
# FLEET EDITING
# =============================================================================


@router.delete("/{session_id}/entries/{entry_id}", response_model=FleetResponse)
async def remove_entry(session_id: str, entry_id: str, registry: Registry) -> FleetResponse:
    """Remove a ship, upgrade, squadron or objective. Uniqueness claims are recomputed."""
    session = registry.get(session_id)
    session.remove_from_fleet(entry_id)
    return fleet_response(session_id, session)


@router.patch("/{session_id}/squadrons/{entry_id}", response_model=FleetResponse)
async def set_squadron_count(
    session_id: str,
    entry_id: str,
    request: SquadronCountRequest,
    registry: Registry,
) -> FleetResponse:
    session = registry.get(session_id)
    try:
        session.set_squadron_count(entry_id, request.count)
    except ValueError as e:
        raise bad_request(e) from e
    return fleet_response(session_id, session)


# =============================================================================
# ROSTER
# =============================================================================


@router.get("/{session_id}/roster", response_model=Roster)
async def export_roster(session_id: str, registry: Registry) -> Roster:
    """The fleet as a name-based roster."""
    return fleet_to_roster(registry.get(session_id).fleet)


@router.put("/{session_id}/roster", response_model=RosterLoadResponse)
async def load_roster(
    session_id: str,
    roster: Roster,
    registry: Registry,
    accessor: Accessor,
) -> RosterLoadResponse:
    """
    Replace the fleet with one rebuilt from a roster.

    Entries the catalog does not know or that would be illegal are skipped
    and reported as warnings.
    """
    session = registry.get(session_id)
    rebuilt = fleet_from_roster(roster, accessor)
    try:
        session.replace_fleet(rebuilt.fleet, rebuilt.ledger)
    except ValueError as e:
        raise bad_request(e) from e
    return RosterLoadResponse(
        fleet=fleet_response(session_id, session),
        warnings=rebuilt.warnings,
    )
