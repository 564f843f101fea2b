"""
Roster serialization — FleetState to and from a name-based roster.

A roster records only names: the faction, each ship with its upgrade names,
squadron names with counts, and one objective name per objective type. It
is the shape text export/import and saved fleets work with.

Reconstruction replays the roster through the availability evaluator, so a
rebuilt fleet never holds an entry the engine would have refused. Names the
catalog does not know, and entries that would be illegal, are skipped with a
warning rather than failing the whole roster.
"""

import logging
from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from fleetforge.models.catalog import (
    CatalogKind,
    CatalogRecord,
    ObjectiveRecord,
    ObjectiveType,
    ShipRecord,
    SquadronRecord,
    UpgradeRecord,
)
from fleetforge.models.fleet import (
    FleetState,
    ObjectiveEntry,
    ShipEntry,
    SquadronEntry,
    UpgradeEntry,
)
from fleetforge.models.ledger import UniquenessLedger
from fleetforge.services.availability import derive_slot_context, evaluate_candidate
from fleetforge.services.catalog import CatalogAccessor
from fleetforge.services.fleet_session import normalize_faction

logger = logging.getLogger(__name__)


class RosterShip(BaseModel):
    """A ship and the names of its attached upgrades."""

    name: str
    upgrades: list[str] = Field(default_factory=list)


class RosterSquadron(BaseModel):
    name: str
    count: int = Field(default=1, ge=1)


class Roster(BaseModel):
    """Name-based fleet roster."""

    faction: str
    ships: list[RosterShip] = Field(default_factory=list)
    squadrons: list[RosterSquadron] = Field(default_factory=list)
    objectives: dict[ObjectiveType, str] = Field(default_factory=dict)
    points: int = 0


@dataclass
class RosterImport:
    """Result of rebuilding a fleet from a roster."""

    fleet: FleetState
    ledger: UniquenessLedger
    warnings: list[str] = field(default_factory=list)


def fleet_to_roster(fleet: FleetState) -> Roster:
    """Serialize a fleet to its roster of names."""
    return Roster(
        faction=fleet.faction,
        ships=[RosterShip(name=s.record.name, upgrades=s.upgrade_names()) for s in fleet.ships],
        squadrons=[
            RosterSquadron(name=s.record.name, count=s.count) for s in fleet.squadrons
        ],
        objectives={o.objective_type: o.record.name for o in fleet.objectives},
        points=fleet.total_points(),
    )


def _lookup(
    accessor: CatalogAccessor,
    kind: CatalogKind,
    name: str,
    faction: str,
) -> CatalogRecord | None:
    """First record of the kind with that name the faction may field."""
    for record in accessor.list_by_type(kind):
        if record.name == name and record.allows_faction(faction):
            return record
    return None


def fleet_from_roster(roster: Roster, accessor: CatalogAccessor) -> RosterImport:
    """
    Rebuild a fleet and its ledger from a roster.

    Raises:
        InvalidFactionError: If the roster's faction is not known
    """
    fleet = FleetState(faction=normalize_faction(roster.faction))
    ledger = UniquenessLedger()
    warnings: list[str] = []

    def skip(kind: str, name: str, why: str) -> None:
        message = f"Skipped {kind} '{name}': {why}"
        logger.warning("%s", message)
        warnings.append(message)

    for roster_ship in roster.ships:
        ship_record = _lookup(accessor, CatalogKind.SHIP, roster_ship.name, fleet.faction)
        if not isinstance(ship_record, ShipRecord):
            skip("ship", roster_ship.name, "not in catalog")
            continue
        result = evaluate_candidate(ship_record, fleet, ledger)
        if not result.is_legal:
            skip("ship", roster_ship.name, result.message)
            continue

        ship = ShipEntry(record=ship_record)
        fleet.ships.append(ship)
        ledger.claim_all(ship_record.unique_tokens, ship_record.id)

        for upgrade_name in roster_ship.upgrades:
            upgrade = _lookup(accessor, CatalogKind.UPGRADE, upgrade_name, fleet.faction)
            if not isinstance(upgrade, UpgradeRecord):
                skip("upgrade", upgrade_name, "not in catalog")
                continue
            slot = derive_slot_context(ship, upgrade.upgrade_type)
            result = evaluate_candidate(upgrade, fleet, ledger, slot=slot)
            if not result.is_legal:
                skip("upgrade", upgrade_name, result.message)
                continue
            ship.upgrades.append(UpgradeEntry(record=upgrade))
            ledger.claim_all(upgrade.unique_tokens, upgrade.id)

    for roster_squadron in roster.squadrons:
        squadron = _lookup(accessor, CatalogKind.SQUADRON, roster_squadron.name, fleet.faction)
        if not isinstance(squadron, SquadronRecord):
            skip("squadron", roster_squadron.name, "not in catalog")
            continue
        result = evaluate_candidate(squadron, fleet, ledger)
        if not result.is_legal:
            skip("squadron", roster_squadron.name, result.message)
            continue
        existing = None if squadron.unique else fleet.find_squadron(squadron.id)
        if existing is not None:
            existing.count += roster_squadron.count
            continue
        count = 1 if squadron.unique else roster_squadron.count
        fleet.squadrons.append(SquadronEntry(record=squadron, count=count))
        ledger.claim_all(squadron.unique_tokens, squadron.id)

    for objective_type, objective_name in roster.objectives.items():
        objective = _lookup(accessor, CatalogKind.OBJECTIVE, objective_name, fleet.faction)
        if not isinstance(objective, ObjectiveRecord):
            skip("objective", objective_name, "not in catalog")
            continue
        if objective.objective_type != objective_type:
            skip(
                "objective",
                objective_name,
                f"is a {objective.objective_type.value} objective, "
                f"listed as {objective_type.value}",
            )
            continue
        fleet.objectives.append(ObjectiveEntry(record=objective))

    return RosterImport(fleet=fleet, ledger=ledger, warnings=warnings)
