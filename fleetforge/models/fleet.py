"""
Fleet state — the roster a player is building.

FleetState is mutated only by the selection controller and the fleet
session. Evaluators read it; they never change it.
"""

from dataclasses import dataclass, field
from uuid import uuid4

from fleetforge.models.catalog import (
    ObjectiveRecord,
    ObjectiveType,
    ShipRecord,
    SquadronRecord,
    UpgradeRecord,
)


def new_entry_id() -> str:
    """Generate an identifier for a fleet entry."""
    return uuid4().hex


@dataclass
class UpgradeEntry:
    """An upgrade instance attached to a ship."""

    record: UpgradeRecord
    entry_id: str = field(default_factory=new_entry_id)

    @property
    def points(self) -> int:
        return self.record.points


@dataclass
class ShipEntry:
    """A ship in the fleet plus its attached upgrades, in attachment order."""

    record: ShipRecord
    upgrades: list[UpgradeEntry] = field(default_factory=list)
    entry_id: str = field(default_factory=new_entry_id)

    @property
    def points(self) -> int:
        """Ship cost including its upgrades."""
        return self.record.points + sum(u.points for u in self.upgrades)

    def upgrade_names(self) -> list[str]:
        return [u.record.name for u in self.upgrades]

    def has_modification(self) -> bool:
        return any(u.record.modification for u in self.upgrades)


@dataclass
class SquadronEntry:
    """A squadron in the fleet. ``count`` copies share one entry."""

    record: SquadronRecord
    count: int = 1
    entry_id: str = field(default_factory=new_entry_id)

    @property
    def points(self) -> int:
        return self.record.points * self.count


@dataclass
class ObjectiveEntry:
    """A selected objective card."""

    record: ObjectiveRecord
    entry_id: str = field(default_factory=new_entry_id)

    @property
    def objective_type(self) -> ObjectiveType:
        return self.record.objective_type


FleetEntry = ShipEntry | UpgradeEntry | SquadronEntry | ObjectiveEntry


@dataclass
class FleetState:
    """
    The aggregate roster for one fleet-building session.

    Attributes:
        faction: Faction every entry must belong to (or be wildcard for)
        ships: Ships in selection order
        squadrons: Squadrons in selection order
        objectives: At most one objective per objective type
    """

    faction: str
    ships: list[ShipEntry] = field(default_factory=list)
    squadrons: list[SquadronEntry] = field(default_factory=list)
    objectives: list[ObjectiveEntry] = field(default_factory=list)

    def total_points(self) -> int:
        """Total fleet cost. Objectives are free."""
        ship_points = sum(s.points for s in self.ships)
        squadron_points = sum(s.points for s in self.squadrons)
        return ship_points + squadron_points

    def squadron_points(self) -> int:
        return sum(s.points for s in self.squadrons)

    def all_upgrades(self) -> list[UpgradeEntry]:
        """Every attached upgrade across all ships, in fleet order."""
        return [u for ship in self.ships for u in ship.upgrades]

    def has_commander(self) -> bool:
        """True if any ship already carries a commander upgrade."""
        return any(u.record.is_commander for u in self.all_upgrades())

    def find_ship(self, entry_id: str) -> ShipEntry | None:
        for ship in self.ships:
            if ship.entry_id == entry_id:
                return ship
        return None

    def find_squadron(self, record_id: str) -> SquadronEntry | None:
        """Find the squadron entry holding the given catalog record."""
        for squadron in self.squadrons:
            if squadron.record.id == record_id:
                return squadron
        return None

    def objective_for(self, objective_type: ObjectiveType) -> ObjectiveEntry | None:
        for objective in self.objectives:
            if objective.objective_type == objective_type:
                return objective
        return None

    def find_entry(self, entry_id: str) -> FleetEntry | None:
        """Find any entry (ship, attached upgrade, squadron, objective) by id."""
        for ship in self.ships:
            if ship.entry_id == entry_id:
                return ship
            for upgrade in ship.upgrades:
                if upgrade.entry_id == entry_id:
                    return upgrade
        for squadron in self.squadrons:
            if squadron.entry_id == entry_id:
                return squadron
        for objective in self.objectives:
            if objective.entry_id == entry_id:
                return objective
        return None

    def remove_entry(self, entry_id: str) -> FleetEntry | None:
        """
        Remove an entry by id. Removing a ship drops its upgrades with it.

        Returns:
            The removed entry, or None if no entry has that id.
        """
        for i, ship in enumerate(self.ships):
            if ship.entry_id == entry_id:
                return self.ships.pop(i)
            for j, upgrade in enumerate(ship.upgrades):
                if upgrade.entry_id == entry_id:
                    return ship.upgrades.pop(j)
        for i, squadron in enumerate(self.squadrons):
            if squadron.entry_id == entry_id:
                return self.squadrons.pop(i)
        for i, objective in enumerate(self.objectives):
            if objective.entry_id == entry_id:
                return self.objectives.pop(i)
        return None
