"""
Catalog records — immutable card data for one fleet-building session.

Every catalog entry shares a common shape (id, name, faction, points, card
image, unique flag). The four record kinds extend that shape and are closed:
code that needs to branch on the kind matches on the concrete class or on
the class-level ``kind`` tag, never on which attributes happen to exist.

INVARIANT: records are frozen. The catalog is read-only for the session.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar

from fleetforge.config import WILDCARD_FACTION


class CatalogKind(str, Enum):
    """The four kinds of selectable catalog entries."""

    SHIP = "ship"
    SQUADRON = "squadron"
    UPGRADE = "upgrade"
    OBJECTIVE = "objective"


class CatalogVariant(str, Enum):
    """Content source a record was merged from."""

    BASE = ""
    LEGACY = "legacy"
    LEGENDS = "legends"

    def prefix_id(self, record_id: str) -> str:
        """Namespace an identifier so variants never collide with the base catalog."""
        if self is CatalogVariant.BASE:
            return record_id
        return f"{self.value}-{record_id}"


class ObjectiveType(str, Enum):
    """Objective card categories. A fleet holds at most one of each."""

    ASSAULT = "assault"
    DEFENSE = "defense"
    NAVIGATION = "navigation"


# Upgrade types whose only placement rule is the bound ship type
CHASSIS_BOUND_TYPES = frozenset({"title", "super-weapon"})

COMMANDER_TYPE = "commander"


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """
    Fields shared by every catalog record.

    Attributes:
        id: Identifier, unique within its kind once variant-prefixed
        name: Display name
        faction: Factions allowed to field this record ("" is the wildcard)
        points: Point cost
        cardimage: Absolute card image reference
        unique: At most one record with this name may appear in a fleet
        variant: Catalog variant the record was merged from
    """

    kind: ClassVar[CatalogKind]

    id: str
    name: str
    faction: tuple[str, ...] = (WILDCARD_FACTION,)
    points: int = 0
    cardimage: str = ""
    unique: bool = False
    variant: CatalogVariant = CatalogVariant.BASE

    def allows_faction(self, faction: str) -> bool:
        """True if the record may be fielded by the given faction."""
        return faction in self.faction or WILDCARD_FACTION in self.faction

    @property
    def unique_tokens(self) -> tuple[str, ...]:
        """Tokens this record claims in the uniqueness ledger when committed."""
        return (self.name,) if self.unique else ()


@dataclass(frozen=True, slots=True)
class ShipRecord(CatalogEntry):
    """A ship model belonging to a chassis."""

    kind: ClassVar[CatalogKind] = CatalogKind.SHIP

    chassis: str = ""
    size: str = ""
    traits: tuple[str, ...] = ()
    upgrade_slots: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SquadronRecord(CatalogEntry):
    """
    A squadron card.

    ``name`` is the ace name when the card has one; ``squadron_name`` keeps
    the card's base name.
    """

    kind: ClassVar[CatalogKind] = CatalogKind.SQUADRON

    squadron_name: str = ""
    ace_name: str = ""
    unique_class: tuple[str, ...] = ()
    hull: int | None = None
    speed: int | None = None

    @property
    def unique_tokens(self) -> tuple[str, ...]:
        names = (self.name,) if self.unique else ()
        return names + self.unique_class


@dataclass(frozen=True, slots=True)
class UpgradeRestrictions:
    """
    Placement restrictions declared by an upgrade card.

    Attributes:
        traits: Ship must carry at least one of these traits (blank entries ignored)
        size: Ship hull size must be one of these (blank entries ignored)
        disqual_upgrades: Upgrade types this upgrade disqualifies on its ship
        disable_upgrades: Upgrade types this upgrade disables on its ship
        enable_upgrades: Upgrade types this upgrade adds as slots on its ship
    """

    traits: tuple[str, ...] = ()
    size: tuple[str, ...] = ()
    disqual_upgrades: tuple[str, ...] = ()
    disable_upgrades: tuple[str, ...] = ()
    enable_upgrades: tuple[str, ...] = ()

    @property
    def required_sizes(self) -> tuple[str, ...]:
        return tuple(s for s in self.size if s.strip())

    @property
    def required_traits(self) -> tuple[str, ...]:
        return tuple(t for t in self.traits if t.strip())


@dataclass(frozen=True, slots=True)
class UpgradeRecord(CatalogEntry):
    """An upgrade card attached to a ship slot of ``upgrade_type``."""

    kind: ClassVar[CatalogKind] = CatalogKind.UPGRADE

    upgrade_type: str = ""
    unique_class: tuple[str, ...] = ()
    bound_shiptype: str = ""
    modification: bool = False
    restrictions: UpgradeRestrictions = field(default_factory=UpgradeRestrictions)

    @property
    def is_chassis_bound_type(self) -> bool:
        return self.upgrade_type in CHASSIS_BOUND_TYPES

    @property
    def is_commander(self) -> bool:
        return self.upgrade_type == COMMANDER_TYPE

    @property
    def unique_tokens(self) -> tuple[str, ...]:
        names = (self.name,) if self.unique else ()
        return names + self.unique_class


@dataclass(frozen=True, slots=True)
class ObjectiveRecord(CatalogEntry):
    """An objective card. Objectives are faction-agnostic and cost no points."""

    kind: ClassVar[CatalogKind] = CatalogKind.OBJECTIVE

    objective_type: ObjectiveType = ObjectiveType.ASSAULT


CatalogRecord = ShipRecord | SquadronRecord | UpgradeRecord | ObjectiveRecord

RECORD_CLASSES: dict[CatalogKind, type[CatalogEntry]] = {
    CatalogKind.SHIP: ShipRecord,
    CatalogKind.SQUADRON: SquadronRecord,
    CatalogKind.UPGRADE: UpgradeRecord,
    CatalogKind.OBJECTIVE: ObjectiveRecord,
}
