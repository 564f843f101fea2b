"""
Availability results — the outcome of a legality check for one candidate.

Reason codes are ordered the same way the evaluator checks them. The first
rule that fails is the one reported.
"""

from dataclasses import dataclass
from enum import Enum


class AvailabilityStatus(str, Enum):
    """How a candidate should be offered."""

    LEGAL = "legal"
    ILLEGAL = "illegal"
    # Shown disabled because another record holds its unique class
    GREYED = "greyed"


class AvailabilityReason(str, Enum):
    """Rule that made a candidate unavailable."""

    FACTION_MISMATCH = "faction_mismatch"
    OUTSIDE_POINT_WINDOW = "outside_point_window"
    ALREADY_SELECTED = "already_selected"
    ALREADY_ON_SHIP = "already_on_ship"
    COMMANDER_EXCLUSIVITY = "commander_exclusivity"
    MODIFICATION_EXCLUSIVITY = "modification_exclusivity"
    BOUND_SHIPTYPE_MISMATCH = "bound_shiptype_mismatch"
    TYPE_DISQUALIFIED = "type_disqualified"
    TYPE_DISABLED = "type_disabled"
    SIZE_RESTRICTED = "size_restricted"
    TRAIT_RESTRICTED = "trait_restricted"
    UNIQUE_CLASS_CLAIMED = "unique_class_claimed"

    @property
    def is_uniqueness(self) -> bool:
        """True for reasons caused by a claimed unique name or class."""
        return self in UNIQUENESS_REASONS


UNIQUENESS_REASONS = frozenset(
    {AvailabilityReason.ALREADY_SELECTED, AvailabilityReason.UNIQUE_CLASS_CLAIMED}
)

REASON_MESSAGES: dict[AvailabilityReason, str] = {
    AvailabilityReason.FACTION_MISMATCH: "not available to this faction",
    AvailabilityReason.OUTSIDE_POINT_WINDOW: "point cost outside the allowed range",
    AvailabilityReason.ALREADY_SELECTED: "already selected",
    AvailabilityReason.ALREADY_ON_SHIP: "already equipped on this ship",
    AvailabilityReason.COMMANDER_EXCLUSIVITY: "fleet already has a commander",
    AvailabilityReason.MODIFICATION_EXCLUSIVITY: "ship already has a modification",
    AvailabilityReason.BOUND_SHIPTYPE_MISMATCH: "bound to a different ship type",
    AvailabilityReason.TYPE_DISQUALIFIED: "upgrade type disqualified on this ship",
    AvailabilityReason.TYPE_DISABLED: "upgrade type disabled on this ship",
    AvailabilityReason.SIZE_RESTRICTED: "not allowed on this ship size",
    AvailabilityReason.TRAIT_RESTRICTED: "ship lacks a required trait",
    AvailabilityReason.UNIQUE_CLASS_CLAIMED: "unique class already claimed",
}


@dataclass(frozen=True, slots=True)
class AvailabilityResult:
    """
    Legality decision for one candidate.

    Attributes:
        status: legal, illegal or greyed
        reason: The first rule that failed (None when legal)
        message: Human-readable reason for rendering
    """

    status: AvailabilityStatus
    reason: AvailabilityReason | None = None
    message: str = ""

    @property
    def is_legal(self) -> bool:
        return self.status == AvailabilityStatus.LEGAL

    @classmethod
    def legal(cls) -> "AvailabilityResult":
        return cls(status=AvailabilityStatus.LEGAL)

    @classmethod
    def illegal(cls, reason: AvailabilityReason) -> "AvailabilityResult":
        return cls(
            status=AvailabilityStatus.ILLEGAL,
            reason=reason,
            message=REASON_MESSAGES[reason],
        )

    @classmethod
    def greyed(cls, reason: AvailabilityReason) -> "AvailabilityResult":
        return cls(
            status=AvailabilityStatus.GREYED,
            reason=reason,
            message=REASON_MESSAGES[reason],
        )


@dataclass(frozen=True, slots=True)
class PointWindow:
    """
    Inclusive point-cost window supplied by the caller.

    ``max_points=None`` leaves the window open at the top.
    """

    min_points: int = 0
    max_points: int | None = None

    def __post_init__(self) -> None:
        if self.min_points < 0:
            raise ValueError(f"min_points must be >= 0, got {self.min_points}")
        if self.max_points is not None and self.max_points < self.min_points:
            raise ValueError(
                f"max_points ({self.max_points}) must be >= min_points ({self.min_points})"
            )

    def __contains__(self, points: object) -> bool:
        if not isinstance(points, int):
            return False
        if points < self.min_points:
            return False
        return self.max_points is None or points <= self.max_points


@dataclass(frozen=True, slots=True)
class UpgradeSlotContext:
    """
    The ship slot receiving an upgrade pick.

    Attributes:
        ship_entry_id: Fleet entry id of the receiving ship
        upgrade_type: Slot type being filled
        disqualified_types: Types the caller has marked disqualified on this ship
        disabled_types: Types the caller has marked disabled on this ship
    """

    ship_entry_id: str
    upgrade_type: str = ""
    disqualified_types: frozenset[str] = frozenset()
    disabled_types: frozenset[str] = frozenset()
