"""
Availability evaluator — is a candidate legal to add to the fleet right now?

Every check is a pure function of (candidate, fleet, ledger, explicit
context). Nothing here mutates state or performs I/O.

Rules run in a fixed order and the first failing rule is reported:

    1. faction            5. commander exclusivity     9. size whitelist
    2. point window       6. modification exclusivity  10. trait whitelist
    3. uniqueness         7. bound ship type           11. unique-class greying
    4. already on ship    8. type disqualified/disabled

Titles and super-weapons are placed by their bound ship type alone: once
rule 7 passes for them, rules 8-10 are not applied. Rule 11 still is.
"""

from fleetforge.models.availability import (
    AvailabilityReason,
    AvailabilityResult,
    PointWindow,
    UpgradeSlotContext,
)
from fleetforge.models.catalog import (
    CatalogRecord,
    ObjectiveRecord,
    ShipRecord,
    SquadronRecord,
    UpgradeRecord,
)
from fleetforge.models.failure import EntryNotFoundError
from fleetforge.models.fleet import FleetState, ShipEntry
from fleetforge.models.ledger import UniquenessLedger

DEFAULT_WINDOW = PointWindow()


# =============================================================================
# SHARED RULES
# =============================================================================


def _faction_ok(candidate: CatalogRecord, fleet: FleetState) -> bool:
    return candidate.allows_faction(fleet.faction)


def _points_ok(candidate: CatalogRecord, window: PointWindow) -> bool:
    return candidate.points in window


def _claimed_by_other(token: str, candidate: CatalogRecord, ledger: UniquenessLedger) -> bool:
    """True if the token is claimed and the first claimant is not this record."""
    return ledger.is_claimed(token) and ledger.claimed_by(token) != candidate.id


# =============================================================================
# UNIQUENESS
# =============================================================================


def _ship_taken(candidate: ShipRecord, fleet: FleetState, ledger: UniquenessLedger) -> bool:
    if not candidate.unique:
        return False
    if ledger.is_claimed(candidate.name):
        return True
    return any(s.record.name == candidate.name for s in fleet.ships)


def _squadron_taken(
    candidate: SquadronRecord, fleet: FleetState, ledger: UniquenessLedger
) -> bool:
    if candidate.unique:
        if ledger.is_claimed(candidate.name):
            return True
        if any(s.record.name == candidate.name for s in fleet.squadrons):
            return True
    return any(_claimed_by_other(tag, candidate, ledger) for tag in candidate.unique_class)


def _upgrade_taken(candidate: UpgradeRecord, fleet: FleetState, ledger: UniquenessLedger) -> bool:
    if not candidate.unique:
        return False
    if ledger.is_claimed(candidate.name):
        return True
    return any(u.record.name == candidate.name for u in fleet.all_upgrades())


# =============================================================================
# UPGRADE RULES
# =============================================================================


def bound_shiptype_matches(candidate: UpgradeRecord, ship: ShipRecord) -> bool:
    """Check an upgrade's bound ship type against a ship's chassis."""
    return not candidate.bound_shiptype or candidate.bound_shiptype == ship.chassis


def _type_exclusion(
    candidate: UpgradeRecord,
    ship: ShipEntry,
    slot: UpgradeSlotContext,
) -> AvailabilityReason | None:
    """Rule 8. Disqualified and disabled are reported separately but both exclude."""
    upgrade_type = candidate.upgrade_type

    if upgrade_type in slot.disqualified_types:
        return AvailabilityReason.TYPE_DISQUALIFIED
    if upgrade_type in slot.disabled_types:
        return AvailabilityReason.TYPE_DISABLED

    for attached in ship.upgrades:
        restrictions = attached.record.restrictions
        if upgrade_type in restrictions.disqual_upgrades:
            return AvailabilityReason.TYPE_DISQUALIFIED
        if upgrade_type in restrictions.disable_upgrades:
            return AvailabilityReason.TYPE_DISABLED

    # The candidate's own exclusions apply to what is already attached
    attached_types = {u.record.upgrade_type for u in ship.upgrades}
    if attached_types & set(candidate.restrictions.disqual_upgrades):
        return AvailabilityReason.TYPE_DISQUALIFIED
    if attached_types & set(candidate.restrictions.disable_upgrades):
        return AvailabilityReason.TYPE_DISABLED

    return None


def _size_ok(candidate: UpgradeRecord, ship: ShipRecord) -> bool:
    sizes = candidate.restrictions.required_sizes
    return not sizes or ship.size in sizes


def _traits_ok(candidate: UpgradeRecord, ship: ShipRecord) -> bool:
    traits = candidate.restrictions.required_traits
    return not traits or any(t in ship.traits for t in traits)


def _evaluate_upgrade(
    candidate: UpgradeRecord,
    fleet: FleetState,
    ledger: UniquenessLedger,
    slot: UpgradeSlotContext,
) -> AvailabilityResult:
    ship = fleet.find_ship(slot.ship_entry_id)
    if ship is None:
        raise EntryNotFoundError(slot.ship_entry_id)

    if _upgrade_taken(candidate, fleet, ledger):
        return AvailabilityResult.illegal(AvailabilityReason.ALREADY_SELECTED)

    if candidate.name in ship.upgrade_names():
        return AvailabilityResult.illegal(AvailabilityReason.ALREADY_ON_SHIP)

    if candidate.is_commander and fleet.has_commander():
        return AvailabilityResult.illegal(AvailabilityReason.COMMANDER_EXCLUSIVITY)

    if candidate.modification and ship.has_modification():
        return AvailabilityResult.illegal(AvailabilityReason.MODIFICATION_EXCLUSIVITY)

    if not bound_shiptype_matches(candidate, ship.record):
        return AvailabilityResult.illegal(AvailabilityReason.BOUND_SHIPTYPE_MISMATCH)

    if not candidate.is_chassis_bound_type:
        exclusion = _type_exclusion(candidate, ship, slot)
        if exclusion is not None:
            return AvailabilityResult.illegal(exclusion)

        if not _size_ok(candidate, ship.record):
            return AvailabilityResult.illegal(AvailabilityReason.SIZE_RESTRICTED)

        if not _traits_ok(candidate, ship.record):
            return AvailabilityResult.illegal(AvailabilityReason.TRAIT_RESTRICTED)

    if any(_claimed_by_other(tag, candidate, ledger) for tag in candidate.unique_class):
        return AvailabilityResult.greyed(AvailabilityReason.UNIQUE_CLASS_CLAIMED)

    return AvailabilityResult.legal()


# =============================================================================
# ENTRY POINT
# =============================================================================


def evaluate_candidate(
    candidate: CatalogRecord,
    fleet: FleetState,
    ledger: UniquenessLedger,
    window: PointWindow = DEFAULT_WINDOW,
    slot: UpgradeSlotContext | None = None,
) -> AvailabilityResult:
    """
    Decide whether a candidate may be added to the fleet.

    Args:
        candidate: The catalog record being offered
        fleet: Current fleet state (read only)
        ledger: Session uniqueness ledger (read only)
        window: Inclusive point-cost window from the caller
        slot: Receiving ship and slot. Required for upgrades.

    Returns:
        AvailabilityResult naming the first failed rule, or legal

    Raises:
        ValueError: If an upgrade is evaluated without a slot context
        EntryNotFoundError: If the slot's ship is not in the fleet
    """
    if not _faction_ok(candidate, fleet):
        return AvailabilityResult.illegal(AvailabilityReason.FACTION_MISMATCH)

    if not _points_ok(candidate, window):
        return AvailabilityResult.illegal(AvailabilityReason.OUTSIDE_POINT_WINDOW)

    if isinstance(candidate, ShipRecord):
        if _ship_taken(candidate, fleet, ledger):
            return AvailabilityResult.illegal(AvailabilityReason.ALREADY_SELECTED)
        return AvailabilityResult.legal()

    if isinstance(candidate, SquadronRecord):
        if _squadron_taken(candidate, fleet, ledger):
            return AvailabilityResult.illegal(AvailabilityReason.ALREADY_SELECTED)
        return AvailabilityResult.legal()

    if isinstance(candidate, UpgradeRecord):
        if slot is None:
            raise ValueError(f"Upgrade '{candidate.id}' needs a slot context to be evaluated")
        return _evaluate_upgrade(candidate, fleet, ledger, slot)

    if isinstance(candidate, ObjectiveRecord):
        if any(o.record.id == candidate.id for o in fleet.objectives):
            return AvailabilityResult.illegal(AvailabilityReason.ALREADY_SELECTED)
        return AvailabilityResult.legal()

    raise TypeError(f"Unsupported catalog record: {type(candidate).__name__}")


def is_available(
    candidate: CatalogRecord,
    fleet: FleetState,
    ledger: UniquenessLedger,
    window: PointWindow = DEFAULT_WINDOW,
    slot: UpgradeSlotContext | None = None,
) -> bool:
    """Convenience wrapper: True if the candidate is legal."""
    return evaluate_candidate(candidate, fleet, ledger, window, slot).is_legal


# =============================================================================
# SLOT CONTEXT
# =============================================================================


def derive_slot_context(ship: ShipEntry, upgrade_type: str = "") -> UpgradeSlotContext:
    """
    Compute the disqualified and disabled upgrade types for a ship.

    Collects the ``disqual_upgrades`` and ``disable_upgrades`` lists of every
    upgrade already attached to the ship.
    """
    disqualified: set[str] = set()
    disabled: set[str] = set()
    for attached in ship.upgrades:
        disqualified.update(attached.record.restrictions.disqual_upgrades)
        disabled.update(attached.record.restrictions.disable_upgrades)

    return UpgradeSlotContext(
        ship_entry_id=ship.entry_id,
        upgrade_type=upgrade_type,
        disqualified_types=frozenset(disqualified),
        disabled_types=frozenset(disabled),
    )


def available_slot_types(ship: ShipEntry) -> list[str]:
    """
    Upgrade slots a ship offers: its printed slots plus any enabled by
    attached upgrades, in that order.
    """
    slots = list(ship.record.upgrade_slots)
    for attached in ship.upgrades:
        for enabled in attached.record.restrictions.enable_upgrades:
            if enabled not in slots:
                slots.append(enabled)
    return slots
