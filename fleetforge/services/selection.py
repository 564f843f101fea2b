"""
Selection controller — one picker session for one record kind.

State machine:

    CLOSED --open--> OPEN --commit--> COMMITTED
                      |  \\--close--> CLOSED
                      \\-- rejected commit stays OPEN

INVARIANTS:
- open() never mutates the fleet or the ledger
- commit() re-evaluates before applying; evaluation and mutation happen in
  one call, so two commits of the same unique record cannot both succeed
- a rejected commit leaves fleet and ledger exactly as they were
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from fleetforge.models.availability import (
    AvailabilityResult,
    PointWindow,
    UpgradeSlotContext,
)
from fleetforge.models.catalog import (
    CatalogKind,
    CatalogRecord,
    ObjectiveRecord,
    ObjectiveType,
    ShipRecord,
    SquadronRecord,
    UpgradeRecord,
)
from fleetforge.models.failure import (
    DuplicateUniqueCommitError,
    EntryNotFoundError,
    IllegalSelectionError,
    PickerStateError,
    RecordNotFoundError,
)
from fleetforge.models.fleet import (
    FleetState,
    ObjectiveEntry,
    ShipEntry,
    SquadronEntry,
    UpgradeEntry,
)
from fleetforge.models.ledger import UniquenessLedger
from fleetforge.services.availability import (
    bound_shiptype_matches,
    derive_slot_context,
    evaluate_candidate,
)
from fleetforge.services.catalog import CatalogAccessor
from fleetforge.services.sorting import SortDirection, SortOption, sort_candidates

logger = logging.getLogger(__name__)


class PickerState(str, Enum):
    """Lifecycle of one picker session."""

    CLOSED = "closed"
    OPEN = "open"
    COMMITTED = "committed"


@dataclass(frozen=True)
class PickerFilter:
    """
    What a picker is choosing and the coarse filters applied to its listing.

    Attributes:
        kind: Record kind being picked
        window: Inclusive point-cost window
        upgrade_type: Slot type being filled (upgrades only)
        ship_entry_id: Receiving ship (upgrades only)
        objective_type: Objective category (objectives only)
        disqualified_types: Extra types the caller marks disqualified on the ship
        disabled_types: Extra types the caller marks disabled on the ship
    """

    kind: CatalogKind
    window: PointWindow = field(default_factory=PointWindow)
    upgrade_type: str | None = None
    ship_entry_id: str | None = None
    objective_type: ObjectiveType | None = None
    disqualified_types: frozenset[str] = frozenset()
    disabled_types: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if self.kind is CatalogKind.UPGRADE:
            if not self.upgrade_type or not self.ship_entry_id:
                raise ValueError("Upgrade pickers need an upgrade_type and a ship_entry_id")
        if self.kind is CatalogKind.OBJECTIVE and self.objective_type is None:
            raise ValueError("Objective pickers need an objective_type")


@dataclass(frozen=True)
class CandidateView:
    """A listed candidate together with its legality for rendering."""

    record: CatalogRecord
    result: AvailabilityResult

    @property
    def enabled(self) -> bool:
        return self.result.is_legal


class SelectionController:
    """
    Orchestrates one selection flow over a shared fleet and ledger.

    The fleet and ledger belong to the fleet-building session and are passed
    in; the controller only holds the picker's own state.
    """

    def __init__(
        self,
        accessor: CatalogAccessor,
        fleet: FleetState,
        ledger: UniquenessLedger,
    ) -> None:
        self.accessor = accessor
        self.fleet = fleet
        self.ledger = ledger
        self.state = PickerState.CLOSED
        self.picker_filter: PickerFilter | None = None
        self._candidates: tuple[CatalogRecord, ...] = ()

    @property
    def candidates(self) -> tuple[CatalogRecord, ...]:
        """The display set produced by the last open()."""
        return self._candidates

    # -------------------------------------------------------------------------
    # OPEN
    # -------------------------------------------------------------------------

    def open(self, picker_filter: PickerFilter) -> tuple[CatalogRecord, ...]:
        """
        Open the picker and compute its display set. Does not mutate state.

        Raises:
            PickerStateError: If the picker is already open
            EntryNotFoundError: If an upgrade picker names a ship not in the fleet
        """
        if self.state is PickerState.OPEN:
            raise PickerStateError("open", self.state.value)

        ship = None
        if picker_filter.kind is CatalogKind.UPGRADE:
            ship = self._receiving_ship(picker_filter)

        records = self.accessor.list_by_type(picker_filter.kind)
        self._candidates = tuple(r for r in records if self._matches(r, picker_filter, ship))
        self.picker_filter = picker_filter
        self.state = PickerState.OPEN

        logger.info(
            "Opened %s picker: %d of %d records listed",
            picker_filter.kind.value,
            len(self._candidates),
            len(records),
        )
        return self._candidates

    def _receiving_ship(self, picker_filter: PickerFilter) -> ShipEntry:
        ship_entry_id = picker_filter.ship_entry_id or ""
        ship = self.fleet.find_ship(ship_entry_id)
        if ship is None:
            raise EntryNotFoundError(ship_entry_id)
        return ship

    def _matches(
        self,
        record: CatalogRecord,
        picker_filter: PickerFilter,
        ship: ShipEntry | None,
    ) -> bool:
        """Coarse filter: faction, points, slot type, title chassis, objective type."""
        if isinstance(record, ObjectiveRecord):
            return record.objective_type == picker_filter.objective_type

        if not record.allows_faction(self.fleet.faction):
            return False
        if record.points not in picker_filter.window:
            return False

        if isinstance(record, UpgradeRecord):
            if record.upgrade_type != picker_filter.upgrade_type:
                return False
            # Titles for other chassis are never worth listing
            if record.upgrade_type == "title" and ship is not None:
                return bound_shiptype_matches(record, ship.record)

        return True

    # -------------------------------------------------------------------------
    # EVALUATE
    # -------------------------------------------------------------------------

    def _slot_context(self) -> UpgradeSlotContext | None:
        picker_filter = self.require_open("evaluate")
        if picker_filter.kind is not CatalogKind.UPGRADE:
            return None

        ship = self._receiving_ship(picker_filter)
        derived = derive_slot_context(ship, picker_filter.upgrade_type or "")
        return UpgradeSlotContext(
            ship_entry_id=ship.entry_id,
            upgrade_type=derived.upgrade_type,
            disqualified_types=derived.disqualified_types | picker_filter.disqualified_types,
            disabled_types=derived.disabled_types | picker_filter.disabled_types,
        )

    def evaluate(self, candidate: CatalogRecord) -> AvailabilityResult:
        """
        Fine-grained legality for one candidate.

        Raises:
            PickerStateError: If the picker is not open
        """
        picker_filter = self.require_open("evaluate")
        result = evaluate_candidate(
            candidate,
            self.fleet,
            self.ledger,
            window=picker_filter.window,
            slot=self._slot_context(),
        )
        logger.debug("Evaluated %s: %s (%s)", candidate.id, result.status.value, result.reason)
        return result

    def listing(
        self,
        sort: SortOption = SortOption.CUSTOM,
        direction: SortDirection = SortDirection.ASC,
    ) -> list[CandidateView]:
        """Every listed candidate with its legality, optionally sorted."""
        views = [CandidateView(record=r, result=self.evaluate(r)) for r in self._candidates]
        return sort_candidates(views, sort, direction)

    # -------------------------------------------------------------------------
    # COMMIT / CLOSE
    # -------------------------------------------------------------------------

    def find_candidate(self, record_id: str) -> CatalogRecord:
        """
        Find a listed candidate by id.

        Raises:
            RecordNotFoundError: If the record is not in the display set
        """
        for record in self._candidates:
            if record.id == record_id:
                return record
        raise RecordNotFoundError(record_id)

    def commit(self, candidate: CatalogRecord | str) -> FleetState:
        """
        Re-validate and apply a pick.

        Args:
            candidate: A listed record or its id

        Returns:
            The updated fleet state

        Raises:
            PickerStateError: If the picker is not open
            RecordNotFoundError: If the candidate is not in the display set
            DuplicateUniqueCommitError: If a unique name or class is already claimed
            IllegalSelectionError: If any other rule fails
        """
        self.require_open("commit")
        # Only records in the display set can be committed
        record = self.find_candidate(candidate if isinstance(candidate, str) else candidate.id)

        result = self.evaluate(record)
        if not result.is_legal:
            logger.warning(
                "Rejected commit of %s: %s",
                record.id,
                result.reason.value if result.reason else result.status.value,
            )
            if result.reason is not None and result.reason.is_uniqueness:
                raise DuplicateUniqueCommitError(record.id, result)
            raise IllegalSelectionError(record.id, result)

        self._apply(record)
        self.state = PickerState.COMMITTED
        logger.info(
            "Committed %s '%s' to %s fleet", record.kind.value, record.name, self.fleet.faction
        )
        return self.fleet

    def _apply(self, record: CatalogRecord) -> None:
        if isinstance(record, ShipRecord):
            self.fleet.ships.append(ShipEntry(record=record))
        elif isinstance(record, SquadronRecord):
            existing = None if record.unique else self.fleet.find_squadron(record.id)
            if existing is not None:
                existing.count += 1
            else:
                self.fleet.squadrons.append(SquadronEntry(record=record))
        elif isinstance(record, UpgradeRecord):
            picker_filter = self.require_open("commit")
            ship = self._receiving_ship(picker_filter)
            ship.upgrades.append(UpgradeEntry(record=record))
        elif isinstance(record, ObjectiveRecord):
            current = self.fleet.objective_for(record.objective_type)
            if current is not None:
                self.fleet.objectives.remove(current)
            self.fleet.objectives.append(ObjectiveEntry(record=record))

        self.ledger.claim_all(record.unique_tokens, record.id)

    def close(self) -> None:
        """Cancel the picker without changing anything."""
        self.state = PickerState.CLOSED
        self.picker_filter = None
        self._candidates = ()

    def require_open(self, operation: str) -> PickerFilter:
        if self.state is not PickerState.OPEN or self.picker_filter is None:
            raise PickerStateError(operation, self.state.value)
        return self.picker_filter
