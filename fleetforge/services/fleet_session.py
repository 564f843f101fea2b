"""
Fleet session — the fleet-editing surface for one player building one fleet.

A session owns its FleetState and its UniquenessLedger. Both are created
empty when the session starts and are changed only through the session's
own operations (pick, removal, squadron counts, loading a saved roster).
At most one picker is open at a time.
"""

import logging
from functools import lru_cache
from uuid import uuid4

from fleetforge.config import FACTION_ALIASES, FACTIONS
from fleetforge.models.availability import AvailabilityResult
from fleetforge.models.catalog import CatalogRecord
from fleetforge.models.failure import (
    DuplicateUniqueCommitError,
    EntryNotFoundError,
    InvalidFactionError,
    PickerStateError,
    SessionNotFoundError,
)
from fleetforge.models.fleet import FleetEntry, FleetState, SquadronEntry
from fleetforge.models.ledger import UniquenessLedger, rebuild_ledger
from fleetforge.services.catalog import CatalogAccessor
from fleetforge.services.selection import (
    CandidateView,
    PickerFilter,
    PickerState,
    SelectionController,
)
from fleetforge.services.sorting import SortDirection, SortOption

logger = logging.getLogger(__name__)


def normalize_faction(faction: str) -> str:
    """
    Canonical faction name.

    Raises:
        InvalidFactionError: If the faction is not known
    """
    name = faction.strip().lower()
    name = FACTION_ALIASES.get(name, name)
    if name not in FACTIONS:
        raise InvalidFactionError(faction)
    return name


class FleetSession:
    """One fleet-building session."""

    def __init__(self, accessor: CatalogAccessor, faction: str) -> None:
        self.accessor = accessor
        self.fleet = FleetState(faction=normalize_faction(faction))
        self.ledger = UniquenessLedger()
        self._controller: SelectionController | None = None
        self._notice: str | None = None

    @property
    def faction(self) -> str:
        return self.fleet.faction

    @property
    def picker(self) -> SelectionController | None:
        """The open picker, if any."""
        if self._controller is not None and self._controller.state is PickerState.OPEN:
            return self._controller
        return None

    def _open_picker(self, operation: str) -> SelectionController:
        picker = self.picker
        if picker is None:
            raise PickerStateError(operation, PickerState.CLOSED.value)
        return picker

    # -------------------------------------------------------------------------
    # PICKER FLOW
    # -------------------------------------------------------------------------

    def open_picker(self, picker_filter: PickerFilter) -> tuple[CatalogRecord, ...]:
        """Open a picker. A picker left open is cancelled first."""
        if self.picker is not None:
            logger.info("Cancelling open picker before opening a new one")
            self.cancel()

        controller = SelectionController(self.accessor, self.fleet, self.ledger)
        candidates = controller.open(picker_filter)
        self._controller = controller
        return candidates

    @property
    def picker_filter(self) -> PickerFilter:
        """
        Filter of the open picker.

        Raises:
            PickerStateError: If no picker is open
        """
        return self._open_picker("list").require_open("list")

    def listing(
        self,
        sort: SortOption = SortOption.CUSTOM,
        direction: SortDirection = SortDirection.ASC,
    ) -> list[CandidateView]:
        return self._open_picker("list").listing(sort, direction)

    def evaluate(self, candidate_id: str) -> AvailabilityResult:
        picker = self._open_picker("evaluate")
        return picker.evaluate(picker.find_candidate(candidate_id))

    def pick(self, candidate_id: str) -> FleetState:
        """
        Commit a listed candidate.

        A rejected pick leaves the picker open so another candidate can be
        chosen. Uniqueness rejections also leave a transient notice.

        Raises:
            PickerStateError: If no picker is open
            DuplicateUniqueCommitError: If the unique name or class is taken
            IllegalSelectionError: If any other rule fails
        """
        picker = self._open_picker("pick")
        try:
            fleet = picker.commit(candidate_id)
        except DuplicateUniqueCommitError as e:
            self._notice = e.notice
            raise
        self._controller = None
        return fleet

    def cancel(self) -> None:
        """Close the open picker without changing the fleet."""
        if self._controller is not None:
            self._controller.close()
        self._controller = None

    def pop_notice(self) -> str | None:
        """Return the pending transient notice once, then clear it."""
        notice, self._notice = self._notice, None
        return notice

    # -------------------------------------------------------------------------
    # FLEET EDITING
    # -------------------------------------------------------------------------

    def remove_from_fleet(self, entry_id: str) -> FleetState:
        """
        Remove a ship, attached upgrade, squadron or objective.

        The ledger is rebuilt from the fleet that remains. An open picker is
        cancelled, since its listing may no longer reflect the fleet.

        Raises:
            EntryNotFoundError: If no entry has that id
        """
        removed: FleetEntry | None = self.fleet.remove_entry(entry_id)
        if removed is None:
            raise EntryNotFoundError(entry_id)

        self.cancel()
        self.ledger = rebuild_ledger(self.fleet)
        logger.info(
            "Removed '%s' from %s fleet; %d tokens claimed",
            removed.record.name,
            self.faction,
            len(self.ledger),
        )
        return self.fleet

    def replace_fleet(self, fleet: FleetState, ledger: UniquenessLedger) -> FleetState:
        """
        Swap in a fleet rebuilt elsewhere (e.g. from a saved roster).

        Raises:
            ValueError: If the fleet belongs to a different faction
        """
        if fleet.faction != self.faction:
            raise ValueError(
                f"Cannot load a {fleet.faction} fleet into a {self.faction} session"
            )

        self.cancel()
        self.fleet = fleet
        self.ledger = ledger
        return self.fleet

    def set_squadron_count(self, entry_id: str, count: int) -> FleetState:
        """
        Set how many copies of a non-unique squadron the fleet holds.

        Raises:
            EntryNotFoundError: If the id is not a squadron entry
            ValueError: If count < 1, or > 1 for a unique squadron
        """
        entry = self.fleet.find_entry(entry_id)
        if not isinstance(entry, SquadronEntry):
            raise EntryNotFoundError(entry_id)
        if count < 1:
            raise ValueError(f"Squadron count must be at least 1, got {count}")
        if entry.record.unique and count > 1:
            raise ValueError(
                f"'{entry.record.name}' is unique and cannot be fielded {count} times"
            )

        entry.count = count
        return self.fleet


class SessionRegistry:
    """Live fleet sessions keyed by generated id. Nothing here is persisted."""

    def __init__(self) -> None:
        self._sessions: dict[str, FleetSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def start_session(self, accessor: CatalogAccessor, faction: str) -> tuple[str, FleetSession]:
        """Start a new session with an empty fleet and ledger."""
        session = FleetSession(accessor, faction)
        session_id = uuid4().hex
        self._sessions[session_id] = session
        logger.info("Started %s fleet session %s", session.faction, session_id)
        return session_id, session

    def get(self, session_id: str) -> FleetSession:
        """
        Raises:
            SessionNotFoundError: If no live session has that id
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def end_session(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is None:
            raise SessionNotFoundError(session_id)
        logger.info("Ended fleet session %s", session_id)


@lru_cache(maxsize=1)
def get_session_registry() -> SessionRegistry:
    """Registry used by the HTTP layer."""
    return SessionRegistry()
