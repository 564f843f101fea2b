from fleetforge.models.availability import (
    AvailabilityReason,
    AvailabilityResult,
    AvailabilityStatus,
    PointWindow,
    UpgradeSlotContext,
)
from fleetforge.models.catalog import (
    CatalogKind,
    CatalogRecord,
    CatalogVariant,
    ObjectiveRecord,
    ObjectiveType,
    ShipRecord,
    SquadronRecord,
    UpgradeRecord,
    UpgradeRestrictions,
)
from fleetforge.models.failure import (
    ApiResponse,
    CatalogMissingError,
    DuplicateUniqueCommitError,
    EntryNotFoundError,
    FailureDetail,
    FailureKind,
    IllegalSelectionError,
    InvalidFactionError,
    KnownError,
    MalformedRecordError,
    OutcomeType,
    PickerStateError,
    RecordNotFoundError,
    SessionNotFoundError,
)
from fleetforge.models.fleet import (
    FleetEntry,
    FleetState,
    ObjectiveEntry,
    ShipEntry,
    SquadronEntry,
    UpgradeEntry,
)
from fleetforge.models.ledger import UniquenessLedger, rebuild_ledger

__all__ = [
    "ApiResponse",
    "AvailabilityReason",
    "AvailabilityResult",
    "AvailabilityStatus",
    "CatalogKind",
    "CatalogMissingError",
    "CatalogRecord",
    "CatalogVariant",
    "DuplicateUniqueCommitError",
    "EntryNotFoundError",
    "FailureDetail",
    "FailureKind",
    "FleetEntry",
    "FleetState",
    "IllegalSelectionError",
    "InvalidFactionError",
    "KnownError",
    "MalformedRecordError",
    "ObjectiveEntry",
    "ObjectiveRecord",
    "ObjectiveType",
    "OutcomeType",
    "PickerStateError",
    "PointWindow",
    "RecordNotFoundError",
    "SessionNotFoundError",
    "ShipEntry",
    "ShipRecord",
    "SquadronEntry",
    "SquadronRecord",
    "UniquenessLedger",
    "UpgradeEntry",
    "UpgradeRecord",
    "UpgradeRestrictions",
    "UpgradeSlotContext",
    "rebuild_ledger",
]
