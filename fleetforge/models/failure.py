"""
Failure Envelope — Classified, Explained Failures.

Every failure the engine can produce is classified here. None of them is
fatal to the process: a missing catalog degrades to an empty listing, a
malformed record is skipped, an illegal pick is rejected with the rule that
failed.

Response types:
- Success: Operation completed successfully
- Refusal: The engine chose not to apply a selection (a rule failed)
- KnownFailure: The engine knows why the operation failed
- UnknownFailure: The engine does not know why it failed

AUTHORITY BOUNDARY:
All user-visible failure responses pass through `finalize_response()`.
Known errors render through `KnownError.to_response()`; anything else the
HTTP layer did not expect becomes `create_unknown_failure()`.
"""

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

from fleetforge.models.availability import AvailabilityReason, AvailabilityResult


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"
    INVALID_STATE = "invalid_state"

    # Resource failures
    NOT_FOUND = "not_found"
    CATALOG_MISSING = "catalog_missing"
    MALFORMED_RECORD = "malformed_record"

    # Selection rule violations
    ILLEGAL_SELECTION = "illegal_selection"
    DUPLICATE_UNIQUE_COMMIT = "duplicate_unique_commit"

    # Unknown
    UNKNOWN = "unknown"


class OutcomeType(str, Enum):
    """High-level outcome classification."""

    SUCCESS = "success"
    REFUSAL = "refusal"
    KNOWN_FAILURE = "known_failure"
    UNKNOWN_FAILURE = "unknown_failure"


T = TypeVar("T")


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    reason: AvailabilityReason | None = Field(
        default=None,
        description="Selection rule that failed, for rejected picks",
    )


class ApiResponse(BaseModel, Generic[T]):
    """
    Response envelope for failures surfaced over the API.

    Every failure is classified into one of the outcome types so no error
    reaches the caller unexplained.
    """

    outcome: OutcomeType = Field(
        ...,
        description="High-level classification of the result",
    )
    data: T | None = Field(
        default=None,
        description="Response data (present on success)",
    )
    failure: FailureDetail | None = Field(
        default=None,
        description="Failure details (present on non-success)",
    )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the engine knows exactly what went wrong.
    """

    outcome: OutcomeType = OutcomeType.KNOWN_FAILURE

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.status_code = status_code
        super().__init__(message)

    def to_detail(self) -> FailureDetail:
        return FailureDetail(kind=self.kind, message=self.message, detail=self.detail)

    def to_response(self) -> ApiResponse[Any]:
        """Convert to a finalized ApiResponse."""
        response: ApiResponse[Any] = ApiResponse(outcome=self.outcome, failure=self.to_detail())
        return finalize_response(response)


class CatalogMissingError(KnownError):
    """A requested catalog kind or variant is absent from the snapshot."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(
            kind=FailureKind.CATALOG_MISSING,
            message=f"Catalog '{key}' is not available",
            status_code=404,
        )


class MalformedRecordError(KnownError):
    """A catalog entry is missing required fields after normalization."""

    def __init__(self, key: str, record_key: str, missing: str):
        self.key = key
        self.record_key = record_key
        self.missing = missing
        super().__init__(
            kind=FailureKind.MALFORMED_RECORD,
            message=f"Catalog entry '{record_key}' in '{key}' is missing '{missing}'",
        )


class RecordNotFoundError(KnownError):
    """No catalog record with the requested id exists."""

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"No catalog entry with id '{record_id}'",
            status_code=404,
        )


class IllegalSelectionError(KnownError):
    """
    A commit was rejected because a selection rule failed.

    Carries the same reason code the evaluator produced for the candidate.
    """

    outcome = OutcomeType.REFUSAL

    def __init__(
        self,
        record_id: str,
        result: AvailabilityResult,
        kind: FailureKind = FailureKind.ILLEGAL_SELECTION,
    ):
        self.record_id = record_id
        self.result = result
        self.reason = result.reason
        super().__init__(
            kind=kind,
            message=f"'{record_id}' cannot be selected: {result.message}",
            detail=result.reason.value if result.reason else None,
            status_code=409,
        )

    def to_detail(self) -> FailureDetail:
        detail = super().to_detail()
        detail.reason = self.reason
        return detail


class DuplicateUniqueCommitError(IllegalSelectionError):
    """
    A unique name or class was claimed between evaluation and commit.

    The ledger is left unchanged.
    """

    notice = "You can't select multiple unique items."

    def __init__(self, record_id: str, result: AvailabilityResult):
        super().__init__(record_id, result, kind=FailureKind.DUPLICATE_UNIQUE_COMMIT)


class PickerStateError(KnownError):
    """A picker operation was called in a state that does not allow it."""

    def __init__(self, operation: str, state: str):
        self.operation = operation
        self.state = state
        super().__init__(
            kind=FailureKind.INVALID_STATE,
            message=f"Cannot {operation} while picker is {state}",
        )


class EntryNotFoundError(KnownError):
    """No fleet entry with the requested id exists."""

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"No fleet entry with id '{entry_id}'",
            status_code=404,
        )


class SessionNotFoundError(KnownError):
    """No live fleet-building session with the requested id exists."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"No fleet session with id '{session_id}'",
            status_code=404,
        )


class InvalidFactionError(KnownError):
    """The requested faction is not a known faction."""

    def __init__(self, faction: str):
        self.faction = faction
        super().__init__(
            kind=FailureKind.INVALID_INPUT,
            message=f"Unknown faction '{faction}'",
        )


# =============================================================================
# FAILURE AUTHORITY BOUNDARY
# =============================================================================

UNKNOWN_FAILURE_MESSAGE = "Something went wrong while building the fleet."

def finalize_response(response: ApiResponse[Any]) -> ApiResponse[Any]:
    """
    Finalize a response through the authority boundary.

    Raises:
        ValueError: If response structure is invalid
    """
    if response.outcome == OutcomeType.SUCCESS:
        if response.failure is not None:
            raise ValueError("Success response must not have failure details")
    else:
        if response.failure is None:
            raise ValueError(f"{response.outcome.value} response must have failure details")

    return response


def create_unknown_failure(exception: Exception) -> ApiResponse[Any]:
    """
    Create an unknown failure response from an exception.

    The message is fixed; only the exception type is reported.
    """
    response: ApiResponse[Any] = ApiResponse(
        outcome=OutcomeType.UNKNOWN_FAILURE,
        failure=FailureDetail(
            kind=FailureKind.UNKNOWN,
            message=UNKNOWN_FAILURE_MESSAGE,
            detail=type(exception).__name__,
        ),
    )

    return finalize_response(response)
