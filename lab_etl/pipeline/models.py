from dataclasses import dataclass, field
from enum import Enum


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    PERSISTENCE_ERROR = "persistence_error"


@dataclass(frozen=True, slots=True)
class RowSuccess:
    row_number: int
    raw_row: dict[str, str]
    status: OutcomeStatus = field(default=OutcomeStatus.SUCCESS, init=False)

    @property
    def reason(self) -> str:
        return ""

    @property
    def missing_fields(self) -> list[str]:
        return []


@dataclass(frozen=True, slots=True)
class RowValidationFailure:
    """A required column was blank or a value could not be coerced."""

    row_number: int
    raw_row: dict[str, str]
    missing_fields: list[str]
    invalid_fields: list[str]
    reason: str
    status: OutcomeStatus = field(default=OutcomeStatus.VALIDATION_ERROR, init=False)


@dataclass(frozen=True, slots=True)
class RowPersistenceFailure:
    """The insert for a valid row was rejected or raised."""

    row_number: int
    raw_row: dict[str, str]
    reason: str
    error_code: str | None = None
    status: OutcomeStatus = field(default=OutcomeStatus.PERSISTENCE_ERROR, init=False)

    @property
    def missing_fields(self) -> list[str]:
        return []


RowOutcome = RowSuccess | RowValidationFailure | RowPersistenceFailure


@dataclass
class FileProcessingResult:
    """Outcome of one file, consumed by the audit reporter and the runner."""

    file_name: str
    headers: list[str] = field(default_factory=list)
    outcomes: list[RowOutcome] = field(default_factory=list)
    records: list[list[str]] = field(default_factory=list)
    duration_seconds: float = 0.0
    skipped: bool = False
    processed_key: str | None = None
    remark_key: str | None = None

    @property
    def row_count(self) -> int:
        return len(self.outcomes)

    @property
    def success_count(self) -> int:
        return sum(1 for o in self.outcomes if isinstance(o, RowSuccess))

    @property
    def error_count(self) -> int:
        return self.row_count - self.success_count

    @property
    def validation_errors(self) -> list[RowValidationFailure]:
        return [o for o in self.outcomes if isinstance(o, RowValidationFailure)]
