from dataclasses import dataclass


@dataclass(frozen=True)
class TableSpec:
    """Target table of one entity: column order and natural key."""

    name: str
    columns: tuple[str, ...]
    conflict_columns: tuple[str, ...] = ()


@dataclass(frozen=True)
class InsertResult:
    """Outcome of a single-row insert.

    ``success`` means "no error": an upsert-ignore insert that hit an existing
    natural key still reports success without creating a row.
    """

    success: bool
    error_code: str | None = None
    error_message: str | None = None

    @classmethod
    def ok(cls) -> "InsertResult":
        return cls(success=True)

    @classmethod
    def failed(cls, error_message: str, error_code: str | None = None) -> "InsertResult":
        return cls(success=False, error_code=error_code, error_message=error_message)
