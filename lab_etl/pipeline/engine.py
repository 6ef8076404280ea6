from collections.abc import Sequence
from typing import Any

import psycopg
from psycopg_pool import ConnectionPool

from lab_etl.logging.logger import Log
from lab_etl.pipeline.exceptions import FatalTransactionError
from lab_etl.pipeline.models import (
    RowOutcome,
    RowPersistenceFailure,
    RowSuccess,
    RowValidationFailure,
)
from lab_etl.pipeline.registry import PipelineDefinition
from lab_etl.transform.headers import normalize_row

DEFAULT_BATCH_SIZE = 100


def validation_reason(missing: Sequence[str], invalid: Sequence[str]) -> str:
    parts = []
    if missing:
        parts.append(f"Missing required fields: {', '.join(missing)}")
    if invalid:
        parts.append(f"Invalid values for fields: {', '.join(invalid)}")
    return "; ".join(parts)


class PipelineEngine:
    """Loads one file's rows under a single transaction.

    Each insert runs in its own savepoint, so a rejected row is rolled back on
    its own while the rest of the file still commits. The post-process step
    (the orders merge) runs inside the same transaction; if it fails, every
    row of the file is rolled back.

    Batches only control how often progress is logged.
    """

    def __init__(self, pool: ConnectionPool, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._pool = pool
        self._batch_size = batch_size

    def run(
        self,
        definition: PipelineDefinition,
        rows: Sequence[dict[str, str]],
        source_key: str,
    ) -> list[RowOutcome]:
        """Process every row and return one outcome per row, in input order.

        Raises:
            FatalTransactionError: if the transaction could not be committed;
                nothing from this file is left in the database.
        """
        outcomes: list[RowOutcome] = []
        Log.info(
            f"Loading {len(rows)} {definition.label} rows from {source_key} "
            f"(required: {', '.join(definition.required_fields)})"
        )
        try:
            with self._pool.connection() as conn:
                with conn.transaction():
                    if definition.truncate_before_load:
                        definition.repository.truncate(conn)
                    for start in range(0, len(rows), self._batch_size):
                        batch = rows[start : start + self._batch_size]
                        for offset, raw_row in enumerate(batch):
                            row_number = start + offset + 1
                            outcomes.append(
                                self._process_row(conn, definition, raw_row, row_number, source_key)
                            )
                        self._log_batch(start, len(batch), len(rows), outcomes)
                    if definition.post_process is not None:
                        definition.post_process(conn)
        except FatalTransactionError as exc:
            Log.error(f"Transaction rolled back for {source_key}: {exc}")
            raise
        except Exception as exc:
            Log.error(f"Transaction rolled back for {source_key}: {exc}")
            raise FatalTransactionError(f"{source_key}: {exc}") from exc

        errors = sum(1 for o in outcomes if not isinstance(o, RowSuccess))
        Log.info(
            f"Transaction committed for {source_key}: {len(rows)} rows, "
            f"{len(rows) - errors} succeeded, {errors} failed"
        )
        return outcomes

    def _process_row(
        self,
        conn: psycopg.Connection[Any],
        definition: PipelineDefinition,
        raw_row: dict[str, str],
        row_number: int,
        source_key: str,
    ) -> RowOutcome:
        raw = dict(raw_row)
        mapped = definition.map_row(normalize_row(raw))
        missing = mapped.missing_fields(definition.required_fields)
        invalid = list(mapped.invalid_fields)
        if missing or invalid:
            reason = validation_reason(missing, invalid)
            Log.error(f"Skipping row {row_number} of {source_key}: {reason}")
            return RowValidationFailure(
                row_number=row_number,
                raw_row=raw,
                missing_fields=missing,
                invalid_fields=invalid,
                reason=reason,
            )

        try:
            result = definition.repository.insert(conn, mapped.values, source_key)
        except psycopg.OperationalError as exc:
            raise FatalTransactionError(f"connection lost at row {row_number}: {exc}") from exc
        except Exception as exc:
            if conn.broken:
                raise FatalTransactionError(
                    f"connection lost at row {row_number}: {exc}"
                ) from exc
            Log.error(f"Error inserting row {row_number} of {source_key}: {exc}")
            return RowPersistenceFailure(row_number=row_number, raw_row=raw, reason=str(exc))

        if not result.success:
            reason = result.error_message or "Insert failed"
            Log.error(f"Error inserting row {row_number} of {source_key}: {reason}")
            return RowPersistenceFailure(
                row_number=row_number,
                raw_row=raw,
                reason=reason,
                error_code=result.error_code,
            )
        Log.debug(f"Row {row_number} of {source_key} inserted")
        return RowSuccess(row_number=row_number, raw_row=raw)

    @staticmethod
    def _log_batch(start: int, size: int, total: int, outcomes: list[RowOutcome]) -> None:
        errors = sum(1 for o in outcomes if not isinstance(o, RowSuccess))
        Log.info(
            f"Batch processed: rows {start + 1}-{start + size} of {total} "
            f"(success={len(outcomes) - errors}, errors={errors})"
        )
