import hashlib
import json
from collections.abc import Mapping
from typing import Any

import psycopg
from psycopg import sql

from lab_etl.database.models import TableSpec
from lab_etl.database.repositories.entity_repository import EntityRepository
from lab_etl.logging.logger import Log

SOURCE_FILE_KEY_COLUMN = "source_file_key"
ROW_HASH_COLUMN = "row_hash"


def compute_row_hash(values: Mapping[str, object]) -> str:
    """MD5 of the row's compact, key-sorted JSON encoding.

    Identical business rows hash identically regardless of which file they
    came from; the merge procedure relies on this to collapse duplicates.
    Non-ASCII text is encoded as raw UTF-8, never as \\u escapes.
    """
    encoded = json.dumps(
        dict(values), sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str
    )
    return hashlib.md5(encoded.encode("utf-8")).hexdigest()


class StagingRepository(EntityRepository):
    """Truncate-and-load into a staging table reconciled by a merge procedure.

    No conflict handling: duplicates accumulate in staging and are resolved
    by the procedure using ``row_hash``.
    """

    def __init__(self, table: TableSpec, merge_procedure: str) -> None:
        self._merge_procedure = merge_procedure
        super().__init__(table)

    @property
    def merge_procedure(self) -> str:
        return self._merge_procedure

    def call_merge(self, conn: psycopg.Connection[Any]) -> None:
        """Run the zero-argument merge procedure on the caller's transaction."""
        Log.info(f"Calling {self._merge_procedure}() stored procedure")
        conn.execute(sql.SQL("CALL {proc}()").format(proc=sql.Identifier(self._merge_procedure)))
        Log.info(f"Stored procedure {self._merge_procedure}() executed successfully")

    def _columns(self) -> tuple[str, ...]:
        return (*self.table.columns, SOURCE_FILE_KEY_COLUMN, ROW_HASH_COLUMN)

    def _params(self, values: Mapping[str, object], source_key: str) -> tuple[object, ...]:
        business = tuple(values.get(column) for column in self.table.columns)
        row = {column: values.get(column) for column in self.table.columns}
        return (*business, source_key, compute_row_hash(row))
