from collections.abc import Mapping
from typing import Any

import psycopg
from psycopg import sql

from lab_etl.database.models import InsertResult, TableSpec
from lab_etl.logging.logger import Log


class EntityRepository:
    """Single-row inserts into one reference-data table.

    Rows whose natural key already exists are skipped with
    ``ON CONFLICT ... DO NOTHING`` and still reported as success.
    """

    def __init__(self, table: TableSpec) -> None:
        self._table = table
        self._insert_query = self._build_insert_query()

    @property
    def table(self) -> TableSpec:
        return self._table

    @property
    def insert_query(self) -> sql.Composed:
        return self._insert_query

    def insert(
        self,
        conn: psycopg.Connection[Any],
        values: Mapping[str, object],
        source_key: str,
    ) -> InsertResult:
        """Insert one row inside its own savepoint.

        A database error rolls back only this row and is returned as a failed
        result. Connection-level failures propagate.
        """
        params = self._params(values, source_key)
        try:
            with conn.transaction():
                conn.execute(self._insert_query, params)
        except psycopg.OperationalError:
            raise
        except psycopg.DatabaseError as exc:
            sqlstate = getattr(exc, "sqlstate", None)
            Log.debug(f"Insert into {self._table.name} rejected ({sqlstate}): {exc}")
            return InsertResult.failed(str(exc).strip(), sqlstate)
        return InsertResult.ok()

    def truncate(self, conn: psycopg.Connection[Any]) -> None:
        """Empty the table on the caller's transaction."""
        conn.execute(
            sql.SQL("TRUNCATE TABLE {table}").format(table=sql.Identifier(self._table.name))
        )
        Log.info(f"Table {self._table.name} truncated")

    def _columns(self) -> tuple[str, ...]:
        return self._table.columns

    def _params(self, values: Mapping[str, object], source_key: str) -> tuple[object, ...]:
        return tuple(values.get(column) for column in self._table.columns)

    def _build_insert_query(self) -> sql.Composed:
        columns = self._columns()
        query = sql.SQL("INSERT INTO {table} ({columns}) VALUES ({values})").format(
            table=sql.Identifier(self._table.name),
            columns=sql.SQL(", ").join(sql.Identifier(c) for c in columns),
            values=sql.SQL(", ").join(sql.Placeholder() for _ in columns),
        )
        if self._table.conflict_columns:
            query += sql.SQL(" ON CONFLICT ({keys}) DO NOTHING").format(
                keys=sql.SQL(", ").join(sql.Identifier(c) for c in self._table.conflict_columns)
            )
        return query
