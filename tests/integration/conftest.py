import os
import uuid
from collections.abc import Generator
from typing import Any

import psycopg
import pytest
from psycopg import sql
from psycopg_pool import ConnectionPool

from lab_etl.config.settings import Settings
from lab_etl.database.connection import build_conninfo, create_pool
from lab_etl.pipeline.registry import PipelineRegistry, build_registry
from lab_etl.transform import mappers
from lab_etl.transform.models import FieldKind, FieldSpec

_SQL_TYPES = {
    FieldKind.TEXT: "text",
    FieldKind.INTEGER: "bigint",
    FieldKind.INTEGER_TEXT: "bigint",
    FieldKind.BOOLEAN: "boolean",
}

_TABLES: list[tuple[str, tuple[FieldSpec, ...], tuple[str, ...]]] = [
    ("incisive_product_catalog", mappers.LAB_PRODUCT_FIELDS, ("incisive_id",)),
    ("dental_practices", mappers.LAB_PRACTICE_FIELDS, ("practice_id",)),
    ("lab_product_mapping", mappers.LAB_PRODUCT_MAPPING_FIELDS, ("lab_id", "lab_product_id")),
    ("lab_practice_mapping", mappers.LAB_PRACTICE_MAPPING_FIELDS, ("lab_id", "lab_practice_id")),
    ("dental_groups", mappers.DENTAL_GROUP_FIELDS, ("dental_group_id",)),
]

MERGE_ORDERS_SQL = """
CREATE OR REPLACE PROCEDURE merge_orders_stage()
LANGUAGE plpgsql AS $$
BEGIN
    INSERT INTO orders (caseid, productid, quantity, row_hash)
    SELECT DISTINCT ON (row_hash) caseid, productid, quantity, row_hash
    FROM orders_stage
    ON CONFLICT (row_hash) DO NOTHING;
END;
$$
"""

FAILING_MERGE_SQL = """
CREATE OR REPLACE PROCEDURE merge_orders_stage()
LANGUAGE plpgsql AS $$
BEGIN
    RAISE EXCEPTION 'merge failed';
END;
$$
"""


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "lab_etl_test")
    return Settings()


def _create_table(
    conn: psycopg.Connection[Any],
    table: str,
    fields: tuple[FieldSpec, ...],
    unique: tuple[str, ...] = (),
    extra: tuple[str, ...] = (),
) -> None:
    columns = [
        sql.SQL("{} {}").format(sql.Identifier(f.target), sql.SQL(_SQL_TYPES[f.kind]))
        for f in fields
    ]
    columns += [sql.SQL("{} text").format(sql.Identifier(name)) for name in extra]
    if unique:
        columns.append(
            sql.SQL("UNIQUE ({})").format(sql.SQL(", ").join(sql.Identifier(c) for c in unique))
        )
    conn.execute(
        sql.SQL("CREATE TABLE {} ({})").format(sql.Identifier(table), sql.SQL(", ").join(columns))
    )


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def admin_conninfo(test_settings: Settings) -> str:
    conninfo = build_conninfo(test_settings)
    try:
        with psycopg.connect(conninfo):
            pass
    except Exception as e:
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to point at one")
    return conninfo


@pytest.fixture
def etl_schema(admin_conninfo: str) -> Generator[str, None, None]:
    """Throwaway schema holding every target table and the orders merge procedure."""
    schema = f"lab_etl_test_{uuid.uuid4().hex[:8]}"
    with psycopg.connect(admin_conninfo, autocommit=True) as conn:
        conn.execute(sql.SQL("CREATE SCHEMA {}").format(sql.Identifier(schema)))
        conn.execute(sql.SQL("SET search_path TO {}").format(sql.Identifier(schema)))
        for table, fields, unique in _TABLES:
            _create_table(conn, table, fields, unique)
        conn.execute(
            "ALTER TABLE dental_groups ADD CONSTRAINT dental_groups_name_len "
            "CHECK (char_length(name) <= 20)"
        )
        _create_table(
            conn,
            "orders_stage",
            mappers.ORDER_FIELDS,
            extra=("source_file_key", "row_hash"),
        )
        conn.execute(
            "CREATE TABLE orders (caseid bigint, productid text, quantity bigint, "
            "row_hash text UNIQUE)"
        )
        conn.execute(MERGE_ORDERS_SQL)
    try:
        yield schema
    finally:
        with psycopg.connect(admin_conninfo, autocommit=True) as conn:
            conn.execute(sql.SQL("DROP SCHEMA {} CASCADE").format(sql.Identifier(schema)))


@pytest.fixture
def schema_settings(test_settings: Settings, etl_schema: str) -> Settings:
    return test_settings.model_copy(
        update={
            "db_schema_search_path": etl_schema,
            "db_pool_min": 1,
            "db_pool_max": 2,
            "orders_source_path": "orders",
            "lab_product_source_path": "products",
            "lab_practice_source_path": "practices",
            "lab_product_mapping_source_path": "mappings",
            "lab_practice_mapping_source_path": "practice-mappings",
            "dental_groups_source_path": "dental-groups",
        }
    )


@pytest.fixture
def schema_pool(schema_settings: Settings) -> Generator[ConnectionPool, None, None]:
    pool = create_pool(schema_settings)
    try:
        yield pool
    finally:
        pool.close()


@pytest.fixture
def registry(schema_settings: Settings) -> PipelineRegistry:
    return build_registry(schema_settings)


@pytest.fixture
def db_conn(schema_pool: ConnectionPool) -> Generator[psycopg.Connection[Any], None, None]:
    with schema_pool.connection() as conn:
        yield conn


@pytest.fixture
def failing_merge(db_conn: psycopg.Connection[Any]) -> None:
    db_conn.execute(FAILING_MERGE_SQL)
    db_conn.commit()

