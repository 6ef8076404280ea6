from typing import Any

import psycopg
from psycopg import sql

ORDER_HEADERS = [
    "Submission Date",
    "Case Date",
    "Case ID",
    "Product ID",
    "Product Description",
    "Quantity",
    "Customer ID",
    "Notes",
]


def order_row(caseid: str = "1001", quantity: str = "2", notes: str = "") -> dict[str, str]:
    """One raw orders record keyed the way upstream exports name the columns."""
    return {
        "Submission Date": "2026-10-01",
        "Case Date": "2026-09-30",
        "Case ID": caseid,
        "Product ID": "CROWN-01",
        "Product Description": "Zirconia crown",
        "Quantity": quantity,
        "Customer ID": "C-77",
        "Notes": notes,
    }


def to_csv_bytes(headers: list[str], rows: list[dict[str, str]]) -> bytes:
    lines = [",".join(headers)]
    for row in rows:
        lines.append(",".join(row.get(h, "") for h in headers))
    return ("\n".join(lines) + "\n").encode("utf-8")


def count_rows(conn: psycopg.Connection[Any], table: str) -> int:
    """Row count of ``table``; commits so no lock outlives the query."""
    row = conn.execute(sql.SQL("SELECT count(*) FROM {}").format(sql.Identifier(table))).fetchone()
    conn.commit()
    assert row is not None
    return int(row[0])
