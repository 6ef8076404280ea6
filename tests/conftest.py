import pytest

from tests.helpers import ORDER_HEADERS, order_row, to_csv_bytes


@pytest.fixture()
def orders_csv_bytes() -> bytes:
    """Three orders rows; the second one has no case id."""
    return to_csv_bytes(
        ORDER_HEADERS,
        [order_row("1001"), order_row(""), order_row("1003")],
    )


@pytest.fixture()
def empty_orders_csv_bytes() -> bytes:
    """Header row only."""
    return to_csv_bytes(ORDER_HEADERS, [])
