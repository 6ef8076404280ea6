import re
from decimal import Decimal, InvalidOperation

from lab_etl.transform.exceptions import CoercionError

_TRUE_VALUES = frozenset({"true", "t", "yes", "y", "1"})
_FALSE_VALUES = frozenset({"false", "f", "no", "n", "0"})
_INTEGER_TEXT = re.compile(r"\s*[+-]?[0-9]+\s*")


def is_blank(value: object) -> bool:
    """Absent and whitespace-only values are the same thing for validation."""
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def to_text(value: object) -> str | None:
    if is_blank(value):
        return None
    return str(value)


def to_int(value: object) -> int | None:
    """Parse an integer column value.

    Accepts an optional sign, digits, and integral decimals such as ``"3.0"``.

    Raises:
        CoercionError: if the value is present but not an integer.
    """
    if is_blank(value):
        return None
    if isinstance(value, bool):
        raise CoercionError(f"{value!r} is not an integer")
    if isinstance(value, int):
        return value
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = Decimal(text)
    except InvalidOperation as exc:
        raise CoercionError(f"{text!r} is not an integer") from exc
    if not number.is_finite() or number != number.to_integral_value():
        raise CoercionError(f"{text!r} is not an integer")
    return int(number)


def to_int_text(value: object) -> str | None:
    """Check that a value is a plain integer but keep its source text.

    Used for identifier columns whose text takes part in the orders row hash.

    Raises:
        CoercionError: if the value is present but not an integer.
    """
    if is_blank(value):
        return None
    text = str(value)
    if not _INTEGER_TEXT.fullmatch(text):
        raise CoercionError(f"{text!r} is not an integer")
    return text


def to_bool(value: object) -> bool | None:
    """Parse a boolean column value (true/t/yes/y/1, false/f/no/n/0).

    Raises:
        CoercionError: if the value is present but not a recognized boolean.
    """
    if is_blank(value):
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise CoercionError(f"{value!r} is not a boolean")
