from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

from lab_etl.transform.coercion import is_blank, to_bool, to_int, to_int_text, to_text


class FieldKind(str, Enum):
    TEXT = "text"
    INTEGER = "integer"
    INTEGER_TEXT = "integer_text"
    BOOLEAN = "boolean"


_CONVERTERS: dict[FieldKind, Callable[[object], object]] = {
    FieldKind.TEXT: to_text,
    FieldKind.INTEGER: to_int,
    FieldKind.INTEGER_TEXT: to_int_text,
    FieldKind.BOOLEAN: to_bool,
}


@dataclass(frozen=True)
class FieldSpec:
    """One target column and the normalized source key it is read from."""

    target: str
    source: str
    kind: FieldKind = FieldKind.TEXT

    def convert(self, value: object) -> object:
        return _CONVERTERS[self.kind](value)


@dataclass(frozen=True)
class MappedRow:
    """Entity-shaped values plus the columns whose source value failed coercion.

    ``None`` is the explicit "absent" marker in ``values``.
    """

    values: dict[str, object]
    invalid_fields: tuple[str, ...] = field(default_factory=tuple)

    def missing_fields(self, required: Sequence[str]) -> list[str]:
        """Required columns that are absent or blank, in ``required`` order.

        Columns that failed coercion are reported through ``invalid_fields``
        instead, so they are not listed here.
        """
        return [
            name
            for name in required
            if name not in self.invalid_fields and is_blank(self.values.get(name))
        ]


MapFunction = Callable[[Mapping[str, object]], MappedRow]
