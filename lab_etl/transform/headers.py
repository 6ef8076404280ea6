import re
from collections.abc import Mapping

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_key(key: str) -> str:
    """Fold a CSV header to lowercase alphanumerics: ' Case ID# ' -> 'caseid'."""
    return _NON_ALNUM.sub("", key.lower().strip())


def normalize_row(row: Mapping[str | None, object]) -> dict[str, object]:
    """Return a copy of ``row`` keyed by normalized headers.

    Two headers that fold to the same key collide; the later column in file
    order wins. A ``None`` key (surplus cells csv.DictReader could not name)
    is dropped.
    """
    normalized: dict[str, object] = {}
    for key, value in row.items():
        if key is None:
            continue
        normalized[normalize_key(key)] = value
    return normalized
