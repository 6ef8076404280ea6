import csv
import io
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ParsedCsv:
    """Header row and records of one CSV file, in file order.

    ``records`` holds each record's cells aligned to ``headers``; ``rows`` holds
    the same records keyed by header, where a repeated header keeps its last
    cell.
    """

    headers: list[str] = field(default_factory=list)
    rows: list[dict[str, str]] = field(default_factory=list)
    records: list[list[str]] = field(default_factory=list)


def parse_csv(data: bytes, encoding: str = "utf-8-sig") -> ParsedCsv:
    """Parse a whole CSV payload into header-aligned records.

    Short rows get ``""`` for their missing cells. Surplus cells on a long
    row are dropped. Blank lines are skipped.
    """
    reader = csv.reader(io.StringIO(data.decode(encoding), newline=""))
    headers = next(reader, [])
    rows = []
    records = []
    for cells in reader:
        if not cells:
            continue
        aligned = (cells + [""] * len(headers))[: len(headers)]
        records.append(aligned)
        rows.append(dict(zip(headers, aligned, strict=True)))
    return ParsedCsv(headers=headers, rows=rows, records=records)
