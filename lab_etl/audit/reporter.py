import csv
import io
import re
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from lab_etl.logging.logger import COMBINED_LOG_NAME, Log
from lab_etl.pipeline.models import FileProcessingResult, RowOutcome, RowSuccess
from lab_etl.storage.models import StoragePaths
from lab_etl.storage.s3_gateway import S3Gateway

REMARK_COLUMNS = ("remark_status", "reason", "missing_fields")

_RULE = "=" * 80
_THIN_RULE = "-" * 80
_NEWLINES = re.compile(r"\r?\n|\r")


def _flatten(value: object) -> str:
    return _NEWLINES.sub(" ", "" if value is None else str(value))


class AuditReporter:
    """Builds the per-file summary (local log only) and remark CSV (uploaded on errors)."""

    def __init__(
        self,
        gateway: S3Gateway,
        log_dir: str | Path,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._gateway = gateway
        self._log_dir = Path(log_dir)
        self._clock = clock or (lambda: datetime.now(UTC))

    def report(self, result: FileProcessingResult, paths: StoragePaths) -> str | None:
        """Append the summary and publish the remark when any row failed.

        Returns:
            The uploaded remark key, or None when every row succeeded.
        """
        self.append_summary(result)
        if result.error_count == 0:
            return None
        content = self.render_remark(result)
        self._write_local_remark(result.file_name, content)
        return self._gateway.upload_remark(content, result.file_name, paths)

    def render_summary(self, result: FileProcessingResult) -> str:
        rate = (result.success_count / result.row_count * 100) if result.row_count else 0.0
        lines = [
            "",
            _RULE,
            "ETL PROCESSING SUMMARY REPORT",
            _RULE,
            "",
            f"File Name: {result.file_name}",
            f"Processing Date: {self._clock().isoformat()}",
            f"Duration: {result.duration_seconds:.2f} seconds",
            "",
            "STATISTICS:",
            _THIN_RULE,
            f"Total Rows in CSV: {result.row_count}",
            f"Successfully Processed: {result.success_count}",
            f"Failed/Skipped: {result.error_count}",
            f"Success Rate: {rate:.2f}%",
            "",
            "MISSING FIELD DETAILS:",
            _THIN_RULE,
        ]
        grouped = self._group_by_missing_field(result)
        if not grouped:
            lines += ["No missing fields detected. All rows were valid.", ""]
        for field_name, occurrences in grouped.items():
            lines.append(f"{field_name.upper()} - {len(occurrences)} occurrence(s):")
            lines.append("  " + "-" * 76)
            for idx, (row_number, reason) in enumerate(occurrences, start=1):
                lines.append(f"  {idx}. Row #{row_number}")
                lines.append(f"     Reason: {reason}")
                lines.append("")
        lines += [_RULE, "END OF REPORT", _RULE, ""]
        return "\n".join(lines)

    def append_summary(self, result: FileProcessingResult) -> Path:
        path = self._log_dir / COMBINED_LOG_NAME
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as fh:
            fh.write(self.render_summary(result))
        Log.info(f"Summary report appended to {path}")
        return path

    def render_remark(self, result: FileProcessingResult) -> bytes:
        """One fully-quoted CSV record per input row, in input order."""
        buf = io.StringIO()
        writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
        headers = list(result.headers)
        writer.writerow([_flatten(h) for h in (*headers, *REMARK_COLUMNS)])
        for index, outcome in enumerate(result.outcomes):
            cells = self._cells(result, index, outcome)
            writer.writerow([_flatten(v) for v in self._remark_record(cells, outcome)])
        return buf.getvalue().encode("utf-8")

    def _write_local_remark(self, file_name: str, content: bytes) -> Path:
        path = self._log_dir / "remarks" / Path(file_name).name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    @staticmethod
    def _cells(result: FileProcessingResult, index: int, outcome: RowOutcome) -> list[str]:
        """Cells of the input record, column for column; repeated headers keep every cell."""
        if index < len(result.records):
            return result.records[index]
        return [outcome.raw_row.get(h, "") for h in result.headers]

    @staticmethod
    def _remark_record(cells: list[str], outcome: RowOutcome) -> list[object]:
        values: list[object] = list(cells)
        if isinstance(outcome, RowSuccess):
            return [*values, outcome.status.value, "", ""]
        return [*values, outcome.status.value, outcome.reason, ";".join(outcome.missing_fields)]

    @staticmethod
    def _group_by_missing_field(
        result: FileProcessingResult,
    ) -> dict[str, list[tuple[int, str]]]:
        grouped: dict[str, list[tuple[int, str]]] = {}
        for failure in result.validation_errors:
            for field_name in failure.missing_fields:
                grouped.setdefault(field_name, []).append((failure.row_number, failure.reason))
        return grouped
