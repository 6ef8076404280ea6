import csv
import time
from collections.abc import Callable

from lab_etl.audit.reporter import AuditReporter
from lab_etl.logging.logger import Log
from lab_etl.pipeline.engine import PipelineEngine
from lab_etl.pipeline.exceptions import ConfigurationError, MalformedFileError
from lab_etl.pipeline.models import FileProcessingResult
from lab_etl.pipeline.registry import PipelineDefinition
from lab_etl.storage.exceptions import SourceFileNotFoundError
from lab_etl.storage.models import StoragePaths
from lab_etl.storage.s3_gateway import S3Gateway
from lab_etl.transform.csv_reader import ParsedCsv, parse_csv


def require_paths(definition: PipelineDefinition) -> StoragePaths:
    if definition.paths is None:
        raise ConfigurationError(f"No source path configured for pipeline '{definition.name}'")
    return definition.paths


class FileProcessor:
    """Runs one source file through its full lifecycle.

    Pipeline: check -> fetch -> parse -> load -> move to processed -> audit.
    """

    def __init__(
        self,
        gateway: S3Gateway,
        engine: PipelineEngine,
        reporter: AuditReporter,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._gateway = gateway
        self._engine = engine
        self._reporter = reporter
        self._timer = timer

    def process(self, definition: PipelineDefinition, file_name: str) -> FileProcessingResult:
        """Process one file of ``definition``'s entity.

        Raises:
            SourceFileNotFoundError: if the file is not under the source prefix.
            MalformedFileError: if the payload is not decodable CSV.
            FatalTransactionError: if the load was rolled back.
            StorageError: if S3 fails after the load committed.
        """
        paths = require_paths(definition)
        started = self._timer()
        Log.info("=" * 80)
        Log.info(f"Starting {definition.label} file processing: {file_name}")
        try:
            result = self._process(definition, file_name, paths, started)
        except Exception as exc:
            Log.error(
                f"File processing failed: {file_name} "
                f"after {self._timer() - started:.2f}s: {exc}"
            )
            raise
        finally:
            Log.info("=" * 80)
        return result

    def _process(
        self,
        definition: PipelineDefinition,
        file_name: str,
        paths: StoragePaths,
        started: float,
    ) -> FileProcessingResult:
        # Step 1: Check the file is still there
        if not self._gateway.exists(file_name, paths):
            raise SourceFileNotFoundError(f"File not found: {paths.source_key(file_name)}")

        # Step 2: Fetch and parse
        parsed = self._parse(self._gateway.fetch(file_name, paths), file_name)
        Log.info(f"CSV parsed: {len(parsed.rows)} rows in {file_name}")
        if not parsed.rows:
            Log.warning(f"CSV file is empty, skipping processing: {file_name}")
            return FileProcessingResult(
                file_name=file_name,
                headers=parsed.headers,
                skipped=True,
                duration_seconds=self._timer() - started,
            )

        # Step 3: Load rows under one transaction
        outcomes = self._engine.run(definition, parsed.rows, paths.source_key(file_name))

        # Step 4: Archive; only reached after commit
        processed_key = self._gateway.move_to_processed(file_name, paths)

        result = FileProcessingResult(
            file_name=file_name,
            headers=parsed.headers,
            outcomes=outcomes,
            records=parsed.records,
            duration_seconds=self._timer() - started,
            processed_key=processed_key,
        )

        # Step 5: Summary to local log, remark to S3 on errors
        result.remark_key = self._reporter.report(result, paths)

        Log.info(
            f"File processing completed: {file_name} total={result.row_count} "
            f"valid={result.success_count} invalid={result.error_count} "
            f"duration={result.duration_seconds:.2f}s"
        )
        return result

    @staticmethod
    def _parse(payload: bytes, file_name: str) -> ParsedCsv:
        try:
            return parse_csv(payload)
        except (UnicodeDecodeError, csv.Error) as exc:
            raise MalformedFileError(f"Cannot parse {file_name}: {exc}") from exc
