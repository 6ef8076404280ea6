from dataclasses import dataclass, field

from lab_etl.logging.logger import Log
from lab_etl.pipeline.exceptions import ConfigurationError
from lab_etl.pipeline.file_processor import FileProcessor, require_paths
from lab_etl.pipeline.models import FileProcessingResult
from lab_etl.pipeline.registry import PipelineRegistry
from lab_etl.storage.s3_gateway import S3Gateway


@dataclass
class FileRunResult:
    file_name: str
    success: bool
    result: FileProcessingResult | None = None
    error: str | None = None


@dataclass
class EntityRunSummary:
    """Tally of one entity's files in a run."""

    entity: str
    results: list[FileRunResult] = field(default_factory=list)
    skipped: bool = False
    error: str | None = None

    @property
    def processed(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return self.processed - self.successful


@dataclass
class RunSummary:
    entities: list[EntityRunSummary] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return sum(e.processed for e in self.entities)

    @property
    def successful(self) -> int:
        return sum(e.successful for e in self.entities)

    @property
    def failed(self) -> int:
        return sum(e.failed for e in self.entities)


class PipelineRunner:
    """Walk every visible file of every entity, one at a time, and tally results.

    A failing file is recorded and the walk moves on; nothing here retries.
    """

    def __init__(
        self,
        registry: PipelineRegistry,
        gateway: S3Gateway,
        processor: FileProcessor,
    ) -> None:
        self._registry = registry
        self._gateway = gateway
        self._processor = processor

    def run_all(self) -> RunSummary:
        summary = RunSummary()
        for definition in self._registry:
            try:
                summary.entities.append(self.run_entity(definition.name))
            except ConfigurationError as exc:
                Log.warning(f"Skipping {definition.name}: {exc}")
                summary.entities.append(EntityRunSummary(definition.name, skipped=True))
            except Exception as exc:
                Log.error(f"Error processing {definition.label} files: {exc}")
                summary.entities.append(EntityRunSummary(definition.name, error=str(exc)))
        Log.info(
            f"All pipelines processed: processed={summary.processed} "
            f"successful={summary.successful} failed={summary.failed}"
        )
        return summary

    def run_entity(self, name: str) -> EntityRunSummary:
        """Process every visible file of one entity.

        Raises:
            UnknownEntityError: if ``name`` is not registered.
            ConfigurationError: if the entity has no source path.
            StorageError: if the source prefix cannot be listed.
        """
        definition = self._registry.get(name)
        paths = require_paths(definition)
        Log.info(
            f"Scanning for {definition.label} files in "
            f"s3://{self._gateway.bucket}/{paths.source}"
        )
        files = self._gateway.list_files(paths)
        summary = EntityRunSummary(name)
        if not files:
            Log.info(f"No {definition.label} files found to process")
            return summary

        Log.info(f"Found {len(files)} {definition.label} CSV file(s) to process: {files}")
        for file_name in files:
            try:
                result = self._processor.process(definition, file_name)
                summary.results.append(FileRunResult(file_name, success=True, result=result))
            except Exception as exc:
                summary.results.append(FileRunResult(file_name, success=False, error=str(exc)))

        Log.info(
            f"{definition.label.capitalize()} files processed: total={summary.processed} "
            f"successful={summary.successful} failed={summary.failed}"
        )
        return summary

    def run_file(self, name: str, file_name: str) -> FileProcessingResult:
        """Process one named file outside of a batch; errors propagate."""
        return self._processor.process(self._registry.get(name), file_name)
