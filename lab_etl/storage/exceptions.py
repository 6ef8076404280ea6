from lab_etl.pipeline.exceptions import EtlError


class StorageError(EtlError):
    """Raised when an object-storage call fails."""


class SourceFileNotFoundError(StorageError):
    """Raised when a listed file is gone by the time it is checked or fetched."""
