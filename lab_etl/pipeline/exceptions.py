class EtlError(Exception):
    """Base exception for all pipeline-related errors."""


class ConfigurationError(EtlError):
    """Raised when an entity is requested that has no usable configuration."""


class FatalTransactionError(EtlError):
    """Raised when a file's transaction had to be rolled back as a whole."""


class UnknownEntityError(EtlError):
    """Raised when a pipeline name is not in the registry."""


class MalformedFileError(EtlError):
    """Raised when a source file cannot be decoded or parsed as CSV."""
