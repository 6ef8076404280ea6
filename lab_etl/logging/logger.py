import logging
import sys
from pathlib import Path

COMBINED_LOG_NAME = "combined.log"


class Log:
    """Centralized logging with structured format."""

    _logger: logging.Logger = logging.getLogger("lab_etl")
    _formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")

    @classmethod
    def configure(cls, log_level: str, log_dir: str | Path | None = None) -> None:
        """Configure the logger with the specified level, stdout and combined-log handlers."""
        cls._logger.setLevel(log_level.upper())
        if not any(isinstance(h, logging.StreamHandler) and h.stream is sys.stdout
                   for h in cls._logger.handlers):
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(cls._formatter)
            cls._logger.addHandler(handler)
        if log_dir is not None:
            cls._add_file_handler(Path(log_dir) / COMBINED_LOG_NAME)

    @classmethod
    def _add_file_handler(cls, path: Path) -> None:
        resolved = str(path.resolve())
        for h in cls._logger.handlers:
            if isinstance(h, logging.FileHandler) and h.baseFilename == resolved:
                return
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        file_handler.setFormatter(cls._formatter)
        cls._logger.addHandler(file_handler)

    @classmethod
    def info(cls, message: str, **kwargs: object) -> None:
        """Log an info message."""
        cls._logger.info(message, extra=kwargs)

    @classmethod
    def error(cls, message: str, **kwargs: object) -> None:
        """Log an error message."""
        cls._logger.error(message, extra=kwargs)

    @classmethod
    def warning(cls, message: str, **kwargs: object) -> None:
        """Log a warning message."""
        cls._logger.warning(message, extra=kwargs)

    @classmethod
    def debug(cls, message: str, **kwargs: object) -> None:
        """Log a debug message."""
        cls._logger.debug(message, extra=kwargs)
