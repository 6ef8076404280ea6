import logging
from collections.abc import Generator
from pathlib import Path

import pytest

from lab_etl.logging.logger import COMBINED_LOG_NAME, Log


@pytest.fixture
def clean_handlers() -> Generator[None, None, None]:
    before = list(Log._logger.handlers)
    yield
    for handler in Log._logger.handlers:
        if handler not in before:
            handler.close()
            Log._logger.removeHandler(handler)


def _file_handlers() -> list[logging.FileHandler]:
    return [h for h in Log._logger.handlers if isinstance(h, logging.FileHandler)]


class TestConfigure:
    def test_sets_level(self, clean_handlers: None) -> None:
        Log.configure("debug")

        assert Log._logger.level == logging.DEBUG

    def test_writes_combined_log(self, clean_handlers: None, tmp_path: Path) -> None:
        Log.configure("INFO", tmp_path)

        Log.info("hello combined")
        for handler in _file_handlers():
            handler.flush()

        text = (tmp_path / COMBINED_LOG_NAME).read_text(encoding="utf-8")
        assert "[INFO] hello combined" in text

    def test_file_handler_added_once(self, clean_handlers: None, tmp_path: Path) -> None:
        before = len(_file_handlers())

        Log.configure("INFO", tmp_path)
        Log.configure("INFO", tmp_path)

        assert len(_file_handlers()) == before + 1
