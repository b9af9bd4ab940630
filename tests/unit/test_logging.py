"""Unit tests for utils/logging.py."""

import logging
import pytest
from logging.handlers import RotatingFileHandler

from dinstaller.utils.logging import level_from_name, setup_logger


@pytest.mark.unit
class TestSetupLogger:
    """Test setup_logger function."""

    @pytest.fixture(autouse=True)
    def cleanup_loggers(self):
        """Close handlers of every logger created by a test."""
        created = []
        yield created
        for name in created:
            lg = logging.getLogger(name)
            for h in list(lg.handlers):
                h.close()
                lg.removeHandler(h)

    def _unique_name(self, suffix: str) -> str:
        return f"test_dinstaller_logger_{suffix}"

    def test_creates_log_directory(self, tmp_path, cleanup_loggers):
        log_dir = tmp_path / "new_logs" / "subdir"
        name = self._unique_name("dir")
        cleanup_loggers.append(name)

        setup_logger(name, str(log_dir / "test.log"))

        assert log_dir.exists()

    def test_level_info_by_default(self, tmp_path, cleanup_loggers):
        name = self._unique_name("level_default")
        cleanup_loggers.append(name)

        logger = setup_logger(name, str(tmp_path / "test.log"))

        assert logger.name == name
        assert logger.level == logging.INFO

    def test_adds_file_and_console_handlers(self, tmp_path, cleanup_loggers):
        name = self._unique_name("handlers")
        cleanup_loggers.append(name)

        logger = setup_logger(name, str(tmp_path / "test.log"), max_bytes=1024, backup_count=5)

        file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
        console = [
            h for h in logger.handlers
            if isinstance(h, logging.StreamHandler) and not isinstance(h, RotatingFileHandler)
        ]
        assert len(file_handlers) == 1
        assert file_handlers[0].maxBytes == 1024
        assert file_handlers[0].backupCount == 5
        assert len(console) == 1

    def test_no_duplicate_handlers_on_second_call(self, tmp_path, cleanup_loggers):
        name = self._unique_name("no_dup")
        cleanup_loggers.append(name)

        logger1 = setup_logger(name, str(tmp_path / "test.log"))
        handler_count = len(logger1.handlers)
        logger2 = setup_logger(name, str(tmp_path / "test.log"))

        assert logger1 is logger2
        assert len(logger2.handlers) == handler_count

    def test_second_call_updates_level(self, tmp_path, cleanup_loggers):
        name = self._unique_name("relevel")
        cleanup_loggers.append(name)

        setup_logger(name, str(tmp_path / "test.log"))
        logger = setup_logger(name, str(tmp_path / "test.log"), level=logging.DEBUG)

        assert logger.level == logging.DEBUG
        assert all(h.level == logging.DEBUG for h in logger.handlers)

    def test_new_log_file_replaces_file_handler(self, tmp_path, cleanup_loggers):
        name = self._unique_name("move")
        cleanup_loggers.append(name)

        setup_logger(name, str(tmp_path / "old.log"))
        logger = setup_logger(name, str(tmp_path / "new" / "new.log"))

        file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].baseFilename == str((tmp_path / "new" / "new.log").resolve())
        assert len(logger.handlers) == 2

    def test_console_can_be_disabled(self, tmp_path, cleanup_loggers):
        name = self._unique_name("no_console")
        cleanup_loggers.append(name)

        logger = setup_logger(name, str(tmp_path / "test.log"), console=False)

        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], RotatingFileHandler)

    def test_shared_logger_writes_to_same_file(self, tmp_path, cleanup_loggers):
        name = self._unique_name("owner")
        shared = self._unique_name("server")
        cleanup_loggers.extend([name, shared])

        logger = setup_logger(name, str(tmp_path / "test.log"), share_with=(shared,))
        logging.getLogger(shared).warning("server started")
        for h in logger.handlers:
            h.flush()

        assert "server started" in (tmp_path / "test.log").read_text()

        setup_logger(name, str(tmp_path / "other.log"), share_with=(shared,))

        assert len(logging.getLogger(shared).handlers) == 1

    def test_child_logger_writes_to_file(self, tmp_path, cleanup_loggers):
        name = self._unique_name("child")
        cleanup_loggers.append(name)
        logger = setup_logger(name, str(tmp_path / "test.log"))

        logging.getLogger(f"{name}.software").info("probe finished")
        for h in logger.handlers:
            h.flush()

        content = (tmp_path / "test.log").read_text()
        assert "probe finished" in content
        assert f"{name}.software" in content


@pytest.mark.unit
class TestLevelFromName:
    """level_from_name(level_name)"""

    @pytest.mark.parametrize(
        "name, expected",
        [("debug", logging.DEBUG), ("INFO", logging.INFO), ("Warning", logging.WARNING)],
    )
    def test_known_levels(self, name, expected):
        assert level_from_name(name) == expected

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            level_from_name("chatty")
