import gzip
import io
import logging
import os
import tempfile
from unittest.mock import patch

import pytest

from core.logging_setup import (
    LOG_FILE_NAME,
    AccountLogger,
    CompressedRotatingFileHandler,
    SafeStreamHandler,
    setup_logging,
)


@pytest.fixture
def clean_root_logger():
    yield
    root = logging.getLogger()
    for h in root.handlers[:]:
        h.close()
        root.removeHandler(h)


class TestCompressedRotatingFileHandler:
    """Test suite for CompressedRotatingFileHandler."""

    def test_rotation_filename(self):
        """Test that rotation_filename returns correct .gz filename."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = os.path.join(tmpdir, "test.log")
            handler = CompressedRotatingFileHandler(log_file, maxBytes=1024, backupCount=3)
            try:
                assert handler.rotation_filename("test.log.1") == "test.log.1.gz"
            finally:
                handler.close()

    def test_rotate_compresses_file(self):
        """Test that rotate() compresses source file and removes original."""
        with tempfile.TemporaryDirectory() as tmpdir:
            source_file = os.path.join(tmpdir, "source.log")
            dest_file = os.path.join(tmpdir, "dest.log.gz")
            test_content = b"[Account 1/2] Login successful\n[Account 2/2] Login failed\n"
            with open(source_file, 'wb') as f:
                f.write(test_content)

            handler = CompressedRotatingFileHandler(
                os.path.join(tmpdir, "test.log"), maxBytes=1024, backupCount=3,
            )
            try:
                handler.rotate(source_file, dest_file)

                assert not os.path.exists(source_file)
                with gzip.open(dest_file, 'rb') as f:
                    assert f.read() == test_content
            finally:
                handler.close()


class TestSafeStreamHandler:
    def test_unencodable_characters_are_replaced(self):
        raw = io.BytesIO()
        stream = io.TextIOWrapper(raw, encoding="ascii")
        handler = SafeStreamHandler(stream)
        handler.setFormatter(logging.Formatter("%(message)s"))
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "Check-in ✅ done", None, None)

        handler.emit(record)
        stream.flush()

        assert raw.getvalue().decode("ascii") == "Check-in ? done\n"


class TestAccountLogger:
    def test_prefixes_context(self, caplog):
        log = AccountLogger(logging.getLogger("test.account"), "Account 2/5")
        with caplog.at_level(logging.INFO, logger="test.account"):
            log.info("Total Points: %s", 10)

        assert log.context == "Account 2/5"
        assert caplog.records[-1].getMessage() == "[Account 2/5] Total Points: 10"


class TestSetupLogging:
    """Test suite for setup_logging function."""

    def test_setup_logging_default_level(self, tmp_path, clean_root_logger):
        with patch('logging.basicConfig') as mock_basic_config:
            setup_logging(log_dir=str(tmp_path))

        call_kwargs = mock_basic_config.call_args[1]
        assert call_kwargs['level'] == logging.INFO
        for h in call_kwargs['handlers']:
            h.close()

    @pytest.mark.parametrize("name,expected", [
        ("DEBUG", logging.DEBUG),
        ("warning", logging.WARNING),
        ("INVALID_LEVEL", logging.INFO),
    ])
    def test_setup_logging_levels(self, tmp_path, clean_root_logger, name, expected):
        with patch('logging.basicConfig') as mock_basic_config:
            setup_logging(name, log_dir=str(tmp_path))

        call_kwargs = mock_basic_config.call_args[1]
        assert call_kwargs['level'] == expected
        for h in call_kwargs['handlers']:
            h.close()

    def test_setup_logging_handlers_and_format(self, tmp_path, clean_root_logger):
        with patch('logging.basicConfig') as mock_basic_config:
            setup_logging(log_dir=str(tmp_path))

        call_kwargs = mock_basic_config.call_args[1]
        handlers = call_kwargs['handlers']
        assert len(handlers) == 2
        assert any(isinstance(h, CompressedRotatingFileHandler) for h in handlers)
        assert any(isinstance(h, SafeStreamHandler) for h in handlers)
        assert call_kwargs['force'] is True
        for token in ('%(asctime)s', '%(levelname)s', '%(name)s', '%(message)s'):
            assert token in call_kwargs['format']
        for h in handlers:
            h.close()

    def test_setup_logging_writes_log_file(self, tmp_path, clean_root_logger):
        log_dir = tmp_path / "logs"
        setup_logging("INFO", log_dir=str(log_dir))
        logging.getLogger("core.test").info("hello file")
        for h in logging.getLogger().handlers:
            h.flush()

        content = (log_dir / LOG_FILE_NAME).read_text(encoding="utf-8")
        assert "hello file" in content
        assert logging.getLogger("aiohttp").level == logging.WARNING
