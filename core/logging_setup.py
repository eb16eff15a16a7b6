"""Logging configuration for the idOS check-in bot.

Sets up a dual-handler logging pipeline:

1. **Console** -- :class:`SafeStreamHandler`, which never lets an
   unencodable character (emoji on a narrow Windows code page) crash the
   run.
2. **File** -- :class:`CompressedRotatingFileHandler` writing to
   ``logs/idos_bot.log`` with gzip rotation (10 MiB per file, 5 backups).

Per-account lines go through :class:`AccountLogger`, which prefixes every
message with the ``[Account i/N]`` context.

Usage::

    from core.logging_setup import setup_logging
    setup_logging("DEBUG")
"""

import gzip
import logging
import os
import shutil
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, MutableMapping, Optional, Tuple

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s - %(message)s'
LOG_FILE_NAME = "idos_bot.log"


class CompressedRotatingFileHandler(RotatingFileHandler):
    """RotatingFileHandler that gzip-compresses rotated log files."""

    def rotation_filename(self, default_name: str) -> str:
        return f"{default_name}.gz"

    def rotate(self, source: str, dest: str) -> None:
        """Compress *source* into *dest* and remove *source*."""
        with open(source, 'rb') as f_in, gzip.open(dest, 'wb') as f_out:
            shutil.copyfileobj(f_in, f_out)
        os.remove(source)


class SafeStreamHandler(logging.StreamHandler):
    """StreamHandler that degrades unencodable characters to ``?``."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            try:
                self.stream.write(msg + self.terminator)
            except UnicodeEncodeError:
                encoding = getattr(self.stream, "encoding", None) or "ascii"
                safe_msg = msg.encode(encoding, errors='replace').decode(
                    encoding,
                )
                self.stream.write(safe_msg + self.terminator)
            self.flush()
        except Exception:
            self.handleError(record)


class AccountLogger(logging.LoggerAdapter):
    """Logger adapter that tags messages with an account context.

    Example::

        log = AccountLogger(logger, "Account 1/3")
        log.info("Login successful")   # "[Account 1/3] Login successful"
    """

    def __init__(self, logger: logging.Logger, context: str) -> None:
        super().__init__(logger, {"context": context})

    @property
    def context(self) -> str:
        return self.extra["context"]

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any],
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        return f"[{self.context}] {msg}", kwargs


def setup_logging(
    log_level: str = "INFO", log_dir: Optional[str] = None,
) -> None:
    """Configure the root logger with console and file handlers.

    Args:
        log_level: Logging level name (e.g. ``"DEBUG"``, ``"INFO"``).
            Unknown names fall back to ``INFO``.
        log_dir: Directory for the rotating log file (``logs`` by
            default).
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO

    log_dir = log_dir or "logs"
    os.makedirs(log_dir, exist_ok=True)
    file_handler = CompressedRotatingFileHandler(
        os.path.join(log_dir, LOG_FILE_NAME),
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding='utf-8',
    )
    stream_handler = SafeStreamHandler(sys.stdout)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[file_handler, stream_handler],
        force=True,
    )
    # aiohttp access noise is irrelevant for a client
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
