"""Shared helpers for reading input files."""

import logging
import os
from typing import List

logger = logging.getLogger(__name__)


def load_file_lines(file_path: str) -> List[str]:
    """Read non-empty, stripped lines from *file_path*.

    Args:
        file_path: Path to a UTF-8 text file.

    Returns:
        Ordered list of lines; empty if the file does not exist.
    """
    if not os.path.exists(file_path):
        return []
    with open(file_path, "r", encoding="utf-8") as fh:
        return [line.strip() for line in fh if line.strip()]


def load_private_keys(file_path: str) -> List[str]:
    """Load one private key per line from *file_path*.

    A missing or unreadable file is logged and yields an empty list so
    the caller can skip the cycle instead of crashing.
    """
    if not os.path.exists(file_path):
        logger.error("Failed to read %s: file not found", file_path)
        return []
    try:
        keys = load_file_lines(file_path)
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Failed to read %s: %s", file_path, e)
        return []
    logger.info(
        "Loaded %d private key%s",
        len(keys), "" if len(keys) == 1 else "s",
    )
    return keys

