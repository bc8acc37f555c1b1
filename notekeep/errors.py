"""
Error logging utilities for the notekeep CLI.

Logs full stack traces for debugging while showing clean messages to users.
"""

import logging
import os
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .config import get_default_store_path

logger = logging.getLogger(__name__)


def error_log_path(store_path: Optional[Path] = None) -> Path:
    """Error log location inside the store directory."""
    return (store_path or get_default_store_path()) / "notekeep-errors.log"


def log_exception(exc: Exception, context: str = "", store_path: Optional[Path] = None) -> Path:
    """
    Log exception with full traceback to file.

    Args:
        exc: The exception that occurred
        context: Optional context string (e.g., command name)
        store_path: Store directory (default: ~/.notekeep)

    Returns:
        Path to the error log file
    """
    log_path = error_log_path(store_path)
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        with os.fdopen(fd, "a") as f:
            f.write(f"\n{'='*60}\n")
            f.write(f"[{timestamp}]")
            if context:
                f.write(f" {context}")
            f.write("\n")
            f.write("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    except OSError as e:
        logger.debug("Could not write error log %s: %s", log_path, e)
    return log_path
