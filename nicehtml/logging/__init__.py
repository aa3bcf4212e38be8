"""Logging utilities."""

from .events import EventRecord, RunEventLog, new_run_id
from .utils import configure_console_logging, setup_file_logger

__all__ = [
    "EventRecord",
    "RunEventLog",
    "configure_console_logging",
    "new_run_id",
    "setup_file_logger",
]
