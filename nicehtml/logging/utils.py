# Copyright (c) Meta Platforms, Inc. and affiliates.
# Modifications copyright (c) 2025 Logan Martel.
# Adapted from https://github.com/meta-pytorch/KernelAgent (Apache-2.0).

"""Logging helpers (console setup, rotating logs)."""

from __future__ import annotations

import logging

from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_console_logging(level: int = logging.INFO) -> None:
    """Install a basic stderr handler unless the host app already has one."""

    if not logging.getLogger().handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("nicehtml").setLevel(level)


def setup_file_logger(
    log_file: Path, name: str = "nicehtml", level: int = logging.INFO
) -> logging.Logger:
    """Attach a rotating file handler to ``name``; one handler per file."""

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger(name)
    logger.setLevel(level)
    target = str(log_file.resolve())
    for handler in logger.handlers:
        if getattr(handler, "_nicehtml_log_file", None) == target:
            return logger
    handler = RotatingFileHandler(
        log_file, maxBytes=2_000_000, backupCount=3, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter("%(asctime)s " + LOG_FORMAT)
    )
    handler._nicehtml_log_file = target  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger
