# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/logging/log.py

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(threadName)-14s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def default_log_dir() -> Path:
    return Path.home() / ".grpl" / "logs"


def init_logging(
    *,
    base_dir: Path | None = None,
    name: str = "grpl",
    verbose: bool = False,
) -> tuple[logging.Logger, str, Path]:
    """
    Set up the logger for one install run.

    Every record goes to `<base_dir>/<name>-<utc ts>-<run_id>.log`; that
    file is what failure messages point the user at. The console only
    shows warnings (progress is printed by the console observer) unless
    `verbose` is set. Returns (logger, run_id, log_path); the run id is
    shared with the event context.
    """
    run_id = str(uuid.uuid4())

    base_dir = base_dir or default_log_dir()
    base_dir.mkdir(parents=True, exist_ok=True)

    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    log_path = base_dir / f"{name}-{ts}-{run_id}.log"

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()
    logger.propagate = False

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    fh = logging.FileHandler(log_path)
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(formatter)

    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG if verbose else logging.WARNING)
    ch.setFormatter(formatter)

    logger.addHandler(fh)
    logger.addHandler(ch)

    logger.info("=== grpl install run %s ===", run_id)
    logger.debug("log file: %s", log_path)

    return logger, run_id, log_path
