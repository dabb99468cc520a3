# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/observers/logger.py
from __future__ import annotations

import logging

from .events import BaseEvent, DeployFailed, PhaseFailed, WaitTimedOut

# already on every line of the run's log file
_CONTEXT_FIELDS = frozenset({"ts", "run_id", "env", "context"})

_FAILURES = (PhaseFailed, DeployFailed, WaitTimedOut)


class LoggerObserver:
    """Mirrors events into the run log; failures are logged at ERROR."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def notify(self, event: BaseEvent) -> None:
        fields = ", ".join(
            f"{k}={v}" for k, v in event.dict().items() if k not in _CONTEXT_FIELDS
        )
        level = logging.ERROR if isinstance(event, _FAILURES) else logging.INFO
        self.logger.log(level, "[EVENT] %s: %s", type(event).__name__, fields)
