# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/wait/poller.py

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from grpl.kube.client import KubeError
from .errors import WaitTimeoutError

log = logging.getLogger("grpl")

# fetch failures that only mean "not ready yet"
TRANSIENT_ERRORS: tuple[type[Exception], ...] = (KubeError, ConnectionError)


@dataclass(frozen=True)
class PollResult:
    attempts: int
    elapsed_seconds: float


def poll(
    fetch: Callable[[], Any],
    evaluate: Callable[[Any], bool],
    *,
    interval_seconds: float,
    max_attempts: int,
    description: str,
    transient: tuple[type[Exception], ...] = TRANSIENT_ERRORS,
    explain: Optional[Callable[[Any], Optional[str]]] = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> PollResult:
    """
    Fetch state and evaluate it until it is ready or the budget runs out.

    A fetch raising one of `transient` counts as a not-ready attempt.
    Sleeps `interval_seconds` between attempts only, so the worst case is
    roughly (max_attempts - 1) * interval_seconds plus the fetch time.
    Raises WaitTimeoutError carrying `description` once every attempt has
    been used. `explain`, when given, turns the last fetched snapshot into
    a detail line for that error.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    start = clock()
    last_error: Optional[str] = None
    last_snapshot: Any = None
    fetched = False

    for attempt in range(1, max_attempts + 1):
        try:
            snapshot = fetch()
        except transient as e:
            last_error = str(e)
            log.debug("[wait] %s: fetch failed (attempt %d/%d): %s",
                      description, attempt, max_attempts, e)
        else:
            last_snapshot, fetched = snapshot, True
            if evaluate(snapshot):
                elapsed = clock() - start
                log.debug("[wait] %s: ready after %d attempt(s)", description, attempt)
                return PollResult(attempts=attempt, elapsed_seconds=elapsed)
            log.debug("[wait] %s: not ready (attempt %d/%d)", description, attempt, max_attempts)

        if attempt < max_attempts:
            sleep(interval_seconds)

    detail = explain(last_snapshot) if explain and fetched else None
    raise WaitTimeoutError(description, max_attempts, interval_seconds, last_error, detail)
