# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/deploy/background.py

"""
Side work that runs next to the phase sequence.

Each task writes its result exactly once, into its own Future. The
main flow only sees an outcome after join_all() has waited on that
Future; before that TaskHandle.outcome is None.
"""

from __future__ import annotations

import concurrent.futures
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from grpl.observers.dispatcher import EventBus
from grpl.observers.events import BackgroundTaskJoined, BackgroundTaskStarted, new_ctx

log = logging.getLogger("grpl")


@dataclass(frozen=True)
class TaskOutcome:
    name: str
    completed: bool
    error: Optional[str] = None


class TaskHandle:
    def __init__(self, name: str, future: concurrent.futures.Future):
        self.name = name
        self._future = future
        self._outcome: Optional[TaskOutcome] = None

    @property
    def outcome(self) -> Optional[TaskOutcome]:
        """None until the handle has been joined."""
        return self._outcome

    @property
    def joined(self) -> bool:
        return self._outcome is not None

    def _join(self, timeout: Optional[float]) -> TaskOutcome:
        if self._outcome is not None:
            return self._outcome
        try:
            self._future.result(timeout=timeout)
            outcome = TaskOutcome(name=self.name, completed=True)
        except concurrent.futures.TimeoutError:
            outcome = TaskOutcome(
                name=self.name,
                completed=False,
                error=f"did not finish within {timeout:g}s",
            )
        except Exception as e:
            outcome = TaskOutcome(name=self.name, completed=False, error=str(e) or type(e).__name__)
        self._outcome = outcome
        return outcome


class BackgroundRunner:
    """
    Runs blocking side installations (helm, pod polling) next to the
    phases, one daemon thread per task. Failures never propagate; they
    surface as TaskOutcome at join time.

    Threads are daemons so an aborted install exits right away instead of
    waiting on a side task that may still be inside a long helm timeout.
    """

    def __init__(
        self,
        *,
        bus: Optional[EventBus] = None,
        run_ctx: Optional[Dict] = None,
    ):
        self.bus = bus or EventBus()
        self.run_ctx = run_ctx or new_ctx(env="dev", context=None)
        self._threads: List[threading.Thread] = []
        self._closed = False

    def launch(self, name: str, fn: Callable[[], None]) -> TaskHandle:
        if self._closed:
            raise RuntimeError(f"cannot launch {name}: runner is shut down")

        future: concurrent.futures.Future = concurrent.futures.Future()

        def _run() -> None:
            if not future.set_running_or_notify_cancel():
                return
            log.info("[background] %s started", name)
            try:
                fn()
            except Exception as e:
                log.error("[background] %s failed: %s", name, e)
                future.set_exception(e)
                return
            log.info("[background] %s finished", name)
            future.set_result(None)

        t = threading.Thread(target=_run, name=f"grpl-bg-{name}", daemon=True)
        self._threads.append(t)
        t.start()
        self.bus.emit(BackgroundTaskStarted(name=name, **self.run_ctx))
        return TaskHandle(name, future)

    def join_all(self, handles: Iterable[TaskHandle], timeout: Optional[float] = None) -> List[TaskOutcome]:
        """
        Wait for every handle (each with its own `timeout`) and return
        their outcomes in order. Joining twice returns the same outcome.
        """
        outcomes: List[TaskOutcome] = []
        for h in handles:
            first_join = not h.joined
            outcome = h._join(timeout)
            if first_join:
                self.bus.emit(BackgroundTaskJoined(
                    name=outcome.name,
                    completed=outcome.completed,
                    error=outcome.error,
                    **self.run_ctx,
                ))
            outcomes.append(outcome)
        return outcomes

    def shutdown(self, wait: bool = True) -> None:
        # no new launches; running tasks are never interrupted
        self._closed = True
        if wait:
            for t in self._threads:
                t.join()

    def __enter__(self) -> "BackgroundRunner":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown(wait=True)
