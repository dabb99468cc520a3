# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import List, Dict, Any, Optional
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str           # ISO timestamp
    run_id: str       # correlates all events in a single install invocation
    env: str          # dev/staging/prod
    context: Optional[str]  # kube-context

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(env: str, context: Optional[str], run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "run_id": run_id or str(uuid.uuid4()),
        "env": env,
        "context": context,
    }


# ---------------------------------------------------------------------
# Install lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class InstallStarted(BaseEvent):
    version: str
    namespace: str
    phases: List[str]

@dataclass(frozen=True)
class InstallSummary(BaseEvent):
    status: str          # "OK" | "FAILED"
    completed: List[str]
    error: Optional[str] = None
    log_path: Optional[str] = None


# ---------------------------------------------------------------------
# Phase lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class PhaseStarted(BaseEvent):
    phase: str
    index: int
    total: int
    deploys: bool = True     # False for wait-only phases

@dataclass(frozen=True)
class PhaseCompleted(BaseEvent):
    phase: str

@dataclass(frozen=True)
class PhaseFailed(BaseEvent):
    phase: str
    error: str


# ---------------------------------------------------------------------
# Package deploy lifecycle (Helm)
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class DeployAttempt(BaseEvent):
    name: str
    namespace: str
    attempt: int
    max_attempts: int

@dataclass(frozen=True)
class DeploySucceeded(BaseEvent):
    name: str
    namespace: str
    action: str       # "install" | "upgrade"
    attempts: int
    duration_ms: int

@dataclass(frozen=True)
class DeployFailed(BaseEvent):
    name: str
    attempts: int
    error: str


# ---------------------------------------------------------------------
# Waiter lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class WaitStarted(BaseEvent):
    phase: str
    description: str
    timeout_s: float

@dataclass(frozen=True)
class WaitSucceeded(BaseEvent):
    phase: str
    description: str
    attempts: int

@dataclass(frozen=True)
class WaitSkipped(BaseEvent):
    phase: str
    description: str
    reason: str

@dataclass(frozen=True)
class WaitTimedOut(BaseEvent):
    phase: str
    description: str
    timeout_s: float


# ---------------------------------------------------------------------
# Background tasks
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BackgroundTaskStarted(BaseEvent):
    name: str

@dataclass(frozen=True)
class BackgroundTaskJoined(BaseEvent):
    name: str
    completed: bool
    error: Optional[str] = None
