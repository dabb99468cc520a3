# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/deploy/ticket.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class PackageRef:
    """What to deploy: one chart, one release, one namespace."""

    name: str                        # helm release name
    namespace: str
    chart: str                       # oci:// uri or repo/chart
    version: Optional[str] = None
    values_files: Tuple[str, ...] = ()
    create_namespace: bool = True
    timeout_seconds: int = 600


@dataclass
class DeploymentTicket:
    """
    One install-or-upgrade request. The package is fixed; the outcome
    fields are filled in by the deployer.
    """

    package: PackageRef
    max_attempts: int = 3

    attempts: int = 0
    action: Optional[str] = None          # "install" | "upgrade"
    error: Optional[str] = None
    succeeded: bool = False
    failures: Dict[int, str] = field(default_factory=dict)

    def record_failure(self, attempt: int, exc: BaseException) -> None:
        self.attempts = attempt
        self.error = str(exc)
        self.failures[attempt] = str(exc)

    def record_success(self, attempt: int, action: str) -> None:
        self.attempts = attempt
        self.action = action
        self.error = None
        self.succeeded = True
