# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/install/errors.py

from __future__ import annotations

from pathlib import Path
from typing import Optional


class InstallError(RuntimeError):
    """Base class for everything that aborts an install run."""


class PreflightError(InstallError):
    """The cluster could not be reached or never became ready."""


class PhaseError(InstallError):
    """
    A phase could not be deployed or one of its waits timed out.

    `condition` is the failing WaitSpec description, `package` the
    failing release; exactly one of them is set.
    """

    def __init__(
        self,
        phase: str,
        cause: BaseException,
        *,
        condition: Optional[str] = None,
        package: Optional[str] = None,
        log_path: Optional[Path] = None,
    ):
        self.phase = phase
        self.cause = cause
        self.condition = condition
        self.package = package
        self.log_path = log_path

        what = f"condition '{condition}'" if condition else f"package '{package}'"
        msg = f"phase '{phase}' failed on {what}: {cause}"
        if log_path:
            msg += f" (see {log_path} for details)"
        super().__init__(msg)
