# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/deploy/errors.py

class DeployError(RuntimeError):
    """A package could not be installed or upgraded within its retry budget."""

    def __init__(self, package: str, attempts: int, reason: str):
        super().__init__(f"deploy of {package} failed after {attempts} attempts: {reason}")
        self.package = package
        self.attempts = attempts
        self.reason = reason


class BackgroundTaskError(RuntimeError):
    """Stored in a background task's outcome, never raised into the main sequence."""
