# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/wait/errors.py

class WaitTimeoutError(TimeoutError):
    """A wait exhausted its poll budget."""

    def __init__(
        self,
        description: str,
        attempts: int,
        interval_seconds: float,
        last_error: str | None = None,
        detail: str | None = None,
    ):
        self.description = description
        self.attempts = attempts
        self.interval_seconds = interval_seconds
        self.last_error = last_error
        self.detail = detail
        msg = (
            f"timed out waiting for {description} "
            f"({attempts} attempts, {interval_seconds:g}s interval)"
        )
        if detail:
            msg += f"; {detail}"
        if last_error:
            msg += f"; last fetch error: {last_error}"
        super().__init__(msg)
