# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/observers/console.py
from __future__ import annotations

import typer

from .events import (
    BaseEvent,
    InstallStarted,
    InstallSummary,
    PhaseStarted,
    PhaseCompleted,
    PhaseFailed,
    DeployAttempt,
    DeploySucceeded,
    DeployFailed,
    WaitStarted,
    WaitSucceeded,
    WaitSkipped,
    WaitTimedOut,
    BackgroundTaskStarted,
    BackgroundTaskJoined,
)


def _info(msg: str) -> None:
    typer.secho(msg, fg=typer.colors.YELLOW)

def _success(msg: str) -> None:
    typer.secho(msg, fg=typer.colors.GREEN)

def _error(msg: str) -> None:
    typer.secho(msg, fg=typer.colors.RED, err=True)


class ConsoleObserver:
    """
    Human readable progress lines: info in yellow, success in green,
    errors in red on stderr. Events it does not know are ignored.
    """

    def notify(self, event: BaseEvent) -> None:
        if isinstance(event, InstallStarted):
            _info(f"Installing grpl {event.version} into '{event.namespace}' "
                  f"({' -> '.join(event.phases)})")
        elif isinstance(event, PhaseStarted):
            verb = "Deploying" if event.deploys else "Checking"
            _info(f"[{event.index + 1}/{event.total}] {verb} '{event.phase}'...")
        elif isinstance(event, PhaseCompleted):
            _success(f"{event.phase} is installed and ready.")
        elif isinstance(event, PhaseFailed):
            _error(f"{event.phase} failed: {event.error}")
        elif isinstance(event, DeployAttempt) and event.attempt > 1:
            _info(f"Retrying {event.name} (attempt {event.attempt}/{event.max_attempts})")
        elif isinstance(event, DeploySucceeded):
            verb = "installed" if event.action == "install" else "upgraded"
            _success(f"Successfully {verb} release '{event.name}' in namespace '{event.namespace}'")
        elif isinstance(event, DeployFailed):
            _error(f"Deploy of {event.name} failed after {event.attempts} attempts: {event.error}")
        elif isinstance(event, WaitStarted):
            _info(f"Waiting for {event.description}...")
        elif isinstance(event, WaitSucceeded):
            _success(f"{event.description}: ready")
        elif isinstance(event, WaitSkipped):
            _info(f"Skipping wait for {event.description} ({event.reason})")
        elif isinstance(event, WaitTimedOut):
            _error(f"Timed out after {event.timeout_s:g}s waiting for {event.description}")
        elif isinstance(event, BackgroundTaskStarted):
            _info(f"Started '{event.name}' in background")
        elif isinstance(event, BackgroundTaskJoined):
            if event.completed:
                _success(f"{event.name} completed.")
            else:
                _error(f"{event.name} failed: {event.error}")
        elif isinstance(event, InstallSummary):
            if event.status == "OK":
                _success("Grapple installation completed!")
            else:
                _error(f"Failed to install grpl: {event.error}")
                if event.log_path:
                    _error(f"See {event.log_path} for more details")
