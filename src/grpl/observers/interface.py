# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/observers/interface.py
from __future__ import annotations

from typing import Protocol

from .events import BaseEvent


class Observer(Protocol):
    """
    Receives every install event. Called from the main flow and from
    background task threads, so implementations must not assume a thread.
    """

    def notify(self, event: BaseEvent) -> None: ...
