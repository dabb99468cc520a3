# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/helm/interface.py
from __future__ import annotations

from typing import Protocol

from grpl.config.models import RepoSpec
from grpl.deploy.ticket import PackageRef


class IHelm(Protocol):
    def add_repo(self, repo: RepoSpec) -> None: ...

    def update_repos(self) -> None: ...

    def has_history(self, name: str, namespace: str) -> bool:
        """True when the release has at least one recorded revision."""
        ...

    def install(self, pkg: PackageRef) -> None: ...

    def upgrade(self, pkg: PackageRef) -> None: ...
