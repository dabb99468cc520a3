# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/helm/cli_runner.py
from __future__ import annotations

import logging
import subprocess
from typing import List

from .interface import IHelm
from .errors import HelmError, ReleaseExistsError
from grpl.config.models import RepoSpec
from grpl.deploy.ticket import PackageRef

log = logging.getLogger("grpl")


class HelmCliRunner(IHelm):
    """
    A pragmatic wrapper around the `helm` CLI.
    - Mirrors human CLI usage: 'repo add/update', 'history', 'install', 'upgrade'.
    - Testable by mocking subprocess.run.
    """

    def __init__(self, kube_context: str | None = None, env: dict[str, str] | None = None):
        self.kube_context = kube_context
        self.env = env or {}

    # ------------------------- internal helpers -------------------------

    def _base(self) -> list[str]:
        cmd = ["helm"]
        if self.kube_context:
            cmd += ["--kube-context", self.kube_context]
        return cmd

    def _run(self, argv: List[str], allow_rc: set[int] | None = None) -> subprocess.CompletedProcess:
        allow_rc = allow_rc or {0}
        log.debug("[helm] %s", " ".join(argv))

        cp = subprocess.run(
            argv,
            check=False,
            text=True,
            capture_output=True,
            env=self.env or None,
        )

        if cp.stdout:
            log.debug("[helm] stdout:\n%s", cp.stdout)
        if cp.returncode not in allow_rc:
            stderr = getattr(cp, "stderr", "") or ""
            if "cannot re-use a name" in stderr:
                raise ReleaseExistsError(stderr.strip())
            raise HelmError(f"helm failed (rc={cp.returncode}) for {argv!r}\n{stderr}")
        return cp

    @staticmethod
    def _chart_args(pkg: PackageRef) -> list[str]:
        args: list[str] = ["-n", pkg.namespace]
        for f in pkg.values_files:
            args += ["-f", f]
        if pkg.version:
            args += ["--version", pkg.version]
        args += ["--timeout", f"{pkg.timeout_seconds}s"]
        return args

    # ------------------------- IHelm methods -------------------------

    def add_repo(self, repo: RepoSpec) -> None:
        argv = self._base() + ["repo", "add", repo.name, str(repo.url), "--force-update"]
        if repo.username and repo.password:
            argv += ["--username", repo.username, "--password", repo.password]
        self._run(argv)

    def update_repos(self) -> None:
        self._run(self._base() + ["repo", "update"])

    def has_history(self, name: str, namespace: str) -> bool:
        argv = self._base() + ["history", name, "-n", namespace, "--max", "1", "-o", "json"]
        cp = subprocess.run(argv, check=False, text=True, capture_output=True, env=self.env or None)
        if cp.returncode == 0:
            return True
        stderr = (cp.stderr or "").lower()
        if "not found" in stderr:
            return False
        raise HelmError(f"helm history failed (rc={cp.returncode}) for {name}: {cp.stderr}")

    def install(self, pkg: PackageRef) -> None:
        argv = self._base() + ["install", pkg.name, pkg.chart] + self._chart_args(pkg)
        if pkg.create_namespace:
            argv += ["--create-namespace"]
        self._run(argv)

    def upgrade(self, pkg: PackageRef) -> None:
        argv = self._base() + ["upgrade", pkg.name, pkg.chart] + self._chart_args(pkg)
        self._run(argv)
