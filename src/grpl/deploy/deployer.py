# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/deploy/deployer.py

from __future__ import annotations

import logging
import time
from typing import Dict, Optional

from grpl.helm.errors import ReleaseExistsError
from grpl.helm.interface import IHelm
from grpl.kube.client import ClusterClient
from grpl.observers.dispatcher import EventBus
from grpl.observers.events import DeployAttempt, DeployFailed, DeploySucceeded, new_ctx
from grpl.utils.retry import RetryError, retry

from .errors import DeployError
from .ticket import DeploymentTicket, PackageRef

log = logging.getLogger("grpl")


class PackageDeployer:
    """
    Idempotent install-or-upgrade of a single package.

    Retries are immediate: a failed attempt is logged and the whole
    install-or-upgrade is run again, up to the ticket's max_attempts.
    """

    def __init__(
        self,
        helm: IHelm,
        *,
        cluster: Optional[ClusterClient] = None,
        bus: Optional[EventBus] = None,
        run_ctx: Optional[Dict] = None,
    ):
        self.helm = helm
        self.cluster = cluster
        self.bus = bus or EventBus()
        self.run_ctx = run_ctx or new_ctx(env="dev", context=None)

    def deploy_or_upgrade(self, pkg: PackageRef) -> str:
        """
        Install when the release has no history, upgrade otherwise.
        Returns the action taken ("install" | "upgrade").
        """
        if self.cluster is not None and pkg.create_namespace:
            self.cluster.ensure_namespace(pkg.namespace)

        if self.helm.has_history(pkg.name, pkg.namespace):
            log.info("[deploy] %s has history in %s, upgrading", pkg.name, pkg.namespace)
            self.helm.upgrade(pkg)
            return "upgrade"

        log.info("[deploy] installing %s (%s %s) into %s",
                 pkg.name, pkg.chart, pkg.version or "latest", pkg.namespace)
        try:
            self.helm.install(pkg)
        except ReleaseExistsError:
            # an earlier partial attempt registered the release
            log.info("[deploy] %s already exists, upgrading instead", pkg.name)
            self.helm.upgrade(pkg)
            return "upgrade"
        return "install"

    def deploy_with_retry(self, ticket: DeploymentTicket) -> DeploymentTicket:
        pkg = ticket.package
        state = {"attempt": 0}

        def _on_retry(attempt: int, exc: Exception) -> None:
            ticket.record_failure(attempt, exc)
            log.warning("[deploy] attempt %d/%d for %s failed: %s",
                        attempt, ticket.max_attempts, pkg.name, exc)

        @retry(retries=ticket.max_attempts, delay=0, on_retry=_on_retry)
        def _attempt() -> str:
            state["attempt"] += 1
            self.bus.emit(DeployAttempt(
                name=pkg.name,
                namespace=pkg.namespace,
                attempt=state["attempt"],
                max_attempts=ticket.max_attempts,
                **self.run_ctx,
            ))
            return self.deploy_or_upgrade(pkg)

        t0 = time.time()
        try:
            action = _attempt()
        except RetryError as e:
            last = e.__cause__ or e
            self.bus.emit(DeployFailed(name=pkg.name, attempts=e.attempts, error=str(last), **self.run_ctx))
            raise DeployError(pkg.name, e.attempts, str(last)) from last

        ticket.record_success(state["attempt"], action)
        self.bus.emit(DeploySucceeded(
            name=pkg.name,
            namespace=pkg.namespace,
            action=action,
            attempts=state["attempt"],
            duration_ms=int((time.time() - t0) * 1000),
            **self.run_ctx,
        ))
        return ticket
