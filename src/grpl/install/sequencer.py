# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/install/sequencer.py

from __future__ import annotations

import logging
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from grpl.config.models import InstallConfig
from grpl.deploy.background import BackgroundRunner, TaskHandle, TaskOutcome
from grpl.deploy.deployer import PackageDeployer
from grpl.deploy.errors import DeployError
from grpl.deploy.ticket import DeploymentTicket
from grpl.helm.interface import IHelm
from grpl.kube.client import ClusterClient, ClusterConnector, KubeError
from grpl.observers.dispatcher import EventBus
from grpl.observers.events import (
    InstallStarted,
    InstallSummary,
    PhaseCompleted,
    PhaseFailed,
    PhaseStarted,
    WaitSkipped,
    WaitStarted,
    WaitSucceeded,
    WaitTimedOut,
    new_ctx,
)
from grpl.wait.errors import WaitTimeoutError
from grpl.wait.probes import guard_applies, wait_for
from grpl.wait.specs import WaitSpec, resolve_budget

from .errors import InstallError, PhaseError, PreflightError
from .phases import Phase, grapple_phases, preflight_waits, ready_phase
from .side_tasks import apply_cluster_issuer, install_kubeblocks, preload_images
from .values import prepare_values_files

log = logging.getLogger("grpl")

NOT_STARTED = "NotStarted"
ALL_DONE = "AllDone"
ABORTED = "Aborted"


@dataclass
class InstallReport:
    completed: List[str] = field(default_factory=list)
    tickets: Dict[str, DeploymentTicket] = field(default_factory=dict)
    background: List[TaskOutcome] = field(default_factory=list)

    @property
    def warnings(self) -> List[str]:
        return [f"{o.name}: {o.error}" for o in self.background if not o.completed]


class PhaseSequencer:
    """
    Runs phases strictly in order: deploy, then every wait of the phase,
    then the next phase. The first failure aborts the run.
    """

    def __init__(
        self,
        phases: Sequence[Phase],
        *,
        deployer: PackageDeployer,
        cluster: ClusterClient,
        cfg: InstallConfig,
        bus: Optional[EventBus] = None,
        run_ctx: Optional[Dict] = None,
        log_path: Optional[Path] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.phases = list(phases)
        self.deployer = deployer
        self.cluster = cluster
        self.cfg = cfg
        self.bus = bus or EventBus()
        self.run_ctx = run_ctx or new_ctx(env=cfg.environment, context=cfg.kube_context)
        self.log_path = log_path
        self.sleep = sleep

        self.state = NOT_STARTED
        self.report = InstallReport()

    # ------------------------------------------------------------------
    # Waits
    # ------------------------------------------------------------------
    def budgeted(self, phase: str, spec: WaitSpec) -> WaitSpec:
        override = self.cfg.override_for(phase)
        return resolve_budget(
            spec,
            default_interval=self.cfg.default_interval_seconds,
            default_attempts=self.cfg.default_attempts,
            override_interval=override.interval_seconds if override else None,
            override_attempts=override.attempts if override else None,
        )

    def wait(self, phase: str, spec: WaitSpec) -> None:
        spec = self.budgeted(phase, spec)
        description = spec.describe()

        if not guard_applies(spec, self.cluster):
            ns, name = spec.only_if_deployment
            self.bus.emit(WaitSkipped(
                phase=phase,
                description=description,
                reason=f"deployment {ns}/{name} not installed",
                **self.run_ctx,
            ))
            return

        self.bus.emit(WaitStarted(
            phase=phase, description=description, timeout_s=spec.timeout_seconds(), **self.run_ctx,
        ))
        try:
            result = wait_for(spec, self.cluster, sleep=self.sleep)
        except WaitTimeoutError:
            self.bus.emit(WaitTimedOut(
                phase=phase, description=description, timeout_s=spec.timeout_seconds(), **self.run_ctx,
            ))
            raise
        self.bus.emit(WaitSucceeded(
            phase=phase, description=description, attempts=result.attempts, **self.run_ctx,
        ))

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------
    def _abort(self, phase: Phase, exc: BaseException, **where) -> PhaseError:
        self.state = ABORTED
        err = PhaseError(phase.name, exc, log_path=self.log_path, **where)
        log.error("[install] %s", err)
        self.bus.emit(PhaseFailed(phase=phase.name, error=str(exc), **self.run_ctx))
        return err

    def run_phase(self, phase: Phase, index: int = 0, total: int = 1) -> None:
        self.state = phase.name
        self.bus.emit(PhaseStarted(
            phase=phase.name, index=index, total=total, deploys=phase.package is not None, **self.run_ctx,
        ))

        if phase.package is not None:
            ticket = DeploymentTicket(package=phase.package, max_attempts=self.cfg.deploy_retries)
            self.report.tickets[phase.name] = ticket
            try:
                self.deployer.deploy_with_retry(ticket)
            except DeployError as e:
                raise self._abort(phase, e, package=phase.package.name) from e

        if phase.waits and phase.settle_seconds:
            log.info("[install] %s: settling for %gs", phase.name, phase.settle_seconds)
            self.sleep(phase.settle_seconds)

        for spec in phase.waits:
            try:
                self.wait(phase.name, spec)
            except WaitTimeoutError as e:
                raise self._abort(phase, e, condition=e.description) from e
            except KubeError as e:
                # guard lookups and budget resolution don't retry
                raise self._abort(phase, e, condition=spec.describe()) from e

        self.report.completed.append(phase.name)
        self.bus.emit(PhaseCompleted(phase=phase.name, **self.run_ctx))

    def run(self) -> InstallReport:
        total = len(self.phases)
        for i, phase in enumerate(self.phases):
            log.info("[install] phase %d/%d: %s", i + 1, total, phase.name)
            self.run_phase(phase, i, total)
        self.state = ALL_DONE
        return self.report

    def run_extra(self, phase: Phase) -> None:
        """Run one more phase after run() has finished, e.g. the final ready check."""
        total = len(self.phases) + 1
        log.info("[install] phase %d/%d: %s", total, total, phase.name)
        self.run_phase(phase, total - 1, total)
        self.state = ALL_DONE

    # ------------------------------------------------------------------
    # Background join point
    # ------------------------------------------------------------------
    def join(self, runner: BackgroundRunner, handles: Sequence[TaskHandle], timeout: Optional[float] = None) -> List[TaskOutcome]:
        """
        Collect background outcomes. Failures become warnings on the
        report; they never fail phases that already completed.
        """
        if not handles:
            return []
        log.info("[install] joining background tasks: %s", ", ".join(h.name for h in handles))
        outcomes = runner.join_all(handles, timeout=timeout)
        for o in outcomes:
            if not o.completed:
                log.warning("[install] background task %s failed: %s", o.name, o.error)
        self.report.background.extend(outcomes)
        return outcomes


def run_install(
    cfg: InstallConfig,
    *,
    helm: IHelm,
    cluster: ClusterClient,
    connector: Optional[ClusterConnector] = None,
    bus: Optional[EventBus] = None,
    run_ctx: Optional[Dict] = None,
    log_path: Optional[Path] = None,
    work_dir: Optional[Path] = None,
    phases: Optional[Sequence[Phase]] = None,
    join_timeout: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> InstallReport:
    """
    Install the Grapple stack.

    Returns the report on success. Raises InstallError (PhaseError for a
    failing phase) otherwise; the message names the phase, the package or
    condition, and the log file.
    """
    bus = bus or EventBus()
    run_ctx = run_ctx or new_ctx(env=cfg.environment, context=cfg.kube_context)
    work_dir = work_dir or Path(tempfile.mkdtemp(prefix="grpl-"))

    def _fail(err: InstallError, completed: List[str]) -> InstallError:
        bus.emit(InstallSummary(
            status="FAILED",
            completed=list(completed),
            error=str(err),
            log_path=str(log_path) if log_path else None,
            **run_ctx,
        ))
        return err

    # ------------------------ preflight ------------------------
    if connector is not None:
        try:
            connector.connect()
        except KubeError as e:
            raise _fail(PreflightError(f"cannot reach cluster: {e}"), []) from e

    deployer = PackageDeployer(helm, cluster=cluster, bus=bus, run_ctx=run_ctx)
    if phases is None:
        phases = grapple_phases(cfg, prepare_values_files(cfg, work_dir))

    sequencer = PhaseSequencer(
        phases,
        deployer=deployer,
        cluster=cluster,
        cfg=cfg,
        bus=bus,
        run_ctx=run_ctx,
        log_path=log_path,
        sleep=sleep,
    )

    if cfg.preflight:
        for spec in preflight_waits():
            try:
                sequencer.wait("preflight", spec)
            except (WaitTimeoutError, KubeError) as e:
                raise _fail(PreflightError(f"cluster not ready: {e}"), []) from e

    bus.emit(InstallStarted(
        version=cfg.version,
        namespace=cfg.namespace,
        phases=[p.name for p in phases],
        **run_ctx,
    ))

    # ------------------------ background ------------------------
    runner = BackgroundRunner(bus=bus, run_ctx=run_ctx)
    kubeblocks: List[TaskHandle] = []
    preload: List[TaskHandle] = []

    if cfg.install_kubeblocks:
        kubeblocks.append(runner.launch(
            "kubeblocks",
            lambda: install_kubeblocks(helm=helm, deployer=deployer, work_dir=work_dir,
                                       retries=cfg.deploy_retries),
        ))
    if cfg.preload_images:
        preload.append(runner.launch(
            "preload-images",
            lambda: preload_images(cluster=cluster, version=cfg.version, sleep=sleep),
        ))

    # ------------------------ phases ------------------------
    try:
        report = sequencer.run()
        if cfg.wait_for_ready:
            sequencer.run_extra(ready_phase())

        sequencer.join(runner, preload, timeout=join_timeout)

        if cfg.ssl_enable:
            try:
                apply_cluster_issuer(cluster=cluster, cfg=cfg)
            except KubeError as e:
                raise InstallError(f"failed to setup cluster issuer: {e}") from e

        sequencer.join(runner, kubeblocks, timeout=join_timeout)
    except InstallError as e:
        # running side tasks are daemon threads and die with the process
        runner.shutdown(wait=False)
        _fail(e, sequencer.report.completed)
        raise

    # every handle was joined above; one past its join timeout is left behind
    runner.shutdown(wait=False)
    bus.emit(InstallSummary(
        status="OK",
        completed=list(report.completed),
        log_path=str(log_path) if log_path else None,
        **run_ctx,
    ))
    return report
