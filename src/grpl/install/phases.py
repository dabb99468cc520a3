# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/install/phases.py

"""The fixed, ordered Grapple phase list."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from grpl.config.models import InstallConfig
from grpl.deploy.ticket import PackageRef
from grpl.wait.specs import (
    AllOfKind,
    APIKindPresent,
    DeploymentAvailable,
    ResourceCondition,
    WaitSpec,
)

CROSSPLANE_PKG_GROUP = "pkg.crossplane.io"
XRD_GROUP = "apiextensions.crossplane.io"


@dataclass(frozen=True)
class Phase:
    name: str
    package: Optional[PackageRef]          # None = wait-only phase
    waits: Tuple[WaitSpec, ...] = ()
    # pause after the deploy, before the first wait
    settle_seconds: float = 0


def _pkg(cfg: InstallConfig, name: str, values_files: Sequence[str]) -> PackageRef:
    return PackageRef(
        name=name,
        namespace=cfg.namespace,
        chart=f"{cfg.chart_registry.rstrip('/')}/{name}",
        version=cfg.version,
        values_files=tuple(values_files),
    )


def preflight_waits() -> List[WaitSpec]:
    return [DeploymentAvailable(namespace="kube-system", name="coredns", interval_seconds=5, attempts=60)]


def grapple_phases(cfg: InstallConfig, values_files: Sequence[str]) -> List[Phase]:
    ns = cfg.namespace

    init = Phase(
        name="grsf-init",
        package=_pkg(cfg, "grsf-init", values_files),
        waits=(
            APIKindPresent(kind="Middleware", interval_seconds=1, attempts=30,
                           only_if_deployment=("kube-system", "traefik")),
            DeploymentAvailable(namespace=ns, name="grsf-init-cert-manager",
                                interval_seconds=10, attempts=30),
            APIKindPresent(kind="ClusterIssuer", interval_seconds=10, attempts=30),
            APIKindPresent(kind="Provider", interval_seconds=10, attempts=30,
                           only_if_deployment=(ns, "crossplane")),
            DeploymentAvailable(namespace=ns, name="grsf-init-external-secrets-webhook",
                                interval_seconds=10, attempts=30,
                                only_if_deployment=(ns, "grsf-init-external-secrets-webhook")),
        ),
    )

    core = Phase(
        name="grsf",
        package=_pkg(cfg, "grsf", values_files),
        settle_seconds=10,
        waits=(
            ResourceCondition(group=CROSSPLANE_PKG_GROUP, resource="providers", name="provider-civo",
                              condition_type="Healthy", interval_seconds=10, attempts=30,
                              only_if_deployment=(ns, "provider-civo")),
            APIKindPresent(kind="providerconfigs.civo.crossplane.io", interval_seconds=1, attempts=30,
                           only_if_deployment=(ns, "provider-civo")),
            AllOfKind(group=CROSSPLANE_PKG_GROUP, resource="providers", condition_type="Healthy",
                      interval_seconds=10, attempts=30),
            APIKindPresent(kind="providerconfigs.helm.crossplane.io", interval_seconds=1, attempts=30,
                           only_if_deployment=(ns, "provider-helm")),
            APIKindPresent(kind="providerconfigs.kubernetes.crossplane.io", interval_seconds=1, attempts=30,
                           only_if_deployment=(ns, "provider-kubernetes")),
        ),
    )

    config = Phase(
        name="grsf-config",
        package=_pkg(cfg, "grsf-config", values_files),
        waits=(
            APIKindPresent(kind="CompositeManagedApi", interval_seconds=1, attempts=50),
            APIKindPresent(kind="CompositeManagedUIModule", interval_seconds=1, attempts=50),
            APIKindPresent(kind="CompositeManagedDataSource", interval_seconds=1, attempts=50),
            AllOfKind(group=XRD_GROUP, resource="compositeresourcedefinitions",
                      condition_type="Offered", interval_seconds=1, attempts=30),
        ),
    )

    integration = Phase(
        name="grsf-integration",
        package=_pkg(cfg, "grsf-integration", values_files),
        waits=(
            AllOfKind(group=CROSSPLANE_PKG_GROUP, resource="providers", condition_type="Healthy",
                      interval_seconds=10, attempts=30),
        ),
    )

    return [init, core, config, integration]


def ready_phase() -> Phase:
    """Optional last step: the grpl configuration package reports Healthy."""
    return Phase(
        name="grpl-ready",
        package=None,
        waits=(
            ResourceCondition(group=CROSSPLANE_PKG_GROUP, resource="configurations", name="grpl",
                              condition_type="Healthy", interval_seconds=10, attempts=30),
        ),
    )
