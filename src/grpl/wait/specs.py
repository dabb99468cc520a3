# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/wait/specs.py

"""
Declarative readiness conditions.

A WaitSpec only says *what* must hold. Fetching the state lives in
`grpl.wait.probes`, judging it in `grpl.wait.conditions` and the
bounded loop in `grpl.wait.poller`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple, Union


@dataclass(frozen=True, kw_only=True)
class BaseWait:
    # None = inherit from the phase / install config
    interval_seconds: Optional[float] = None
    attempts: Optional[int] = None

    # (namespace, name) of a deployment that must exist for this wait
    # to apply at all, e.g. only wait for Middleware when traefik is installed
    only_if_deployment: Optional[Tuple[str, str]] = None

    def describe(self) -> str:
        raise NotImplementedError

    def with_budget(self, interval_seconds: float, attempts: int) -> "BaseWait":
        return replace(self, interval_seconds=interval_seconds, attempts=attempts)

    def timeout_seconds(self) -> float:
        return (self.interval_seconds or 0) * (self.attempts or 0)


@dataclass(frozen=True, kw_only=True)
class DeploymentAvailable(BaseWait):
    """availableReplicas == spec.replicas"""

    namespace: str
    name: str

    def describe(self) -> str:
        return f"deployment {self.namespace}/{self.name} to be available"


@dataclass(frozen=True, kw_only=True)
class APIKindPresent(BaseWait):
    """
    A kind (e.g. "ClusterIssuer") or a fully qualified resource name
    (e.g. "providerconfigs.helm.crossplane.io") is served by the API.
    """

    kind: str

    def describe(self) -> str:
        return f"API kind {self.kind} to be served"


@dataclass(frozen=True, kw_only=True)
class ResourceCondition(BaseWait):
    """
    status.conditions of one custom resource contains {type, status}.
    Without `name` the first item of the collection is checked.
    """

    group: str
    resource: str
    condition_type: str
    want_status: str = "True"
    version: str = "v1"
    name: Optional[str] = None
    namespace: Optional[str] = None

    def describe(self) -> str:
        target = self.name or "<first>"
        if self.namespace:
            target = f"{self.namespace}/{target}"
        return (
            f"{self.resource}.{self.group} {target} "
            f"condition {self.condition_type}={self.want_status}"
        )


@dataclass(frozen=True, kw_only=True)
class AllOfKind(BaseWait):
    """Every item of a (non-empty) collection satisfies {type, status}."""

    group: str
    resource: str
    condition_type: str
    want_status: str = "True"
    version: str = "v1"
    namespace: Optional[str] = None

    def describe(self) -> str:
        scope = f" in {self.namespace}" if self.namespace else ""
        return (
            f"all {self.resource}.{self.group}{scope} "
            f"condition {self.condition_type}={self.want_status}"
        )


WaitSpec = Union[DeploymentAvailable, APIKindPresent, ResourceCondition, AllOfKind]


def resolve_budget(
    spec: WaitSpec,
    *,
    default_interval: float,
    default_attempts: int,
    override_interval: Optional[float] = None,
    override_attempts: Optional[int] = None,
) -> WaitSpec:
    """
    Fix the poll budget of a spec.

    Precedence: explicit override (config) > the spec's own value > defaults.
    """
    interval = override_interval
    if interval is None:
        interval = spec.interval_seconds if spec.interval_seconds is not None else default_interval

    attempts = override_attempts
    if attempts is None:
        attempts = spec.attempts if spec.attempts is not None else default_attempts

    if attempts < 1:
        raise ValueError(f"attempts must be >= 1 for {spec.describe()}")
    if interval < 0:
        raise ValueError(f"interval must be >= 0 for {spec.describe()}")

    return spec.with_budget(interval, attempts)
