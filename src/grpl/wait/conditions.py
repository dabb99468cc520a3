# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/wait/conditions.py

"""
Pure readiness predicates.

Every function here takes an already fetched snapshot and answers
ready / not-ready. Nothing blocks, retries or raises on bad input:
an absent object or a malformed status is simply "not ready", so the
poller keeps going.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from .specs import (
    AllOfKind,
    APIKindPresent,
    DeploymentAvailable,
    ResourceCondition,
    WaitSpec,
)


# ---------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class DeploymentStatus:
    name: str
    desired: int
    available: int


@dataclass(frozen=True)
class Condition:
    type: str
    status: str


@dataclass(frozen=True)
class KindCatalog:
    # kinds ("ClusterIssuer") and qualified resource names
    # ("clusterissuers.cert-manager.io") served by the API server
    names: FrozenSet[str]

    def __contains__(self, item: str) -> bool:
        return item in self.names


def decode_conditions(obj: Any) -> Optional[Tuple[Condition, ...]]:
    """
    Typed view of obj["status"]["conditions"].

    Returns None when the path is missing or not shaped like a list of
    {type, status} maps.
    """
    if not isinstance(obj, Mapping):
        return None
    status = obj.get("status")
    if not isinstance(status, Mapping):
        return None
    raw = status.get("conditions")
    if not isinstance(raw, list):
        return None

    out: List[Condition] = []
    for c in raw:
        if not isinstance(c, Mapping):
            return None
        ctype, cstatus = c.get("type"), c.get("status")
        if not isinstance(ctype, str) or not isinstance(cstatus, str):
            return None
        out.append(Condition(type=ctype, status=cstatus))
    return tuple(out)


def object_name(obj: Any) -> str:
    if isinstance(obj, Mapping):
        meta = obj.get("metadata")
        if isinstance(meta, Mapping):
            return str(meta.get("name", "?"))
    return "?"


# ---------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------
def deployment_available(status: Optional[DeploymentStatus]) -> bool:
    if status is None:
        return False
    return status.available == status.desired


def kind_present(catalog: Optional[KindCatalog], kind: str) -> bool:
    if catalog is None:
        return False
    return kind in catalog


def has_condition(obj: Any, condition_type: str, want_status: str) -> bool:
    conditions = decode_conditions(obj)
    if conditions is None:
        return False
    return any(c.type == condition_type and c.status == want_status for c in conditions)


def all_have_condition(items: Optional[Sequence[Any]], condition_type: str, want_status: str) -> bool:
    # an empty collection is never ready: it usually just hasn't been populated yet
    if not items:
        return False
    return all(has_condition(i, condition_type, want_status) for i in items)


def not_ready_items(items: Iterable[Any], condition_type: str, want_status: str) -> List[str]:
    return [object_name(i) for i in items if not has_condition(i, condition_type, want_status)]


def evaluate(spec: WaitSpec, snapshot: Any) -> bool:
    """Apply the predicate matching the spec's kind to a snapshot."""
    if isinstance(spec, DeploymentAvailable):
        return deployment_available(snapshot)
    if isinstance(spec, APIKindPresent):
        return kind_present(snapshot, spec.kind)
    if isinstance(spec, ResourceCondition):
        return snapshot is not None and has_condition(snapshot, spec.condition_type, spec.want_status)
    if isinstance(spec, AllOfKind):
        return all_have_condition(snapshot, spec.condition_type, spec.want_status)
    raise TypeError(f"unsupported wait spec: {type(spec).__name__}")


def explain(spec: WaitSpec, snapshot: Any) -> Optional[str]:
    """What is still missing, for timeout messages. None when nothing useful to add."""
    if isinstance(spec, AllOfKind):
        if not snapshot:
            return f"no {spec.resource} found"
        pending = not_ready_items(snapshot, spec.condition_type, spec.want_status)
        if pending:
            return "still not ready: " + ", ".join(pending)
    if isinstance(spec, DeploymentAvailable):
        if snapshot is None:
            return "deployment not found"
        return f"{snapshot.available}/{snapshot.desired} replicas available"
    if isinstance(spec, ResourceCondition) and snapshot is None:
        return "resource not found"
    return None
