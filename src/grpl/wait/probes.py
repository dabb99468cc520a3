# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/wait/probes.py

"""Bind a WaitSpec to the cluster query that produces its snapshot."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from grpl.kube.client import ClusterClient, KubeError
from .conditions import evaluate, explain
from .poller import PollResult, poll
from .specs import (
    AllOfKind,
    APIKindPresent,
    DeploymentAvailable,
    ResourceCondition,
    WaitSpec,
)

log = logging.getLogger("grpl")


def fetcher_for(spec: WaitSpec, cluster: ClusterClient) -> Callable[[], Any]:
    if isinstance(spec, DeploymentAvailable):
        return lambda: cluster.get_deployment_status(spec.namespace, spec.name)

    if isinstance(spec, APIKindPresent):
        return cluster.list_api_kinds

    if isinstance(spec, ResourceCondition):
        if spec.name:
            return lambda: cluster.get_custom_object(
                group=spec.group,
                version=spec.version,
                resource=spec.resource,
                name=spec.name,
                namespace=spec.namespace,
            )

        def first_item():
            items = cluster.list_custom_objects(
                group=spec.group,
                version=spec.version,
                resource=spec.resource,
                namespace=spec.namespace,
            )
            return items[0] if items else None

        return first_item

    if isinstance(spec, AllOfKind):
        return lambda: cluster.list_custom_objects(
            group=spec.group,
            version=spec.version,
            resource=spec.resource,
            namespace=spec.namespace,
        )

    raise TypeError(f"unsupported wait spec: {type(spec).__name__}")


def guard_applies(spec: WaitSpec, cluster: ClusterClient) -> bool:
    """
    False when the spec is guarded by a deployment that isn't installed,
    in which case the wait is skipped.
    """
    if spec.only_if_deployment is None:
        return True
    namespace, name = spec.only_if_deployment
    try:
        return cluster.deployment_exists(namespace, name)
    except KubeError as e:
        log.warning("[wait] could not check %s/%s, skipping %s: %s",
                    namespace, name, spec.describe(), e)
        return False


def wait_for(
    spec: WaitSpec,
    cluster: ClusterClient,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> PollResult:
    """Poll one budget-resolved spec against the cluster."""
    if spec.interval_seconds is None or spec.attempts is None:
        raise ValueError(f"poll budget not resolved for {spec.describe()}")

    return poll(
        fetcher_for(spec, cluster),
        lambda snapshot: evaluate(spec, snapshot),
        interval_seconds=spec.interval_seconds,
        max_attempts=spec.attempts,
        description=spec.describe(),
        explain=lambda snapshot: explain(spec, snapshot),
        sleep=sleep,
    )
