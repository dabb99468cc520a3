# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/kube/client.py
from __future__ import annotations

import logging
from typing import Optional, Protocol

from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import HTTPError as Urllib3HTTPError

from grpl.wait.conditions import DeploymentStatus, KindCatalog

log = logging.getLogger("grpl")


class KubeError(RuntimeError):
    pass


class ClusterConnector(Protocol):
    """Anything that can (re)establish a connection to the target cluster."""

    def connect(self) -> None: ...


class KubeConnector:
    """
    Loads kubeconfig (falling back to in-cluster config) and verifies the
    API server answers. Raises KubeError when the cluster is unreachable.
    """

    def __init__(self, kube_context: Optional[str] = None):
        self.kube_context = kube_context
        self.api_client: Optional[client.ApiClient] = None

    def connect(self) -> None:
        try:
            config.load_kube_config(context=self.kube_context)
        except ConfigException:
            try:
                config.load_incluster_config()
            except ConfigException as e:
                raise KubeError(f"failed to create kubernetes config: {e}") from e

        self.api_client = client.ApiClient()
        try:
            info = client.VersionApi(self.api_client).get_code()
        except (ApiException, Urllib3HTTPError, OSError) as e:
            raise KubeError(f"failed to connect to kubernetes: {e}") from e

        log.info("[kube] connected to kubernetes %s", info.git_version)


class ClusterClient:
    """
    Read/write helpers over the kubernetes python client.

    Reads map 404 to "absent" (None / empty list). Every other failure is
    raised as KubeError, which pollers treat as a transient fetch error.
    """

    def __init__(
        self,
        api_client: Optional[client.ApiClient] = None,
        *,
        core=None,
        apps=None,
        apis=None,
        custom=None,
    ):
        self.core = core or client.CoreV1Api(api_client)
        self.apps = apps or client.AppsV1Api(api_client)
        self.apis = apis or client.ApisApi(api_client)
        self.custom = custom or client.CustomObjectsApi(api_client)

    @classmethod
    def from_connector(cls, connector: KubeConnector) -> "ClusterClient":
        if connector.api_client is None:
            connector.connect()
        return cls(connector.api_client)

    # ------------------------- internal helpers -------------------------

    @staticmethod
    def _call(what: str, fn, *args, absent_ok: bool = True, **kwargs):
        try:
            return fn(*args, **kwargs)
        except ApiException as e:
            if absent_ok and e.status == 404:
                return None
            raise KubeError(f"{what} failed: {e.status} {e.reason}") from e
        except (Urllib3HTTPError, OSError) as e:
            raise KubeError(f"{what} failed: {e}") from e

    # ------------------------- deployments -------------------------

    def get_deployment_status(self, namespace: str, name: str) -> Optional[DeploymentStatus]:
        d = self._call(
            f"get deployment {namespace}/{name}",
            self.apps.read_namespaced_deployment, name, namespace,
        )
        if d is None:
            return None

        desired = d.spec.replicas if d.spec and d.spec.replicas is not None else 1
        available = (d.status.available_replicas if d.status else None) or 0
        return DeploymentStatus(name=name, desired=desired, available=available)

    def deployment_exists(self, namespace: str, name: str) -> bool:
        return self.get_deployment_status(namespace, name) is not None

    # ------------------------- discovery -------------------------

    def list_api_kinds(self) -> KindCatalog:
        names: set[str] = set()

        core = self._call("discover core resources", self.core.get_api_resources, absent_ok=False)
        for r in core.resources or []:
            if "/" not in r.name:
                names.add(r.kind)
                names.add(r.name)

        groups = self._call("discover api groups", self.apis.get_api_versions, absent_ok=False)
        for g in groups.groups or []:
            version = g.preferred_version.version
            try:
                lst = self.custom.get_api_resources(g.name, version)
            except (ApiException, Urllib3HTTPError, OSError) as e:
                # aggregated APIs (metrics.k8s.io, ...) may be down; skip the group
                log.debug("[kube] discovery of %s/%s failed: %s", g.name, version, e)
                continue
            for r in lst.resources or []:
                if "/" not in r.name:
                    names.add(r.kind)
                    names.add(f"{r.name}.{g.name}")

        return KindCatalog(names=frozenset(names))

    # ------------------------- custom resources -------------------------

    def get_custom_object(
        self,
        *,
        group: str,
        version: str,
        resource: str,
        name: str,
        namespace: Optional[str] = None,
    ) -> Optional[dict]:
        what = f"get {resource}.{group}/{name}"
        if namespace:
            return self._call(
                what, self.custom.get_namespaced_custom_object,
                group, version, namespace, resource, name,
            )
        return self._call(what, self.custom.get_cluster_custom_object, group, version, resource, name)

    def list_custom_objects(
        self,
        *,
        group: str,
        version: str,
        resource: str,
        namespace: Optional[str] = None,
    ) -> list[dict]:
        what = f"list {resource}.{group}"
        if namespace:
            out = self._call(
                what, self.custom.list_namespaced_custom_object,
                group, version, namespace, resource,
            )
        else:
            out = self._call(what, self.custom.list_cluster_custom_object, group, version, resource)
        # 404 = the resource type itself isn't served (yet)
        if out is None:
            return []
        return list(out.get("items") or [])

    def create_cluster_custom_object(self, *, group: str, version: str, resource: str, body: dict) -> None:
        name = body.get("metadata", {}).get("name", "?")
        try:
            self.custom.create_cluster_custom_object(group, version, resource, body)
        except ApiException as e:
            if e.status == 409:
                log.info("[kube] %s.%s/%s already exists", resource, group, name)
                return
            raise KubeError(f"create {resource}.{group}/{name} failed: {e.status} {e.reason}") from e

    # ------------------------- namespaces -------------------------

    def ensure_namespace(self, name: str) -> None:
        if self._call(f"get namespace {name}", self.core.read_namespace, name) is not None:
            return
        log.info("[kube] creating namespace %s", name)
        try:
            self.core.create_namespace({"metadata": {"name": name}})
        except ApiException as e:
            if e.status != 409:
                raise KubeError(f"failed to create namespace {name}: {e.status} {e.reason}") from e

    # ------------------------- pods -------------------------

    def get_pod_phase(self, namespace: str, name: str) -> Optional[str]:
        pod = self._call(f"get pod {namespace}/{name}", self.core.read_namespaced_pod, name, namespace)
        if pod is None:
            return None
        return pod.status.phase if pod.status else None

    def create_pod(self, namespace: str, body: dict) -> None:
        self._call(
            f"create pod {namespace}/{body['metadata']['name']}",
            self.core.create_namespaced_pod, namespace, body,
            absent_ok=False,
        )

    def delete_pod(self, namespace: str, name: str) -> None:
        self._call(f"delete pod {namespace}/{name}", self.core.delete_namespaced_pod, name, namespace)
