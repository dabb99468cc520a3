# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/install/side_tasks.py

"""Work launched in the background while the phases run."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, List

from grpl.config.models import InstallConfig, RepoSpec
from grpl.deploy.deployer import PackageDeployer
from grpl.deploy.errors import BackgroundTaskError
from grpl.deploy.ticket import DeploymentTicket, PackageRef
from grpl.helm.interface import IHelm
from grpl.kube.client import ClusterClient
from grpl.wait.poller import poll

from .values import write_values

log = logging.getLogger("grpl")

KUBEBLOCKS_REPO = RepoSpec(name="kubeblocks", url="https://apecloud.github.io/helm-charts")
KUBEBLOCKS_VERSION = "0.9.1"
KUBEBLOCKS_NAMESPACE = "kb-system"

PRELOAD_NAMESPACE = "default"


# ---------------------------------------------------------------------
# KubeBlocks
# ---------------------------------------------------------------------
def kubeblocks_values() -> dict:
    return {
        "image": {"registry": "docker.io", "repository": "apecloud/kubeblocks"},
        "dataScriptImage": {"registry": "docker.io", "repository": "apecloud/kubeblocks-datascript"},
        "toolImage": {"registry": "docker.io", "repository": "apecloud/kubeblocks-tools"},
    }


def install_kubeblocks(
    *,
    helm: IHelm,
    deployer: PackageDeployer,
    work_dir: Path,
    retries: int = 3,
) -> DeploymentTicket:
    helm.add_repo(KUBEBLOCKS_REPO)
    helm.update_repos()

    values = write_values(kubeblocks_values(), work_dir / "values-kubeblocks.yaml")
    pkg = PackageRef(
        name="kubeblocks",
        namespace=KUBEBLOCKS_NAMESPACE,
        chart="kubeblocks/kubeblocks",
        version=KUBEBLOCKS_VERSION,
        values_files=(str(values),),
        timeout_seconds=1200,
    )
    return deployer.deploy_with_retry(DeploymentTicket(package=pkg, max_attempts=retries))


# ---------------------------------------------------------------------
# Image preload
# ---------------------------------------------------------------------
def preload_images_for(version: str) -> List[str]:
    return [f"grpl/grapi:{version}", f"grpl/gruim:{version}"]


def preload_pod_name(image: str) -> str:
    repo, _, tag = image.partition(":")
    return f"image-preload-{repo.replace('/', '-')}-{tag.replace('.', '-')}"


def preload_pod(image: str) -> dict:
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {"name": preload_pod_name(image)},
        "spec": {
            "containers": [{"name": "preload", "image": image, "command": ["sleep", "1"]}],
            "restartPolicy": "Never",
        },
    }


def preload_images(
    *,
    cluster: ClusterClient,
    version: str,
    interval_seconds: float = 1,
    attempts: int = 300,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """
    Pull the Grapple images onto the node by running a throw-away pod per
    image. Pods that already exist are left alone.
    """
    for image in preload_images_for(version):
        name = preload_pod_name(image)
        if cluster.get_pod_phase(PRELOAD_NAMESPACE, name) is not None:
            log.info("[preload] pod %s already exists, skipping %s", name, image)
            continue

        cluster.create_pod(PRELOAD_NAMESPACE, preload_pod(image))

        holder = {}

        def fetch():
            holder["phase"] = cluster.get_pod_phase(PRELOAD_NAMESPACE, name)
            return holder["phase"]

        poll(
            fetch,
            lambda phase: phase in ("Succeeded", "Failed"),
            interval_seconds=interval_seconds,
            max_attempts=attempts,
            description=f"image preload pod {name}",
            sleep=sleep,
        )
        if holder.get("phase") == "Failed":
            raise BackgroundTaskError(f"image preload pod {name} failed pulling {image}")

        cluster.delete_pod(PRELOAD_NAMESPACE, name)
        log.info("[preload] %s pulled", image)


# ---------------------------------------------------------------------
# ClusterIssuer
# ---------------------------------------------------------------------
def cluster_issuer(cfg: InstallConfig) -> dict:
    ingress_class = "traefik" if cfg.provider_cluster_type == "K3D" else "nginx"
    return {
        "apiVersion": "cert-manager.io/v1",
        "kind": "ClusterIssuer",
        "metadata": {"name": cfg.ssl_issuer, "labels": {"clusterissuer": "grapple-demo"}},
        "spec": {
            "acme": {
                "server": "https://acme-v02.api.letsencrypt.org/directory",
                "email": cfg.email,
                "privateKeySecretRef": {"name": cfg.ssl_issuer},
                "solvers": [{"http01": {"ingress": {"class": ingress_class}}}],
            }
        },
    }


def apply_cluster_issuer(*, cluster: ClusterClient, cfg: InstallConfig) -> None:
    cluster.create_cluster_custom_object(
        group="cert-manager.io",
        version="v1",
        resource="clusterissuers",
        body=cluster_issuer(cfg),
    )
