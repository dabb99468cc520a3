from pathlib import Path

import pytest
import yaml

from grpl.config.models import InstallConfig
from grpl.deploy.deployer import PackageDeployer
from grpl.deploy.errors import BackgroundTaskError
from grpl.install.side_tasks import (
    apply_cluster_issuer,
    cluster_issuer,
    install_kubeblocks,
    preload_images,
    preload_pod_name,
)
from grpl.install.values import deep_merge, prepare_values_files


class FakePods:
    """Pod phases returned on successive polls per pod name."""
    def __init__(self, phases=None, existing=()):
        self.phases = {k: list(v) for k, v in (phases or {}).items()}
        self.existing = set(existing)
        self.created = []
        self.deleted = []
        self.issuers = []

    def get_pod_phase(self, namespace, name):
        if name in self.existing:
            return "Succeeded"
        seq = self.phases.get(name)
        if name not in self.created or not seq:
            return None
        return seq.pop(0) if len(seq) > 1 else seq[0]

    def create_pod(self, namespace, body):
        self.created.append(body["metadata"]["name"])

    def delete_pod(self, namespace, name):
        self.deleted.append(name)

    def create_cluster_custom_object(self, *, group, version, resource, body):
        self.issuers.append((group, resource, body))


GRAPI = preload_pod_name("grpl/grapi:0.2.8")
GRUIM = preload_pod_name("grpl/gruim:0.2.8")


def test_preload_pod_names():
    assert GRAPI == "image-preload-grpl-grapi-0-2-8"


def test_preload_runs_pod_per_image_and_cleans_up():
    pods = FakePods(phases={GRAPI: ["Pending", "Running", "Succeeded"], GRUIM: ["Succeeded"]})

    preload_images(cluster=pods, version="0.2.8", sleep=lambda s: None)

    assert pods.created == [GRAPI, GRUIM]
    assert pods.deleted == [GRAPI, GRUIM]


def test_preload_skips_existing_pods():
    pods = FakePods(phases={GRUIM: ["Succeeded"]}, existing={GRAPI})

    preload_images(cluster=pods, version="0.2.8", sleep=lambda s: None)

    assert pods.created == [GRUIM]


def test_preload_failed_pod_raises():
    pods = FakePods(phases={GRAPI: ["Failed"]})

    with pytest.raises(BackgroundTaskError):
        preload_images(cluster=pods, version="0.2.8", sleep=lambda s: None)
    assert pods.deleted == []


class FakeHelm:
    def __init__(self): self.calls = []
    def add_repo(self, repo): self.calls.append(("repo add", repo.name))
    def update_repos(self): self.calls.append(("repo update",))
    def has_history(self, name, namespace): return False
    def install(self, pkg): self.calls.append(("install", pkg))
    def upgrade(self, pkg): self.calls.append(("upgrade", pkg))


def test_install_kubeblocks(tmp_path: Path):
    helm = FakeHelm()

    ticket = install_kubeblocks(helm=helm, deployer=PackageDeployer(helm), work_dir=tmp_path)

    assert helm.calls[:2] == [("repo add", "kubeblocks"), ("repo update",)]
    pkg = helm.calls[2][1]
    assert (pkg.name, pkg.namespace, pkg.chart, pkg.version) == \
        ("kubeblocks", "kb-system", "kubeblocks/kubeblocks", "0.9.1")
    assert pkg.timeout_seconds == 1200
    assert Path(pkg.values_files[0]).exists()
    assert ticket.succeeded


def test_cluster_issuer_follows_provider():
    k3d = cluster_issuer(InstallConfig(email="ops@example.test"))
    solver = k3d["spec"]["acme"]["solvers"][0]
    assert solver["http01"]["ingress"]["class"] == "traefik"
    assert k3d["spec"]["acme"]["email"] == "ops@example.test"

    civo = cluster_issuer(InstallConfig(provider_cluster_type="CIVO"))
    assert civo["spec"]["acme"]["solvers"][0]["http01"]["ingress"]["class"] == "nginx"

    pods = FakePods()
    apply_cluster_issuer(cluster=pods, cfg=InstallConfig())
    assert pods.issuers[0][:2] == ("cert-manager.io", "clusterissuers")


def test_values_overlay_comes_before_user_files(tmp_path: Path):
    cfg = InstallConfig(
        domain="example.test",
        values={"config": {"dev": "true"}},
        values_files=["mine.yaml"],
    )

    files = prepare_values_files(cfg, tmp_path)

    assert files[1:] == ["mine.yaml"]
    rendered = yaml.safe_load(Path(files[0]).read_text())
    assert rendered["clusterdomain"] == "example.test"
    assert rendered["config"]["dev"] == "true"
    assert rendered["config"]["organization"] == "grapple-solutions"


def test_deep_merge_nested():
    assert deep_merge({"a": {"b": 1, "c": 2}}, {"a": {"c": 3}, "d": 4}) == {"a": {"b": 1, "c": 3}, "d": 4}
