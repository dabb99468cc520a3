import pytest

from grpl.config.models import InstallConfig
from grpl.install.phases import grapple_phases, ready_phase
from grpl.kube.client import KubeError
from grpl.wait.probes import fetcher_for, guard_applies, wait_for
from grpl.wait.specs import AllOfKind, APIKindPresent, ResourceCondition, resolve_budget


def test_budget_precedence():
    spec = APIKindPresent(kind="Provider", interval_seconds=1, attempts=30)
    unset = APIKindPresent(kind="Provider")

    assert resolve_budget(unset, default_interval=10, default_attempts=5).attempts == 5
    assert resolve_budget(spec, default_interval=10, default_attempts=5).attempts == 30
    b = resolve_budget(spec, default_interval=10, default_attempts=5, override_interval=2, override_attempts=3)
    assert (b.interval_seconds, b.attempts) == (2, 3)
    assert b.timeout_seconds() == 6
    # the original is untouched
    assert spec.attempts == 30


def test_budget_rejects_zero_attempts():
    with pytest.raises(ValueError):
        resolve_budget(APIKindPresent(kind="X", attempts=0), default_interval=1, default_attempts=1)


def test_descriptions_name_the_condition():
    assert AllOfKind(group="pkg.crossplane.io", resource="providers", condition_type="Healthy").describe() \
        == "all providers.pkg.crossplane.io condition Healthy=True"
    assert "configurations.pkg.crossplane.io grpl" in ready_phase().waits[0].describe()


def test_unresolved_budget_is_refused():
    with pytest.raises(ValueError):
        wait_for(APIKindPresent(kind="X"), cluster=None)


class FakeCluster:
    def __init__(self, items=(), exists_error=None):
        self.items = list(items)
        self.exists_error = exists_error

    def list_custom_objects(self, *, group, version, resource, namespace=None):
        return self.items

    def deployment_exists(self, namespace, name):
        if self.exists_error:
            raise self.exists_error
        return name == "traefik"


def test_unnamed_resource_condition_checks_first_item():
    spec = ResourceCondition(group="pkg.crossplane.io", resource="providers", condition_type="Healthy")
    assert fetcher_for(spec, FakeCluster(items=[{"metadata": {"name": "p1"}}, {}]))() == {"metadata": {"name": "p1"}}
    assert fetcher_for(spec, FakeCluster())() is None


def test_guard():
    guarded = APIKindPresent(kind="Middleware", only_if_deployment=("kube-system", "traefik"))
    other = APIKindPresent(kind="Provider", only_if_deployment=("grpl-system", "crossplane"))

    assert guard_applies(APIKindPresent(kind="X"), FakeCluster()) is True
    assert guard_applies(guarded, FakeCluster()) is True
    assert guard_applies(other, FakeCluster()) is False
    assert guard_applies(guarded, FakeCluster(exists_error=KubeError("down"))) is False


def test_default_phases_are_ordered_and_versioned():
    cfg = InstallConfig(version="0.2.8")
    phases = grapple_phases(cfg, ["/tmp/values-override.yaml"])

    assert [p.name for p in phases] == ["grsf-init", "grsf", "grsf-config", "grsf-integration"]
    for p in phases:
        assert p.package.version == "0.2.8"
        assert p.package.chart == f"oci://public.ecr.aws/p7h7z5g3/{p.name}"
        assert p.package.values_files == ("/tmp/values-override.yaml",)
        assert p.waits
    assert phases[1].settle_seconds == 10
