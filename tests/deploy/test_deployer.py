import pytest

from grpl.deploy.deployer import PackageDeployer
from grpl.deploy.errors import DeployError
from grpl.deploy.ticket import DeploymentTicket, PackageRef
from grpl.helm.errors import HelmError, ReleaseExistsError
from grpl.observers.dispatcher import EventBus


class FakeHelm:
    def __init__(self, install_errors=(), upgrade_errors=()):
        self.calls = []
        self.releases = set()
        self.install_errors = list(install_errors)
        self.upgrade_errors = list(upgrade_errors)

    def has_history(self, name, namespace):
        self.calls.append(("history", name))
        return name in self.releases

    def install(self, pkg):
        self.calls.append(("install", pkg.name))
        if self.install_errors:
            raise self.install_errors.pop(0)
        self.releases.add(pkg.name)

    def upgrade(self, pkg):
        self.calls.append(("upgrade", pkg.name))
        if self.upgrade_errors:
            raise self.upgrade_errors.pop(0)


class FakeCluster:
    def __init__(self): self.namespaces = []
    def ensure_namespace(self, name): self.namespaces.append(name)


class Capture:
    def __init__(self): self.events = []
    def notify(self, ev): self.events.append(ev)


PKG = PackageRef(name="grsf", namespace="grpl-system", chart="oci://example.test/grsf", version="0.2.8")


def test_second_deploy_takes_upgrade_path():
    helm = FakeHelm()
    deployer = PackageDeployer(helm)

    assert deployer.deploy_or_upgrade(PKG) == "install"
    assert deployer.deploy_or_upgrade(PKG) == "upgrade"
    assert [c for c in helm.calls if c[0] != "history"] == [("install", "grsf"), ("upgrade", "grsf")]


def test_release_exists_falls_back_to_upgrade():
    helm = FakeHelm(install_errors=[ReleaseExistsError("cannot re-use a name that is still in use")])
    assert PackageDeployer(helm).deploy_or_upgrade(PKG) == "upgrade"
    assert helm.calls[-1] == ("upgrade", "grsf")


def test_namespace_is_ensured_before_deploy():
    cluster = FakeCluster()
    PackageDeployer(FakeHelm(), cluster=cluster).deploy_or_upgrade(PKG)
    assert cluster.namespaces == ["grpl-system"]


def test_retry_succeeds_on_third_attempt():
    helm = FakeHelm(install_errors=[HelmError("one"), HelmError("two")])
    cap = Capture()
    ticket = DeploymentTicket(package=PKG, max_attempts=3)

    PackageDeployer(helm, bus=EventBus([cap])).deploy_with_retry(ticket)

    assert ticket.succeeded
    assert ticket.attempts == 3
    assert ticket.action == "install"
    assert ticket.failures == {1: "one", 2: "two"}
    assert [e.attempt for e in cap.events if type(e).__name__ == "DeployAttempt"] == [1, 2, 3]
    assert type(cap.events[-1]).__name__ == "DeploySucceeded"


def test_retry_is_bounded_and_keeps_last_failure_as_cause():
    errors = [HelmError("first"), HelmError("second"), HelmError("third"), HelmError("never")]
    helm = FakeHelm(install_errors=errors)
    cap = Capture()
    ticket = DeploymentTicket(package=PKG, max_attempts=3)

    with pytest.raises(DeployError) as ei:
        PackageDeployer(helm, bus=EventBus([cap])).deploy_with_retry(ticket)

    assert helm.calls.count(("install", "grsf")) == 3
    assert ei.value.package == "grsf"
    assert ei.value.attempts == 3
    assert str(ei.value.__cause__) == "third"
    assert not ticket.succeeded
    assert ticket.error == "third"
    assert type(cap.events[-1]).__name__ == "DeployFailed"
