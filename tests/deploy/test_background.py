import threading

import pytest

from grpl.deploy.background import BackgroundRunner
from grpl.observers.dispatcher import EventBus


class Capture:
    def __init__(self): self.events = []
    def notify(self, ev): self.events.append(ev)


def test_outcome_is_unknown_until_joined():
    gate = threading.Event()
    with BackgroundRunner() as runner:
        handle = runner.launch("slow", gate.wait)
        assert handle.outcome is None
        assert not handle.joined

        gate.set()
        [outcome] = runner.join_all([handle])

    assert outcome.completed
    assert handle.outcome is outcome


def test_task_still_unjoined_after_finishing():
    done = threading.Event()
    with BackgroundRunner() as runner:
        handle = runner.launch("quick", done.set)
        done.wait(5)
        # finished, but the main flow hasn't looked yet
        assert handle.outcome is None
        runner.join_all([handle])
    assert handle.outcome.completed


def test_failure_is_captured_not_raised():
    def boom():
        raise RuntimeError("helm exploded")

    cap = Capture()
    with BackgroundRunner(bus=EventBus([cap])) as runner:
        handle = runner.launch("kubeblocks", boom)
        [outcome] = runner.join_all([handle])

    assert not outcome.completed
    assert outcome.error == "helm exploded"
    joined = [e for e in cap.events if type(e).__name__ == "BackgroundTaskJoined"]
    assert len(joined) == 1
    assert joined[0].completed is False


def test_join_timeout_reports_incomplete():
    gate = threading.Event()
    runner = BackgroundRunner()
    try:
        handle = runner.launch("stuck", gate.wait)
        [outcome] = runner.join_all([handle], timeout=0.01)
        assert not outcome.completed
        assert "did not finish" in outcome.error
    finally:
        gate.set()
        runner.shutdown(wait=True)


def test_joining_twice_returns_same_outcome_and_emits_once():
    cap = Capture()
    with BackgroundRunner(bus=EventBus([cap])) as runner:
        handle = runner.launch("noop", lambda: None)
        first = runner.join_all([handle])
        second = runner.join_all([handle])

    assert first == second
    assert len([e for e in cap.events if type(e).__name__ == "BackgroundTaskJoined"]) == 1


def test_tasks_run_on_daemon_threads():
    seen = {}

    def record():
        seen["thread"] = threading.current_thread()

    with BackgroundRunner() as runner:
        runner.join_all([runner.launch("preload-images", record)])

    assert seen["thread"].daemon
    assert seen["thread"].name == "grpl-bg-preload-images"


def test_launch_after_shutdown_is_refused():
    runner = BackgroundRunner()
    runner.shutdown(wait=False)
    with pytest.raises(RuntimeError):
        runner.launch("late", lambda: None)


def test_shutdown_without_wait_returns_while_task_runs():
    gate = threading.Event()
    runner = BackgroundRunner()
    handle = runner.launch("stuck", gate.wait)
    try:
        runner.shutdown(wait=False)
        assert handle.outcome is None
    finally:
        gate.set()
    [outcome] = runner.join_all([handle], timeout=5)
    assert outcome.completed
