import json
import logging
from pathlib import Path

from grpl.logging.log import init_logging
from grpl.observers.console import ConsoleObserver
from grpl.observers.dispatcher import EventBus
from grpl.observers.events import DeploySucceeded, PhaseFailed, PhaseStarted, WaitTimedOut, new_ctx
from grpl.observers.jsonfile import JsonFileObserver
from grpl.observers.logger import LoggerObserver

CTX = new_ctx(env="dev", context="k3d-grpl", run_id="run-1")


class Broken:
    def notify(self, ev):
        raise RuntimeError("observer bug")


class Capture:
    def __init__(self): self.events = []
    def notify(self, ev): self.events.append(ev)


def test_broken_observer_does_not_stop_others():
    cap = Capture()
    EventBus([Broken(), cap]).emit(PhaseFailed(phase="grsf", error="x", **CTX))
    assert len(cap.events) == 1


def test_json_file_observer_appends_lines(tmp_path: Path):
    path = tmp_path / "events" / "run.jsonl"
    ob = JsonFileObserver(path)
    ob.notify(PhaseFailed(phase="grsf", error="boom", **CTX))
    ob.notify(WaitTimedOut(phase="grsf", description="all providers", timeout_s=300, **CTX))

    lines = [json.loads(l) for l in path.read_text().splitlines()]
    assert [l["type"] for l in lines] == ["PhaseFailed", "WaitTimedOut"]
    assert lines[0]["run_id"] == "run-1"
    assert lines[1]["timeout_s"] == 300


def test_logger_observer_writes_event_line(caplog):
    logger = logging.getLogger("grpl-test-observer")
    with caplog.at_level(logging.INFO, logger="grpl-test-observer"):
        LoggerObserver(logger).notify(PhaseFailed(phase="grsf", error="boom", **CTX))
    assert "[EVENT] PhaseFailed" in caplog.text
    assert "phase=grsf" in caplog.text


def test_console_observer_reports_upgrade(capsys):
    ConsoleObserver().notify(DeploySucceeded(
        name="grsf", namespace="grpl-system", action="upgrade", attempts=1, duration_ms=10, **CTX,
    ))
    assert "Successfully upgraded release 'grsf'" in capsys.readouterr().out


def test_console_errors_go_to_stderr(capsys):
    ConsoleObserver().notify(PhaseFailed(phase="grsf-config", error="timed out", **CTX))
    captured = capsys.readouterr()
    assert "grsf-config failed" in captured.err


def test_init_logging_creates_log_file(tmp_path: Path):
    logger, run_id, log_path = init_logging(base_dir=tmp_path, name="grpl-test")
    logger.debug("trace line")
    for h in logger.handlers:
        h.flush()

    assert log_path.parent == tmp_path
    assert run_id in log_path.name
    assert "trace line" in log_path.read_text()


def test_console_wait_only_phase_is_not_a_deploy(capsys):
    ConsoleObserver().notify(PhaseStarted(phase="grpl-ready", index=4, total=5, deploys=False, **CTX))
    out = capsys.readouterr().out
    assert "[5/5] Checking 'grpl-ready'" in out
    assert "Deploying" not in out


def test_logger_observer_levels_and_fields(caplog):
    logger = logging.getLogger("grpl-test-levels")
    ob = LoggerObserver(logger)
    with caplog.at_level(logging.INFO, logger="grpl-test-levels"):
        ob.notify(PhaseStarted(phase="grsf", index=1, total=4, **CTX))
        ob.notify(WaitTimedOut(phase="grsf", description="all providers", timeout_s=300, **CTX))

    started, timed_out = caplog.records
    assert started.levelno == logging.INFO
    assert timed_out.levelno == logging.ERROR
    # run context is already on every log line
    assert "run_id" not in caplog.text
    assert "deploys=True" in started.getMessage()
