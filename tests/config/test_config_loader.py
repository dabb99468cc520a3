import textwrap
from pathlib import Path

import pytest
from pydantic import ValidationError

from grpl.config.loader import load_config
from grpl.config.models import DEFAULT_VERSION, InstallConfig


def test_defaults_without_file():
    cfg = load_config()
    assert cfg.version == DEFAULT_VERSION
    assert cfg.namespace == "grpl-system"
    assert cfg.default_attempts == 30
    assert cfg.deploy_retries == 3
    assert cfg.preflight is True


def test_load_config_with_env_expansion(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("GRPL_LICENSE", "abc-123")
    f = tmp_path / "install.yaml"
    f.write_text(textwrap.dedent("""
        version: latest
        license: ${GRPL_LICENSE}
        install_kubeblocks: true
        wait_overrides:
          grsf-config:
            interval_seconds: 5
            attempts: 12
    """))

    cfg = load_config(f)

    assert cfg.version == DEFAULT_VERSION
    assert cfg.license == "abc-123"
    assert cfg.install_kubeblocks is True
    assert cfg.override_for("grsf-config").attempts == 12
    assert cfg.override_for("grsf") is None


def test_overrides_win_and_none_is_ignored(tmp_path: Path):
    f = tmp_path / "install.yaml"
    f.write_text("namespace: from-file\nversion: 0.2.5\n")

    cfg = load_config(f, namespace="from-cli", version=None)

    assert cfg.namespace == "from-cli"
    assert cfg.version == "0.2.5"


def test_config_is_immutable():
    cfg = InstallConfig()
    with pytest.raises(ValidationError):
        cfg.namespace = "other"


def test_invalid_budget_rejected():
    with pytest.raises(ValidationError):
        InstallConfig(default_attempts=0)
    with pytest.raises(ValidationError):
        InstallConfig(wait_overrides={"grsf": {"interval_seconds": -1}})
