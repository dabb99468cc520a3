# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/install/values.py

from __future__ import annotations

from pathlib import Path
from typing import List

import yaml

from grpl.config.models import InstallConfig


def deep_merge(a: dict, b: dict) -> dict:
    out = dict(a)
    for k, v in b.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def grapple_values(cfg: InstallConfig) -> dict:
    """Overlay every grsf chart is installed with."""
    return {
        "clusterdomain": cfg.domain,
        "config": {
            "email": cfg.email,
            "organization": cfg.organization,
            "clusterdomain": cfg.domain,
            "grapiversion": "0.0.1",
            "gruimversion": "0.0.1",
            "dev": "false",
            "ssl": str(cfg.ssl_enable).lower(),
            "sslissuer": cfg.ssl_issuer,
            "CLUSTER_NAME": cfg.cluster_name,
            "GRAPPLE_DNS": cfg.domain,
            "GRAPPLE_VERSION": cfg.version,
            "GRAPPLE_LICENSE": cfg.license,
            "PROVIDER_CLUSTER_TYPE": cfg.provider_cluster_type,
        },
    }


def write_values(values: dict, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w") as f:
        yaml.safe_dump(values, f, sort_keys=False)
    return path


def prepare_values_files(cfg: InstallConfig, work_dir: Path) -> List[str]:
    """
    Render the generated overlay (plus inline `values` from the config)
    and return it followed by the user's own values files, so user files
    win where keys collide.
    """
    override = write_values(deep_merge(grapple_values(cfg), cfg.values), work_dir / "values-override.yaml")
    return [str(override)] + list(cfg.values_files)
