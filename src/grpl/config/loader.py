# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/config/loader.py

import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional

from .models import InstallConfig


def load_config(path: str | Path | None = None, **overrides: Any) -> InstallConfig:
    """
    Build the InstallConfig for one run.

    The YAML file (optional) is read with ${ENV} expansion; keyword
    overrides (typically CLI flags) win over file values. `None`
    overrides are ignored so unset flags never clobber the file.
    """
    data: Dict[str, Any] = {}
    if path is not None:
        raw = Path(path).read_text()
        expanded = os.path.expandvars(raw)
        data = yaml.safe_load(expanded) or {}

    data.update({k: v for k, v in overrides.items() if v is not None})
    return InstallConfig.model_validate(data)
