# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/helm/errors.py
class HelmError(RuntimeError):
    """Base class for Helm-related failures."""

class ReleaseExistsError(HelmError):
    """Raised when an install finds the release name already taken."""
