# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/config/models.py

from typing import Dict, List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

DEFAULT_VERSION = "0.2.8"


class RepoSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    url: HttpUrl
    username: Optional[str] = None
    password: Optional[str] = None


class WaitOverride(BaseModel):
    """Per-phase override of the poll budget of every WaitSpec in that phase."""

    model_config = ConfigDict(frozen=True)

    interval_seconds: Optional[float] = Field(default=None, ge=0)
    attempts: Optional[int] = Field(default=None, ge=1)


class InstallConfig(BaseModel):
    """
    Immutable install configuration.

    Built once at the entry point (file + CLI flags) and handed down to
    every component. Nothing mutates it after construction.
    """

    model_config = ConfigDict(frozen=True)

    # Package stack
    version: str = DEFAULT_VERSION
    namespace: str = "grpl-system"
    chart_registry: str = "oci://public.ecr.aws/p7h7z5g3"
    values_files: List[str] = Field(default_factory=list)
    values: Dict = Field(default_factory=dict)   # inline overlay

    # Polling / retries
    default_interval_seconds: float = Field(default=10, ge=0)
    default_attempts: int = Field(default=30, ge=1)
    wait_overrides: Dict[str, WaitOverride] = Field(default_factory=dict)
    deploy_retries: int = Field(default=3, ge=1)

    # Optional steps
    install_kubeblocks: bool = False
    preload_images: bool = False
    wait_for_ready: bool = False
    ssl_enable: bool = False
    ssl_issuer: str = "letsencrypt-grapple-demo"
    preflight: bool = True

    # Cluster / overlay identity
    kube_context: Optional[str] = None
    cluster_name: str = ""
    organization: str = "grapple-solutions"
    email: str = "test@gmail.com"
    domain: str = "grpl-k3d.dev"
    license: str = ""
    provider_cluster_type: Literal["K3D", "CIVO"] = "K3D"
    environment: Literal["dev", "staging", "prod"] = "dev"

    @field_validator("version")
    @classmethod
    def _resolve_latest(cls, v: str) -> str:
        if not v or v == "latest":
            return DEFAULT_VERSION
        return v

    def override_for(self, phase: str) -> Optional[WaitOverride]:
        return self.wait_overrides.get(phase)
