"""Settings read from the environment."""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from typing import Mapping

ENV_K3D_PATH = "K3DTERM_K3D_PATH"
ENV_KUBECONFIG = "K3DTERM_KUBECONFIG"
ENV_DOCKER_HOST = "K3DTERM_DOCKER_HOST"
ENV_LOG_LEVEL = "K3DTERM_LOG_LEVEL"
ENV_LOG_FILE = "K3DTERM_LOG_FILE"


@dataclass
class K3dConfig:
    """Where k3d lives and what environment it runs with."""

    k3d_path: str = "k3d"
    kubeconfig: str | None = None
    docker_host: str | None = None
    log_level: str = "INFO"
    log_file: str | None = None
    extra_env: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> K3dConfig:
        env = os.environ if environ is None else environ
        # an unresolved "k3d" still gets spawned and reported as no-program
        k3d_path = env.get(ENV_K3D_PATH) or shutil.which("k3d") or "k3d"
        return cls(
            k3d_path=k3d_path,
            kubeconfig=env.get(ENV_KUBECONFIG) or None,
            docker_host=env.get(ENV_DOCKER_HOST) or env.get("DOCKER_HOST") or None,
            log_level=(env.get(ENV_LOG_LEVEL) or "INFO").upper(),
            log_file=env.get(ENV_LOG_FILE) or None,
        )

    def env_overlay(self) -> dict[str, str]:
        """Variables to add to the environment of every k3d invocation."""
        overlay = dict(self.extra_env)
        if self.kubeconfig:
            overlay["KUBECONFIG"] = self.kubeconfig
        if self.docker_host:
            overlay["DOCKER_HOST"] = self.docker_host
        return overlay
