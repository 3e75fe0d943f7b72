# -*- coding: utf-8 -*-
"""Deployment state the sidecar resolver branches on."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from ..constant import (
    APP_PATH_ENV,
    BUNDLED_MCP_ENV,
    BUNDLED_NODE_ENV,
    MCP_TOOLS_DIRNAME,
    PACKAGED_ENV,
    RESOURCES_PATH_ENV,
)

_TRUTHY = ("1", "true", "yes")


@dataclass(frozen=True)
class DeploymentEnvironment:
    """Packaged vs. development build, OS, and resource directories.

    ``force_bundled`` mirrors ``MODELGATE_BUNDLED_MCP=1`` and makes a
    development checkout resolve sidecars the way a packaged build does.
    """

    is_packaged: bool = False
    platform: str = field(default_factory=lambda: sys.platform)
    resources_path: Path = field(default_factory=Path.cwd)
    app_path: Path = field(default_factory=Path.cwd)
    bundled_runtime: Optional[Path] = None
    force_bundled: bool = False

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        platform: Optional[str] = None,
    ) -> "DeploymentEnvironment":
        env = os.environ if environ is None else environ
        app_path = Path(env.get(APP_PATH_ENV) or Path.cwd())
        bundled = env.get(BUNDLED_NODE_ENV)
        return cls(
            is_packaged=env.get(PACKAGED_ENV, "").lower() in _TRUTHY,
            platform=platform or sys.platform,
            resources_path=Path(env.get(RESOURCES_PATH_ENV) or app_path),
            app_path=app_path,
            bundled_runtime=Path(bundled) if bundled else None,
            # Only the literal "1" enables the override.
            force_bundled=env.get(BUNDLED_MCP_ENV) == "1",
        )

    @property
    def is_windows(self) -> bool:
        return self.platform.startswith("win")

    @property
    def use_bundled(self) -> bool:
        return self.is_packaged or self.force_bundled

    @property
    def tools_root(self) -> Path:
        """Where sidecar packages live: resources when packaged, else app."""
        base = self.resources_path if self.is_packaged else self.app_path
        return base / MCP_TOOLS_DIRNAME

    @property
    def config_dir(self) -> Path:
        """Parent of the sidecar tree, as the runtime expects it."""
        return self.resources_path if self.is_packaged else self.app_path

    @property
    def runtime_binary(self) -> str:
        """The JavaScript runtime that runs compiled sidecars."""
        if self.bundled_runtime is not None:
            return str(self.bundled_runtime)
        if self.is_packaged:
            if self.is_windows:
                return str(self.resources_path / "nodejs" / "node.exe")
            return str(self.resources_path / "nodejs" / "bin" / "node")
        return "node"
