# -*- coding: utf-8 -*-
"""Sidecar tool servers: deployment state and launch command resolution."""

from .environment import DeploymentEnvironment
from .resolver import (
    INTERPRETER_ANCHORS,
    INTERPRETER_FALLBACK,
    SIDECARS,
    Sidecar,
    build_mcp_servers,
    resolve_interpreter,
    resolve_server_command,
)

__all__ = [
    "DeploymentEnvironment",
    "INTERPRETER_ANCHORS",
    "INTERPRETER_FALLBACK",
    "SIDECARS",
    "Sidecar",
    "build_mcp_servers",
    "resolve_interpreter",
    "resolve_server_command",
]
