# -*- coding: utf-8 -*-
"""Resolve the argv used to launch each sidecar tool server."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..constant import (
    PERMISSION_API_PORT,
    QUESTION_API_PORT,
    SIDECAR_TIMEOUT_MS,
)
from .environment import DeploymentEnvironment

logger = logging.getLogger(__name__)

# Sidecar packages that vendor the TypeScript interpreter, probed in order.
INTERPRETER_ANCHORS: Tuple[str, ...] = (
    "file-permission",
    "ask-user-question",
    "dev-browser-mcp",
    "complete-task",
)

INTERPRETER_FALLBACK: List[str] = ["npx", "tsx"]


def interpreter_candidates(
    tools_root: Path,
    env: DeploymentEnvironment,
) -> List[Path]:
    binary = "tsx.cmd" if env.is_windows else "tsx"
    return [
        Path(tools_root) / anchor / "node_modules" / ".bin" / binary
        for anchor in INTERPRETER_ANCHORS
    ]


def resolve_interpreter(
    tools_root: Path,
    env: DeploymentEnvironment,
) -> List[str]:
    """Return the interpreter argv: a vendored binary, else the package runner."""
    for candidate in interpreter_candidates(tools_root, env):
        if candidate.exists():
            logger.info("Using bundled tsx: %s", candidate)
            return [str(candidate)]

    logger.info("Bundled tsx not found; falling back to npx tsx")
    return list(INTERPRETER_FALLBACK)


def resolve_server_command(
    interpreter: List[str],
    tools_root: Path,
    server_name: str,
    source_rel_path: str,
    compiled_rel_path: str,
    env: DeploymentEnvironment,
) -> List[str]:
    """Return the argv for one sidecar server.

    Packaged builds (or the bundled override) launch the compiled artifact
    with the bundled runtime when that artifact exists for this server;
    everything else runs the source entry point through *interpreter*.
    Decided per call, since sidecars are built independently.
    """
    server_dir = Path(tools_root) / server_name
    compiled_path = server_dir / compiled_rel_path

    if env.use_bundled and compiled_path.exists():
        logger.info("Using bundled MCP entry: %s", compiled_path)
        return [env.runtime_binary, str(compiled_path)]

    source_path = server_dir / source_rel_path
    logger.info("Using tsx MCP entry: %s", source_path)
    return [*interpreter, str(source_path)]


# ---------------------------------------------------------------------------
# Sidecar catalogue
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Sidecar:
    name: str
    source_rel_path: str = "src/index.ts"
    compiled_rel_path: str = "dist/index.mjs"
    environment: Dict[str, str] = field(default_factory=dict)
    timeout_ms: int = SIDECAR_TIMEOUT_MS


SIDECARS: Tuple[Sidecar, ...] = (
    Sidecar(
        "file-permission",
        environment={"PERMISSION_API_PORT": str(PERMISSION_API_PORT)},
    ),
    Sidecar(
        "ask-user-question",
        environment={"QUESTION_API_PORT": str(QUESTION_API_PORT)},
    ),
    Sidecar("dev-browser-mcp"),
    # Provides the complete_task tool the agent calls to finish a task.
    Sidecar("complete-task"),
)


def build_mcp_servers(
    env: DeploymentEnvironment,
    sidecars: Tuple[Sidecar, ...] = SIDECARS,
    tools_root: Optional[Path] = None,
) -> Dict[str, dict]:
    """Build the runtime's ``mcp`` section, one local server per sidecar."""
    tools_root = Path(tools_root) if tools_root else env.tools_root
    interpreter = resolve_interpreter(tools_root, env)

    servers: Dict[str, dict] = {}
    for sidecar in sidecars:
        entry = {
            "type": "local",
            "command": resolve_server_command(
                interpreter,
                tools_root,
                sidecar.name,
                sidecar.source_rel_path,
                sidecar.compiled_rel_path,
                env,
            ),
            "enabled": True,
            "timeout": sidecar.timeout_ms,
        }
        if sidecar.environment:
            entry["environment"] = dict(sidecar.environment)
        servers[sidecar.name] = entry
    return servers
