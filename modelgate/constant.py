# -*- coding: utf-8 -*-
import os
from pathlib import Path

WORKING_DIR = (
    Path(os.environ.get("MODELGATE_WORKING_DIR", "~/.modelgate"))
    .expanduser()
    .resolve()
)

SETTINGS_FILE = os.environ.get(
    "MODELGATE_SETTINGS_FILE",
    "provider_settings.json",
)

RUNTIME_CONFIG_DIR = WORKING_DIR / "runtime"
RUNTIME_CONFIG_FILE = "opencode.json"
RUNTIME_CONFIG_SCHEMA = "https://opencode.ai/config.json"

# Credentials file the runtime reads for providers it configures itself.
# Unset means the runtime's per-user default location.
RUNTIME_AUTH_FILE = os.environ.get("MODELGATE_RUNTIME_AUTH_FILE", "")

# Env key for log level (used by CLI and app).
LOG_LEVEL_ENV = "MODELGATE_LOG_LEVEL"

# Validation requests give up after this many milliseconds.
DEFAULT_VALIDATION_TIMEOUT_MS = 15000

# ---------------------------------------------------------------------------
# Deployment state. MODELGATE_BUNDLED_MCP=1 forces the packaged sidecar path
# even in a development checkout.
# ---------------------------------------------------------------------------
PACKAGED_ENV = "MODELGATE_PACKAGED"
BUNDLED_MCP_ENV = "MODELGATE_BUNDLED_MCP"
RESOURCES_PATH_ENV = "MODELGATE_RESOURCES_PATH"
APP_PATH_ENV = "MODELGATE_APP_PATH"
BUNDLED_NODE_ENV = "MODELGATE_BUNDLED_NODE"

MCP_TOOLS_DIRNAME = "mcp-tools"
SIDECAR_TIMEOUT_MS = 30000

PERMISSION_API_PORT = int(os.environ.get("PERMISSION_API_PORT", "9226"))
QUESTION_API_PORT = int(os.environ.get("QUESTION_API_PORT", "9227"))

# When True, expose /docs, /redoc, /openapi.json
# (dev only; keep False in prod).
DOCS_ENABLED = os.environ.get("MODELGATE_OPENAPI_DOCS", "false").lower() in (
    "true",
    "1",
    "yes",
)
