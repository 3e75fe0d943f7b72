# -*- coding: utf-8 -*-
from .config_writer import (
    AUTH_SYNCED_PROVIDERS,
    BASE_PROVIDERS,
    PERMISSIONS,
    build_runtime_config,
    get_runtime_auth_path,
    get_runtime_config_path,
    sync_runtime_auth,
    write_runtime_config,
)

__all__ = [
    "AUTH_SYNCED_PROVIDERS",
    "BASE_PROVIDERS",
    "PERMISSIONS",
    "build_runtime_config",
    "get_runtime_auth_path",
    "get_runtime_config_path",
    "sync_runtime_auth",
    "write_runtime_config",
]
