from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "y", "on")


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except Exception:
        return default


def _env_str(name: str, default: str) -> str:
    return (os.getenv(name, "") or "").strip() or default


def _split_csv(raw: str) -> List[str]:
    return [x.strip() for x in (raw or "").split(",") if x.strip()]


@dataclass(frozen=True)
class ServiceConfig:
    # HTTP server
    http_host: str = "0.0.0.0"
    http_port: int = 5000

    # Signup: real namespace provisioning vs. the static "always signed up" backend
    ns_provision: bool = False
    admin_cluster_role: str = "konflux-admin-user-actions"

    # Number of candidate namespaces evaluated in parallel per request
    access_check_concurrency: int = 8

    log_level: str = "INFO"


@lru_cache(maxsize=1)
def load_service_config() -> ServiceConfig:
    """
    Load service configuration from env (ConfigMap friendly).

    Recognized vars:
    - WM_HTTP_HOST=0.0.0.0
    - WM_HTTP_PORT=5000
    - WM_NS_PROVISION=true
    - WM_ADMIN_CLUSTER_ROLE=konflux-admin-user-actions
    - WM_ACCESS_CHECK_CONCURRENCY=8
    - LOG_LEVEL=info
    """
    return ServiceConfig(
        http_host=_env_str("WM_HTTP_HOST", "0.0.0.0"),
        http_port=_env_int("WM_HTTP_PORT", 5000),
        ns_provision=_env_bool("WM_NS_PROVISION", False),
        admin_cluster_role=_env_str("WM_ADMIN_CLUSTER_ROLE", "konflux-admin-user-actions"),
        access_check_concurrency=max(1, min(_env_int("WM_ACCESS_CHECK_CONCURRENCY", 8), 64)),
        log_level=_env_str("LOG_LEVEL", "info").upper(),
    )
