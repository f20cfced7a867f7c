"""
Pinot Operator - Shared Settings

Central configuration for the reconciliation engine and its HTTP surface.
Load from environment variables (and a local .env file) with sensible defaults.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


# =============================================================================
# Project Identity
# =============================================================================
PROJECT_NAME: str = "pinot-operator"
VERSION: str = "0.1.0"


# =============================================================================
# Custom Resource Definitions
# =============================================================================
CRD_GROUP: str = "pinot.io"
CRD_VERSION: str = "v1"


# =============================================================================
# Reconciliation Timing
# =============================================================================
# Interval between scheduled reconciliation passes, per kind.
RECONCILE_INTERVAL_SECONDS: float = float(
    os.environ.get("PINOT_OPERATOR_RECONCILE_INTERVAL", "30")
)

# Fixed delay before a dropped watch subscription is re-established.
WATCH_RECONNECT_DELAY_SECONDS: float = float(
    os.environ.get("PINOT_OPERATOR_RECONNECT_DELAY", "5")
)

# Server-side timeout for a single watch request.
WATCH_TIMEOUT_SECONDS: int = int(os.environ.get("PINOT_OPERATOR_WATCH_TIMEOUT", "300"))

# Upper bound on one apply or teardown of a single resource.
APPLY_TIMEOUT_SECONDS: float = float(os.environ.get("PINOT_OPERATOR_APPLY_TIMEOUT", "120"))


# =============================================================================
# Pinot Controller Gateway
# =============================================================================
GATEWAY_CONNECT_TIMEOUT_SECONDS: float = float(
    os.environ.get("PINOT_OPERATOR_GATEWAY_CONNECT_TIMEOUT", "10")
)
GATEWAY_TIMEOUT_SECONDS: float = float(os.environ.get("PINOT_OPERATOR_GATEWAY_TIMEOUT", "30"))


# =============================================================================
# Kubernetes Access
# =============================================================================
KUBECONFIG_PATH: Optional[str] = os.environ.get("PINOT_OPERATOR_KUBECONFIG") or None
IN_CLUSTER: bool = _env_bool("PINOT_OPERATOR_IN_CLUSTER")

# Dry-run keeps workload operations in memory instead of calling the cluster.
DRY_RUN: bool = _env_bool("PINOT_OPERATOR_DRY_RUN")

# Default Pinot image/port used when a workload template omits them.
DEFAULT_PINOT_IMAGE: str = os.environ.get("PINOT_OPERATOR_DEFAULT_IMAGE", "apachepinot/pinot:latest")
DEFAULT_PINOT_PORT: int = int(os.environ.get("PINOT_OPERATOR_DEFAULT_PORT", "8090"))


# =============================================================================
# Status API
# =============================================================================
API_HOST: str = os.environ.get("PINOT_OPERATOR_API_HOST", "0.0.0.0")
API_PORT: int = int(os.environ.get("PINOT_OPERATOR_API_PORT", "8080"))


# =============================================================================
# Logging
# =============================================================================
LOG_LEVEL: str = os.environ.get("PINOT_OPERATOR_LOG_LEVEL", "INFO")
LOG_DIR: Path = Path(os.environ.get("PINOT_OPERATOR_LOG_DIR", "logs"))
