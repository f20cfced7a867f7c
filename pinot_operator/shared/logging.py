"""
Pinot Operator - Shared Logging Configuration

Centralized logging setup for the engine, the watches and the status API.
"""

import logging
from pathlib import Path

from .settings import LOG_DIR


# =============================================================================
# Log Format
# =============================================================================
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def configure_file_logging(
    logger: logging.Logger,
    filename: str,
    max_bytes: int = 10_000_000,  # 10MB
    backup_count: int = 5,
) -> None:
    """
    Add rotating file logging to a logger.

    Args:
        logger: Logger to configure
        filename: Name of the log file (created inside LOG_DIR)
        max_bytes: Maximum file size before rotation
        backup_count: Number of rotated files to keep
    """
    log_path = Path(LOG_DIR)
    log_path.mkdir(parents=True, exist_ok=True)

    from logging.handlers import RotatingFileHandler

    file_handler = RotatingFileHandler(
        log_path / filename,
        maxBytes=max_bytes,
        backupCount=backup_count,
    )
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)


# =============================================================================
# Component Loggers
# =============================================================================
OPERATOR_LOGGER = "pinot_operator"
API_LOGGER = "pinot_operator.api"


# =============================================================================
# Banner
# =============================================================================
def get_banner(api_port: int = 8080, dry_run: bool = False) -> str:
    """Generate the startup banner."""
    mode = "dry-run (in-memory workloads)" if dry_run else "live"
    return f"""
  Pinot Operator
  Status API : 0.0.0.0:{api_port}
  Workloads  : {mode}
"""
