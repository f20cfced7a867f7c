"""
Pinot Operator - Kubernetes control plane for Apache Pinot.

Watches Pinot, PinotSchema, PinotTable and PinotTenant custom resources and
reconciles them against the cluster and the Pinot controller API.
"""

__version__ = "0.1.0"

from pinot_operator.resources.models import ManagedResource, ResourceKind
from pinot_operator.shared.errors import (
    ConfigurationError,
    OperatorError,
    StatusWriteConflict,
    TransientGatewayError,
    WatchDisruption,
)

__all__ = [
    "ConfigurationError",
    "ManagedResource",
    "OperatorError",
    "ResourceKind",
    "StatusWriteConflict",
    "TransientGatewayError",
    "WatchDisruption",
]
