"""
Pinot Operator - Shared Error Definitions

Exceptions raised by the reconciliation engine. Each one maps to a
status reason written back onto the managed resource.
"""


class OperatorError(Exception):
    """Base exception for all operator errors."""

    reason = "OperatorError"


# =============================================================================
# Desired-State Errors
# =============================================================================
class ConfigurationError(OperatorError):
    """Raised when a declared resource is malformed or references something missing."""

    reason = "ConfigurationError"


class UnresolvedReferenceError(ConfigurationError):
    """Raised when a node refers to a catalog entry that does not exist."""

    def __init__(self, node_name: str, catalog: str, ref: str):
        self.node_name = node_name
        self.catalog = catalog
        self.ref = ref
        super().__init__(f"Node {node_name} references unknown {catalog} entry: {ref!r}")


# =============================================================================
# External System Errors
# =============================================================================
class TransientGatewayError(OperatorError):
    """Raised when the Pinot controller cannot be reached."""

    reason = "GatewayUnavailable"


class ApplyTimeoutError(TransientGatewayError):
    """Raised when a single apply exceeds its time budget."""

    reason = "ApplyTimeout"

    def __init__(self, key: str, timeout_seconds: float):
        self.key = key
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Apply for {key} exceeded {timeout_seconds:.0f}s")


class BackendError(OperatorError):
    """Raised when the orchestration platform rejects a workload operation."""

    reason = "BackendError"

    def __init__(self, operation: str, name: str, detail: str = ""):
        self.operation = operation
        self.name = name
        message = f"{operation} {name} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


# =============================================================================
# Watch / Status Errors
# =============================================================================
class WatchDisruption(OperatorError):
    """Raised when a change subscription closes or fails."""

    reason = "WatchDisruption"


class StatusWriteConflict(OperatorError):
    """Raised when a status write loses a resource-version race."""

    reason = "StatusWriteConflict"

    def __init__(self, key: str, resource_version: str | None = None):
        self.key = key
        self.resource_version = resource_version
        super().__init__(f"Status write for {key} conflicted (resourceVersion={resource_version})")
