"""
Pinot operator control-plane primitives.

Registries, the per-key guard and the Pinot controller gateway are exported
here. The engine and its loops live in their own modules
(``control_plane.engine``, ``.watch``, ``.scheduler``).
"""

from .gateway_client import ExternalClusterGateway, PinotControllerClient
from .registry import ManagedRegistry
from .single_flight import KeyBusy, SingleFlight

__all__ = [
    "ExternalClusterGateway",
    "KeyBusy",
    "ManagedRegistry",
    "PinotControllerClient",
    "SingleFlight",
]
