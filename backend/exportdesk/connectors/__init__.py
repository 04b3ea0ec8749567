"""
Connectors - authority mirror and shipment directory integrations

This module provides the port interfaces the compliance core depends on,
their adapters, and the registry used to select a mirror at startup.
"""

from .ports import (
    AuthorityMirrorPort,
    ShipmentDirectoryPort,
    StatusPush,
    MirrorError,
    ShipmentNotFoundError,
)
from .registry import MirrorRegistry
from .dispatcher import MirrorDispatcher
from .shipments import InMemoryShipmentDirectory
from .implementations import InMemoryAuthorityMirror, LoggingAuthorityMirror

__all__ = [
    "AuthorityMirrorPort",
    "ShipmentDirectoryPort",
    "StatusPush",
    "MirrorError",
    "ShipmentNotFoundError",
    "MirrorRegistry",
    "MirrorDispatcher",
    "InMemoryShipmentDirectory",
    "InMemoryAuthorityMirror",
    "LoggingAuthorityMirror",
]
