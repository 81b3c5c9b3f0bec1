"""Adapters — installer backends and the process runner.

Public re-exports for convenient access.
"""

from envboot.adapters.base import Backend
from envboot.adapters.mock import MockBackend
from envboot.adapters.registry import BackendRegistry, build_registry

__all__ = [
    "Backend",
    "BackendRegistry",
    "MockBackend",
    "build_registry",
]
