"""Adapters — bindings to the host's executables, files and processes.

Public re-exports for convenient access.
"""

from system_info.adapters.base import Adapter, ExecutionContext
from system_info.adapters.mock import MockAdapter
from system_info.adapters.registry import AdapterRegistry, default_registry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "default_registry",
]
