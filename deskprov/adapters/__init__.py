"""Adapters — the only code that touches external tools.

Public re-exports for convenient access.
"""

from deskprov.adapters.base import Adapter, ExecutionContext
from deskprov.adapters.mock import MockAdapter
from deskprov.adapters.registry import AdapterRegistry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
]
