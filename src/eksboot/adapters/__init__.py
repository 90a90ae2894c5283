"""Adapter implementations for external services."""

from eksboot.adapters.cloudformation_adapter import StackCollection

__all__ = [
    "StackCollection",
]
