#!/usr/bin/env python3

"""Cache implementations for DWARF data."""

from .lru_cache import LRUCache

__all__ = [
    "LRUCache",
]
