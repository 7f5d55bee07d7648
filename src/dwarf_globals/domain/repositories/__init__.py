#!/usr/bin/env python3

"""Repositories for DWARF-derived data."""

from . import cache

__all__ = [
    "cache",
]
