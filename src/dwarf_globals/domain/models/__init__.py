#!/usr/bin/env python3

"""Domain models for the globals auditor."""

from . import symbols

__all__ = [
    "symbols",
]
