#!/usr/bin/env python3

"""Application layer: report output."""

from .reporting import ReportEmitter

__all__ = [
    "ReportEmitter",
]
