#!/usr/bin/env python3

"""Tab-separated report output."""

from .report_emitter import HEADER, ReportEmitter

__all__ = [
    "HEADER",
    "ReportEmitter",
]
