#!/usr/bin/env python3

"""Duplicate and size analysis of global variables."""

from .duplicate_detector import detect_duplicates
from .globals_analyzer import analyze
from .size_ranker import rank_large

__all__ = [
    "analyze",
    "detect_duplicates",
    "rank_large",
]
