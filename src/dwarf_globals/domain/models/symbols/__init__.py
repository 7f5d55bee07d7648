#!/usr/bin/env python3

"""Symbol and analysis result models."""

from .analysis_constants import BIG_SIZE_THRESHOLD, WASTAGE_THRESHOLD
from .analysis_result import AnalysisResult
from .duplicate_group import DuplicateGroup
from .symbol_record import (
    SECTION_ABSENT_SENTINEL,
    SECTION_QUERY_FAILED_SENTINEL,
    SectionLookup,
    SymbolRecord,
)

__all__ = [
    "AnalysisResult",
    "BIG_SIZE_THRESHOLD",
    "DuplicateGroup",
    "SECTION_ABSENT_SENTINEL",
    "SECTION_QUERY_FAILED_SENTINEL",
    "SectionLookup",
    "SymbolRecord",
    "WASTAGE_THRESHOLD",
]
