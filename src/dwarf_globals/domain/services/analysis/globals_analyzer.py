#!/usr/bin/env python3

"""Analysis facade running both report passes over one symbol snapshot."""

from collections.abc import Iterable

from ....infrastructure.logging import get_logger, log_timing
from ...models.symbols import (
    BIG_SIZE_THRESHOLD,
    WASTAGE_THRESHOLD,
    AnalysisResult,
    SymbolRecord,
)
from .duplicate_detector import detect_duplicates
from .size_ranker import rank_large

logger = get_logger(__name__)


@log_timing
def analyze(
    symbols: Iterable[SymbolRecord],
    show_folded_constants: bool = False,
    wastage_threshold: int = WASTAGE_THRESHOLD,
    big_size_threshold: int = BIG_SIZE_THRESHOLD,
) -> AnalysisResult:
    """Run duplicate detection and size ranking over the same symbols.

    Args:
        symbols: Every symbol record of one binary
        show_folded_constants: Count linker-folded copies as waste
        wastage_threshold: Minimum waste (exclusive) for a duplicate group
        big_size_threshold: Minimum size (inclusive) for a large symbol

    Returns:
        AnalysisResult holding both ranked lists
    """
    snapshot = tuple(symbols)

    result = AnalysisResult(
        duplicate_groups=detect_duplicates(
            snapshot,
            show_folded_constants=show_folded_constants,
            wastage_threshold=wastage_threshold,
        ),
        large_symbols=rank_large(snapshot, big_size_threshold=big_size_threshold),
    )

    logger.info(
        f"Analyzed {len(snapshot)} symbols: {len(result.duplicate_groups)} duplicate "
        f"groups wasting {result.total_bytes_wasted} bytes, "
        f"{len(result.large_symbols)} large symbols"
    )
    return result
