#!/usr/bin/env python3

"""Ranking of the largest global variables."""

from collections.abc import Iterable
from itertools import takewhile

from ....infrastructure.logging import get_logger
from ...models.symbols import BIG_SIZE_THRESHOLD, SymbolRecord

logger = get_logger(__name__)


def size_name_key(symbol: SymbolRecord) -> tuple[int, str, int, int]:
    """Sort key ordering by size, then name.

    Section and offset only make the order of otherwise identical records
    independent of input order.
    """
    return (symbol.size, symbol.name, symbol.section_value, symbol.offset)


def rank_large(
    symbols: Iterable[SymbolRecord],
    big_size_threshold: int = BIG_SIZE_THRESHOLD,
) -> list[SymbolRecord]:
    """List every symbol at least ``big_size_threshold`` bytes, largest first.

    Args:
        symbols: Every symbol record of one binary, in any order
        big_size_threshold: Minimum size (inclusive) for a symbol to be listed

    Returns:
        Large symbols sorted by descending size. Equal sizes come out in
        descending name order.
    """
    ordered = sorted(symbols, key=size_name_key, reverse=True)
    large = list(takewhile(lambda s: s.size >= big_size_threshold, ordered))

    logger.debug(
        f"{len(large)} of {len(ordered)} symbols are at least {big_size_threshold} bytes"
    )
    return large
