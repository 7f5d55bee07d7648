#!/usr/bin/env python3

"""Detection of duplicated global variables.

Constants defined in a header, such as::

    const double sqrt_two = sqrt(2.0);

get one copy per translation unit that includes the header, because ``const``
implies internal linkage. Each copy shows up in the debug info as a separate
variable with the same name and size.

The linker sometimes coalesces identical constants onto one address, leaving
several debug entries that point at the same storage. Those copies cost
nothing, so by default they are not counted as waste.
"""

from collections.abc import Iterable

from ....infrastructure.logging import get_logger
from ...models.symbols import WASTAGE_THRESHOLD, DuplicateGroup, SymbolRecord

logger = get_logger(__name__)


def name_size_key(symbol: SymbolRecord) -> tuple[str, int]:
    """Sort key placing symbols with equal (name, size) next to each other.

    Size breaks ties because names lack namespace qualification, so two
    unrelated variables can share a name with different sizes.
    """
    return (symbol.name, symbol.size)


def _group_from_run(
    run: list[SymbolRecord], show_folded_constants: bool
) -> DuplicateGroup:
    """Build the duplicate group for a run of two or more equal symbols."""
    first = run[0]
    matching_offsets = sum(
        1 for symbol in run if first.offset != 0 and symbol.offset == first.offset
    )

    # Counts of *excess* instances, so the first symbol is taken off both.
    # folding_count ends up -1 when the first offset is zero.
    repeat_count = len(run) - 1
    folding_count = matching_offsets - 1
    excess_count = repeat_count if show_folded_constants else repeat_count - folding_count

    return DuplicateGroup(
        name=first.name,
        size=first.size,
        repeat_count=repeat_count,
        folding_count=folding_count,
        bytes_wasted=excess_count * first.size,
    )


def detect_duplicates(
    symbols: Iterable[SymbolRecord],
    show_folded_constants: bool = False,
    wastage_threshold: int = WASTAGE_THRESHOLD,
) -> list[DuplicateGroup]:
    """Find groups of symbols sharing name and size that waste space.

    Args:
        symbols: Every symbol record of one binary, in any order
        show_folded_constants: Count linker-folded copies as waste too
        wastage_threshold: Groups must waste strictly more bytes than this

    Returns:
        Duplicate groups, worst offenders first. Ties are ordered by name
        then size.
    """
    ordered = sorted(symbols, key=name_size_key)
    groups: list[DuplicateGroup] = []
    candidate_runs = 0

    start = 0
    while start < len(ordered):
        key = name_size_key(ordered[start])
        end = start + 1
        while end < len(ordered) and name_size_key(ordered[end]) == key:
            end += 1

        if end - start > 1:
            candidate_runs += 1
            group = _group_from_run(ordered[start:end], show_folded_constants)
            if group.bytes_wasted > wastage_threshold:
                groups.append(group)

        start = end

    groups.sort(key=lambda g: (-g.bytes_wasted, g.name, g.size))

    logger.debug(
        f"Found {candidate_runs} repeated name/size pairs in {len(ordered)} symbols, "
        f"{len(groups)} above {wastage_threshold} wasted bytes"
    )
    return groups
