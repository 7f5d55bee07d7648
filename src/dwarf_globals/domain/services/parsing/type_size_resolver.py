#!/usr/bin/env python3

"""Byte size resolution for DWARF types.

A variable DIE carries no size of its own; the size comes from its type:

    Variable DIE (kTable) → DW_AT_type → Const DIE → DW_AT_type →
    Array DIE → DW_AT_type → Base DIE (int, byte_size 4)
               └─ Subrange DIE (DW_AT_count 64)          ← 256 bytes

Qualifiers and typedefs are transparent, arrays multiply their element size by
every dimension, and anything that cannot be resolved yields 0 ("unknown").
"""

from elftools.dwarf.die import DIE

from ....infrastructure.logging import get_logger
from ...repositories.cache import LRUCache

logger = get_logger(__name__)

# Tags that wrap another type without changing its size
TRANSPARENT_TAGS = frozenset(
    {
        "DW_TAG_typedef",
        "DW_TAG_const_type",
        "DW_TAG_volatile_type",
        "DW_TAG_restrict_type",
        "DW_TAG_atomic_type",
        "DW_TAG_immutable_type",
        "DW_TAG_shared_type",
    }
)

# Tags whose size defaults to the CU address size when DW_AT_byte_size is missing
ADDRESS_SIZED_TAGS = frozenset(
    {
        "DW_TAG_pointer_type",
        "DW_TAG_reference_type",
        "DW_TAG_rvalue_reference_type",
    }
)

DIMENSION_TAGS = frozenset({"DW_TAG_subrange_type"})

# GCC writes the upper bound of zero-length and flexible arrays as -1 in an
# unsigned fixed-size form, which pyelftools reads back as all ones
ALL_ONES_BOUNDS = {"DW_FORM_data4": 0xFFFFFFFF, "DW_FORM_data8": 0xFFFFFFFFFFFFFFFF}


class TypeSizeResolver:
    """Resolves and memoises type sizes by DIE offset."""

    # Maximum traversal depth to prevent runaway recursion
    MAX_CHAIN_DEPTH = 20

    def __init__(self, cache_size: int = 5000):
        """Initialize resolver.

        Args:
            cache_size: Maximum number of type sizes kept in memory
        """
        self.cache: LRUCache[int, int] = LRUCache(cache_size)

    def size_of(self, type_die: DIE | None) -> int:
        """Return the byte size of a type DIE, or 0 if it cannot be determined."""
        if type_die is None:
            return 0
        return self.cache.get_or_compute(
            type_die.offset, lambda: self._resolve(type_die, depth=0, visiting=set())
        )

    def _resolve(self, die: DIE, depth: int, visiting: set[int]) -> int:
        if depth >= self.MAX_CHAIN_DEPTH:
            logger.warning(
                f"Max type chain depth {self.MAX_CHAIN_DEPTH} reached at 0x{die.offset:x}"
            )
            return 0
        if die.offset in visiting:
            logger.warning(f"Circular type reference detected at offset 0x{die.offset:x}")
            return 0
        visiting.add(die.offset)

        byte_size = _int_attribute(die, "DW_AT_byte_size")
        if byte_size is not None:
            return max(byte_size, 0)

        if die.tag in TRANSPARENT_TAGS:
            target = _type_target(die)
            return self._resolve(target, depth + 1, visiting) if target is not None else 0

        if die.tag == "DW_TAG_array_type":
            return self._array_size(die, depth, visiting)

        if die.tag in ADDRESS_SIZED_TAGS:
            return int(die.cu["address_size"])

        logger.debug(f"No size for {die.tag} at 0x{die.offset:x}")
        return 0

    def _array_size(self, die: DIE, depth: int, visiting: set[int]) -> int:
        stride = _int_attribute(die, "DW_AT_byte_stride")
        if stride is None:
            element = _type_target(die)
            if element is None:
                return 0
            stride = self._resolve(element, depth + 1, visiting)

        count = 1
        dimensions = 0
        for child in die.iter_children():
            if child.tag not in DIMENSION_TAGS:
                continue
            dimensions += 1
            extent = _dimension_extent(child)
            if extent is None:
                logger.debug(f"Array at 0x{die.offset:x} has a dimension of unknown extent")
                return 0
            count *= extent

        if dimensions == 0:
            # Declaration of unknown bound, e.g. `extern int table[];`
            return 0
        return stride * count


def _type_target(die: DIE) -> DIE | None:
    if "DW_AT_type" not in die.attributes:
        return None
    return die.get_DIE_from_attribute("DW_AT_type")


def _int_attribute(die: DIE, name: str) -> int | None:
    """Return a constant integer attribute, ignoring references and expressions."""
    attr = die.attributes.get(name)
    if attr is None or attr.form.startswith("DW_FORM_ref") or attr.form == "DW_FORM_exprloc":
        return None
    if isinstance(attr.value, bool) or not isinstance(attr.value, int):
        return None
    return attr.value


def _dimension_extent(dimension: DIE) -> int | None:
    """Number of elements along one array dimension."""
    count = _int_attribute(dimension, "DW_AT_count")
    if count is not None:
        return max(count, 0)

    upper = _int_attribute(dimension, "DW_AT_upper_bound")
    if upper is None:
        return None
    if ALL_ONES_BOUNDS.get(dimension.attributes["DW_AT_upper_bound"].form) == upper:
        return 0
    lower = _int_attribute(dimension, "DW_AT_lower_bound") or 0
    return max(upper - lower + 1, 0)
