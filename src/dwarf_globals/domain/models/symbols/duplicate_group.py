#!/usr/bin/env python3

"""Duplicate group model."""

from dataclasses import dataclass


@dataclass(frozen=True)
class DuplicateGroup:
    """A run of symbols sharing the same name and size.

    ``folding_count`` is -1 when the group's first symbol sits at offset 0:
    zero offsets never count as linker folding, not even for the first symbol.
    """

    name: str
    size: int
    repeat_count: int
    """Excess instances beyond the first."""
    folding_count: int
    """Excess instances at the first symbol's (non-zero) offset."""
    bytes_wasted: int

    @property
    def instance_count(self) -> int:
        """Total number of symbols in the group."""
        return self.repeat_count + 1
