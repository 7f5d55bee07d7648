#!/usr/bin/env python3

"""Combined output of a globals analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .duplicate_group import DuplicateGroup
    from .symbol_record import SymbolRecord


@dataclass(frozen=True)
class AnalysisResult:
    """Duplicate groups ranked by waste and symbols ranked by size."""

    duplicate_groups: list[DuplicateGroup] = field(default_factory=list)
    large_symbols: list[SymbolRecord] = field(default_factory=list)

    @property
    def total_bytes_wasted(self) -> int:
        """Sum of wasted bytes over every reported duplicate group."""
        return sum(group.bytes_wasted for group in self.duplicate_groups)
