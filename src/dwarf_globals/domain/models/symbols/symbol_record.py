#!/usr/bin/env python3

"""Symbol record model for static and global variables."""

from dataclasses import dataclass
from enum import Enum

# Out-of-band section values written to the report when no section index is
# known. Both lie above any real ELF section index (SHN_LORESERVE is 0xff00).
SECTION_QUERY_FAILED_SENTINEL = 0xFFFFFFFF
SECTION_ABSENT_SENTINEL = 0xFFFFFFFE


class SectionLookup(Enum):
    """Why a symbol record carries no section index."""

    QUERY_FAILED = "query_failed"  # section headers could not be read
    ABSENT = "absent"  # address lies outside every allocated section

    @property
    def sentinel(self) -> int:
        """Report value standing in for the missing section index."""
        if self is SectionLookup.QUERY_FAILED:
            return SECTION_QUERY_FAILED_SENTINEL
        return SECTION_ABSENT_SENTINEL


@dataclass(frozen=True)
class SymbolRecord:
    """One static or global variable observed in the binary's debug info."""

    name: str
    size: int = 0
    """Byte size of the variable's type; 0 means unknown or zero-length."""
    section: int | None = None
    offset: int = 0
    """Byte offset of the variable within its section."""
    section_lookup: SectionLookup | None = None
    """Set only when ``section`` is None."""

    def __post_init__(self) -> None:
        if self.section is None and self.section_lookup is None:
            object.__setattr__(self, "section_lookup", SectionLookup.ABSENT)
        elif self.section is not None and self.section_lookup is not None:
            raise ValueError(
                f"Symbol {self.name!r} has section {self.section} and "
                f"lookup failure {self.section_lookup}"
            )

    @property
    def has_section(self) -> bool:
        """True when the section index was resolved."""
        return self.section is not None

    @property
    def section_value(self) -> int:
        """Section index, or the sentinel for its absence reason."""
        if self.section is not None:
            return self.section
        return (self.section_lookup or SectionLookup.ABSENT).sentinel
