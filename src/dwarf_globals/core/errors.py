"""Errors raised while extracting symbols from a binary.

Each one is fatal to a run; the CLI reports it once and exits non-zero.
Problems with an individual variable never raise: the record is degraded or
skipped and the walk continues.
"""

from pathlib import Path


class SymbolSourceError(Exception):
    """Base class for symbol extraction failures."""

    def __init__(self, elf_path: Path, message: str) -> None:
        self.elf_path = elf_path
        super().__init__(f"{message}: {elf_path}")


class SourceUnavailable(SymbolSourceError):
    """The binary cannot be opened at all (missing, not a file, no permission)."""


class LoadFailed(SymbolSourceError):
    """The binary exists but is not a readable ELF file with DWARF info."""


class NoSymbols(SymbolSourceError):
    """The debug info describes no static or global variables."""
