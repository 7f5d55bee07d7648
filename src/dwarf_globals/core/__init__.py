"""Core module initialization."""

from .errors import LoadFailed, NoSymbols, SourceUnavailable, SymbolSourceError
from .symbol_source import DwarfSymbolSource, SectionTable

__all__ = [
    "DwarfSymbolSource",
    "LoadFailed",
    "NoSymbols",
    "SectionTable",
    "SourceUnavailable",
    "SymbolSourceError",
]
