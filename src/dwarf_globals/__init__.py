"""DWARF globals auditor - duplicate and oversized global variables in ELF binaries."""

from .config import Config
from .core import DwarfSymbolSource
from .domain.services.analysis import analyze
from .main import main

__all__ = ["Config", "DwarfSymbolSource", "analyze", "main"]
