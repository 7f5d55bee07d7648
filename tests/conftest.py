"""Pytest configuration and shared fixtures."""

import sys
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from dwarf_globals.domain.models.symbols import SectionLookup, SymbolRecord
from dwarf_globals.infrastructure.logging import LoggerSetup

CONFIG_ENV_VARS = (
    "ELF_FILE_PATH",
    "OUTPUT_FILE",
    "SHOW_FOLDED_CONSTANTS",
    "VERBOSE",
    "LOG_DIR",
    "WASTAGE_THRESHOLD",
    "BIG_SIZE_THRESHOLD",
    "TYPE_CACHE_SIZE",
)


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """
    Run from an empty directory with no configuration variables set.

    Variables are set then deleted so monkeypatch restores the original state
    even when load_dotenv() writes them during the test.
    """
    for name in CONFIG_ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def reset_logging() -> Generator[None, None, None]:
    """Undo LoggerSetup.initialize() after a test that runs the CLI."""
    LoggerSetup.reset()
    yield
    LoggerSetup.reset()


@pytest.fixture
def make_symbol() -> Callable[..., SymbolRecord]:
    """
    Factory for SymbolRecords with a resolved section.

    Usage: make_symbol("kTable", 64, offset=0x10)
    """

    def factory(
        name: str,
        size: int,
        offset: int = 0,
        section: int | None = 1,
        section_lookup: SectionLookup | None = None,
    ) -> SymbolRecord:
        if section_lookup is not None:
            section = None
        return SymbolRecord(
            name=name,
            size=size,
            section=section,
            offset=offset,
            section_lookup=section_lookup,
        )

    return factory


@pytest.fixture
def mixed_symbols(make_symbol: Callable[..., SymbolRecord]) -> list[SymbolRecord]:
    """
    A realistic mix: header constants duplicated across TUs, one folded copy,
    a few large tables and some small singletons.
    """
    return [
        make_symbol("kSqrtTwo", 8, offset=0x100),
        make_symbol("kUnitMatrix", 64, offset=0x200),
        make_symbol("kUnitMatrix", 64, offset=0x240),
        make_symbol("kUnitMatrix", 64, offset=0x280),
        make_symbol("kUnitMatrix", 64, offset=0x200),
        make_symbol("kCrcTable", 1024, offset=0x1000),
        make_symbol("kCrcTable", 1024, offset=0x1400),
        make_symbol("g_buffer", 4096, offset=0x0, section=24),
        make_symbol("kNames", 512, offset=0x3000),
        make_symbol("kNames", 256, offset=0x3200),
        make_symbol("g_counter", 4, offset=0x10, section=24),
    ]
