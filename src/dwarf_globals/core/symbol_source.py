"""Static and global variable extraction from ELF/DWARF binaries."""

from bisect import bisect_right
from collections.abc import Iterator
from functools import partial
from pathlib import Path
from typing import Any, BinaryIO

from elftools.common.exceptions import DWARFError, ELFError
from elftools.dwarf.compileunit import CompileUnit
from elftools.dwarf.die import DIE
from elftools.dwarf.dwarf_expr import DWARFExprParser
from elftools.dwarf.dwarfinfo import DWARFInfo
from elftools.elf.constants import SH_FLAGS
from elftools.elf.elffile import ELFFile

from ..domain.models.symbols import SectionLookup, SymbolRecord
from ..domain.services.parsing import TypeSizeResolver, parse_static_address
from ..infrastructure.logging import ProgressTracker, get_logger, log_timing
from .errors import LoadFailed, NoSymbols, SourceUnavailable

logger = get_logger(__name__)

# Attributes linking an out-of-line definition to the DIE holding name and type
ORIGIN_ATTRIBUTES = ("DW_AT_specification", "DW_AT_abstract_origin")


class SectionTable:
    """Maps addresses to the allocated ELF section containing them."""

    def __init__(self, sections: list[tuple[int, int, int]]):
        """
        Args:
            sections: (index, start address, size) of every allocated section
        """
        self._sections = sorted(sections, key=lambda s: s[1])
        self._starts = [start for _, start, _ in self._sections]

    @classmethod
    def from_elf(cls, elf_file: ELFFile) -> "SectionTable":
        """Collect allocated, non-empty, non-TLS sections from the section headers."""
        sections = []
        for index, section in enumerate(elf_file.iter_sections()):
            flags = section["sh_flags"]
            if not flags & SH_FLAGS.SHF_ALLOC or flags & SH_FLAGS.SHF_TLS:
                continue
            if section["sh_size"] == 0:
                continue
            sections.append((index, section["sh_addr"], section["sh_size"]))
        return cls(sections)

    def locate(self, address: int) -> tuple[int, int] | None:
        """Return (section index, offset in section) for an address, if any."""
        pos = bisect_right(self._starts, address) - 1
        if pos < 0:
            return None
        index, start, size = self._sections[pos]
        if address >= start + size:
            return None
        return index, address - start

    def __len__(self) -> int:
        return len(self._sections)


class DwarfSymbolSource:
    """Produces SymbolRecords for every static-storage variable in a binary.

    Use as a context manager; the file stays open for the lifetime of the
    ``with`` block::

        with DwarfSymbolSource(Path("chrome.debug")) as source:
            symbols = source.load_symbols()
    """

    def __init__(self, elf_path: Path, type_cache_size: int = 5000):
        """
        Args:
            elf_path: Path to the ELF file carrying DWARF info
            type_cache_size: Number of resolved type sizes kept in memory
        """
        self.elf_path = elf_path
        self.elf_file: ELFFile | None = None
        self.dwarf_info: DWARFInfo | None = None
        self.sections: SectionTable | None = None
        self.type_sizes = TypeSizeResolver(type_cache_size)
        self.progress = ProgressTracker(logger)
        self._file_handle: BinaryIO | None = None

    @property
    def display_name(self) -> str:
        """Name of the binary as written in the report."""
        return str(self.elf_path)

    def __enter__(self) -> "DwarfSymbolSource":
        """Open the ELF file and load its DWARF info.

        Raises:
            SourceUnavailable: File missing, not a regular file, or unreadable
            LoadFailed: Not an ELF file, or no usable DWARF info
        """
        if not self.elf_path.exists():
            raise SourceUnavailable(self.elf_path, "ELF file not found")
        if not self.elf_path.is_file():
            raise SourceUnavailable(self.elf_path, "Not a file")

        logger.debug(f"Opening ELF file: {self.elf_path}")
        try:
            self._file_handle = open(self.elf_path, "rb")
        except OSError as e:
            raise SourceUnavailable(self.elf_path, f"Cannot open ELF file ({e.strerror})") from e

        try:
            self._load(self._file_handle)
        except BaseException:
            self.close()
            raise
        return self

    def __exit__(
        self, exc_type: type | None, exc_val: Exception | None, exc_tb: object | None
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the ELF file handle."""
        if self._file_handle is not None:
            self._file_handle.close()
            self._file_handle = None
            logger.debug("ELF file closed")

    def _load(self, handle: BinaryIO) -> None:
        try:
            self.elf_file = ELFFile(handle)  # type: ignore[no-untyped-call]
        except (ELFError, OSError) as e:
            raise LoadFailed(self.elf_path, f"Not a valid ELF file ({e})") from e

        try:
            has_dwarf = self.elf_file.has_dwarf_info()  # type: ignore[no-untyped-call]
            if has_dwarf:
                self.dwarf_info = self.elf_file.get_dwarf_info()  # type: ignore[no-untyped-call]
        except (ELFError, DWARFError) as e:
            raise LoadFailed(self.elf_path, f"Failed to load DWARF info ({e})") from e
        if not has_dwarf:
            raise LoadFailed(self.elf_path, "No DWARF info found")

        try:
            self.sections = SectionTable.from_elf(self.elf_file)
            logger.debug(f"Indexed {len(self.sections)} allocated sections")
        except Exception as e:
            # Every record will report QUERY_FAILED for its section
            logger.warning(f"Could not read section headers: {e}")
            self.sections = None

        logger.info(
            f"DWARF info loaded from {self.elf_path} "
            f"({self.elf_file.get_machine_arch()})"  # type: ignore[no-untyped-call]
        )

    @log_timing
    def load_symbols(self) -> list[SymbolRecord]:
        """Extract every static/global variable record.

        Raises:
            LoadFailed: The DWARF data could not be walked
            NoSymbols: No static or global variable was found
        """
        try:
            with self.progress.track_operation("symbol walk"):
                symbols = list(self.iter_symbols())
        except (ELFError, DWARFError) as e:
            raise LoadFailed(self.elf_path, f"Failed to read DWARF info ({e})") from e

        self.progress.report_summary()
        if not symbols:
            raise NoSymbols(self.elf_path, "No static or global variables found")
        return symbols

    def iter_symbols(self) -> Iterator[SymbolRecord]:
        """Yield records CU by CU.

        A variable whose attributes cannot be read is logged and skipped; a CU
        whose DIEs cannot be read at all is logged and skipped from that point.
        """
        dwarf_info = self.dwarf_info
        if dwarf_info is None:
            raise RuntimeError("DWARF info not loaded. Use DwarfSymbolSource as a context manager.")

        self.progress.reset()
        for cu in dwarf_info.iter_CUs():
            try:
                with self.progress.track_cu(cu):
                    yield from self._iter_cu_symbols(dwarf_info, cu)
            except (ELFError, DWARFError, KeyError, ValueError) as e:
                logger.warning(f"Skipping rest of CU at 0x{cu.cu_offset:x}: {e}")

    def _iter_cu_symbols(self, dwarf_info: DWARFInfo, cu: CompileUnit) -> Iterator[SymbolRecord]:
        expr_parser = DWARFExprParser(cu.structs)
        resolve_index = partial(dwarf_info.get_addr, cu)

        for die in cu.iter_DIEs():
            self.progress.count_die()
            if die.tag != "DW_TAG_variable":
                continue

            try:
                address = parse_static_address(
                    die.attributes.get("DW_AT_location"), expr_parser, resolve_index
                )
                record = None if address is None else self._make_record(die, address)
            except (ELFError, DWARFError, KeyError, ValueError) as e:
                logger.warning(f"Skipping variable at 0x{die.offset:x}: {e}")
                self.progress.count_skipped()
                continue

            if address is None:
                continue
            if record is None:
                self.progress.count_skipped()
                continue

            self.progress.count_symbol()
            yield record

    def _make_record(self, die: DIE, address: int) -> SymbolRecord | None:
        """Build a record for a static variable DIE, or None if it must be skipped."""
        origin = _origin_die(die)

        name = _die_name(die) or (_die_name(origin) if origin is not None else None)
        if not name:
            logger.debug(f"Static variable without a name at 0x{die.offset:x}")
            return None

        type_die = _type_die(die)
        if type_die is None and origin is not None:
            type_die = _type_die(origin)
        if type_die is None:
            logger.warning(f"Could not get type of '{name}' at 0x{die.offset:x}")
            return None

        size = self.type_sizes.size_of(type_die)

        if self.sections is None:
            return SymbolRecord(
                name=name, size=size, section_lookup=SectionLookup.QUERY_FAILED
            )

        located = self.sections.locate(address)
        if located is None:
            logger.debug(f"'{name}' at 0x{address:x} lies outside every allocated section")
            return SymbolRecord(name=name, size=size, section_lookup=SectionLookup.ABSENT)

        section, offset = located
        return SymbolRecord(name=name, size=size, section=section, offset=offset)


def _decode(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _die_name(die: DIE) -> str | None:
    attr = die.attributes.get("DW_AT_name")
    return _decode(attr.value) if attr is not None else None


def _type_die(die: DIE) -> DIE | None:
    if "DW_AT_type" not in die.attributes:
        return None
    return die.get_DIE_from_attribute("DW_AT_type")


def _origin_die(die: DIE) -> DIE | None:
    """Follow DW_AT_specification / DW_AT_abstract_origin to the declaring DIE."""
    for attr_name in ORIGIN_ATTRIBUTES:
        if attr_name in die.attributes:
            return die.get_DIE_from_attribute(attr_name)
    return None
