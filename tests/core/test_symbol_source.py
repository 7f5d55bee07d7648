#!/usr/bin/env python3

"""Tests for ELF/DWARF symbol extraction."""

from pathlib import Path
from unittest.mock import Mock, patch

import pytest
from elftools.common.exceptions import DWARFError, ELFError
from elftools.dwarf.structs import DWARFStructs
from elftools.elf.constants import SH_FLAGS

from dwarf_globals.core import (
    DwarfSymbolSource,
    LoadFailed,
    NoSymbols,
    SectionTable,
    SourceUnavailable,
    SymbolSourceError,
)
from dwarf_globals.domain.models.symbols import SectionLookup, SymbolRecord
from tests.fake_dwarf import base_type, make_attr, make_die, variable

ALLOC = SH_FLAGS.SHF_ALLOC
WRITE = SH_FLAGS.SHF_WRITE
TLS = SH_FLAGS.SHF_TLS


def section(addr: int, size: int, flags: int) -> dict[str, int]:
    return {"sh_addr": addr, "sh_size": size, "sh_flags": flags}


# Section headers in file order; index 0 is the null section
SECTIONS = [
    section(0, 0, 0),
    section(0x1000, 0x1000, ALLOC | SH_FLAGS.SHF_EXECINSTR),  # .text
    section(0x2000, 0x800, ALLOC),  # .rodata
    section(0x3000, 0x100, ALLOC | WRITE | TLS),  # .tbss
    section(0x4000, 0, ALLOC | WRITE),  # empty .bss
    section(0x5000, 0x400, ALLOC | WRITE),  # .data
    section(0, 0x500, 0),  # .debug_info
]


def make_cu(dies: list[Mock], offset: int = 0) -> Mock:
    cu = Mock()
    cu.cu_offset = offset
    cu.structs = DWARFStructs(little_endian=True, dwarf_format=32, address_size=8)
    cu.iter_DIEs.side_effect = lambda: iter(dies)
    return cu


def make_elf(cus: list[Mock] | None = None, has_dwarf: bool = True) -> Mock:
    dwarf_info = Mock()
    dwarf_info.iter_CUs.side_effect = lambda: iter(cus or [])

    elf = Mock()
    elf.has_dwarf_info.return_value = has_dwarf
    elf.get_dwarf_info.return_value = dwarf_info
    elf.iter_sections.side_effect = lambda: iter(SECTIONS)
    elf.get_machine_arch.return_value = "x64"
    return elf


@pytest.fixture
def elf_path(tmp_path: Path) -> Path:
    path = tmp_path / "app.debug"
    path.write_bytes(b"\x7fELF" + b"\x00" * 60)
    return path


@pytest.fixture
def int_type():
    return base_type(0x100, "int", 4)


class TestSectionTable:
    """Address to section mapping."""

    @pytest.mark.unit
    def test_from_elf_keeps_allocated_sections(self) -> None:
        elf = make_elf()
        table = SectionTable.from_elf(elf)

        # .text, .rodata and .data
        assert len(table) == 3
        assert table.locate(0x3010) is None  # TLS
        assert table.locate(0x100) is None  # debug/null

    @pytest.mark.unit
    def test_locate(self) -> None:
        table = SectionTable([(5, 0x5000, 0x400), (2, 0x2000, 0x800)])

        assert table.locate(0x2000) == (2, 0)
        assert table.locate(0x27FF) == (2, 0x7FF)
        assert table.locate(0x5010) == (5, 0x10)

    @pytest.mark.unit
    @pytest.mark.parametrize("address", [0x0, 0x1FFF, 0x2800, 0x4FFF, 0x5400])
    def test_locate_outside(self, address: int) -> None:
        table = SectionTable([(2, 0x2000, 0x800), (5, 0x5000, 0x400)])
        assert table.locate(address) is None

    @pytest.mark.unit
    def test_empty_table(self) -> None:
        assert SectionTable([]).locate(0x1000) is None


class TestOpening:
    """Opening and loading failures."""

    @pytest.mark.unit
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(SourceUnavailable) as exc_info:
            with DwarfSymbolSource(tmp_path / "missing.debug"):
                pass
        assert "missing.debug" in str(exc_info.value)

    @pytest.mark.unit
    def test_directory(self, tmp_path: Path) -> None:
        with pytest.raises(SourceUnavailable):
            with DwarfSymbolSource(tmp_path):
                pass

    @pytest.mark.unit
    def test_not_an_elf_file(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.txt"
        path.write_bytes(b"this is not an ELF file at all" * 4)

        with pytest.raises(LoadFailed):
            with DwarfSymbolSource(path):
                pass

    @pytest.mark.unit
    def test_no_dwarf_info(self, elf_path: Path) -> None:
        """A stripped binary cannot be analyzed."""
        with patch("dwarf_globals.core.symbol_source.ELFFile", return_value=make_elf(has_dwarf=False)):
            with pytest.raises(LoadFailed) as exc_info:
                with DwarfSymbolSource(elf_path):
                    pass
        assert "No DWARF info" in str(exc_info.value)

    @pytest.mark.unit
    def test_broken_dwarf_info(self, elf_path: Path) -> None:
        elf = make_elf()
        elf.get_dwarf_info.side_effect = DWARFError("bad abbrev table")

        with patch("dwarf_globals.core.symbol_source.ELFFile", return_value=elf):
            with pytest.raises(LoadFailed):
                with DwarfSymbolSource(elf_path):
                    pass

    @pytest.mark.unit
    def test_errors_share_a_base_class(self) -> None:
        for cls in (SourceUnavailable, LoadFailed, NoSymbols):
            assert issubclass(cls, SymbolSourceError)

    @pytest.mark.unit
    def test_file_is_closed_on_exit(self, elf_path: Path) -> None:
        with patch("dwarf_globals.core.symbol_source.ELFFile", return_value=make_elf()):
            with DwarfSymbolSource(elf_path) as source:
                handle = source._file_handle
                assert handle is not None
                assert source.display_name == str(elf_path)

        assert handle.closed

    @pytest.mark.unit
    def test_iter_symbols_requires_loading(self, elf_path: Path) -> None:
        source = DwarfSymbolSource(elf_path)
        with pytest.raises(RuntimeError):
            list(source.iter_symbols())


class TestMakeRecord:
    """Building records from variable DIEs."""

    @pytest.fixture
    def source(self, elf_path: Path) -> DwarfSymbolSource:
        source = DwarfSymbolSource(elf_path)
        source.sections = SectionTable([(2, 0x2000, 0x800), (5, 0x5000, 0x400)])
        return source

    @pytest.mark.unit
    def test_static_variable(self, source, int_type) -> None:
        die = variable(0x200, "kLimit", int_type, address=0x2010)

        assert source._make_record(die, 0x2010) == SymbolRecord(
            name="kLimit", size=4, section=2, offset=0x10
        )

    @pytest.mark.unit
    def test_name_and_type_from_declaration(self, source, int_type) -> None:
        """Out-of-line definitions of class statics point back at the declaration."""
        decl = variable(0x200, "Foo::kLimit", int_type)
        definition = variable(0x300, None, None, address=0x5008, origin=decl)

        record = source._make_record(definition, 0x5008)

        assert record == SymbolRecord(name="Foo::kLimit", size=4, section=5, offset=8)

    @pytest.mark.unit
    def test_abstract_origin(self, source, int_type) -> None:
        origin = variable(0x200, "s_counter", int_type)
        concrete = variable(
            0x300, None, None, address=0x2000, origin=origin, origin_attr="DW_AT_abstract_origin"
        )

        assert source._make_record(concrete, 0x2000).name == "s_counter"

    @pytest.mark.unit
    def test_nameless_variable_is_skipped(self, source, int_type) -> None:
        die = variable(0x200, None, int_type, address=0x2000)
        assert source._make_record(die, 0x2000) is None

    @pytest.mark.unit
    def test_untyped_variable_is_skipped(self, source) -> None:
        die = variable(0x200, "kMystery", None, address=0x2000)
        assert source._make_record(die, 0x2000) is None

    @pytest.mark.unit
    def test_unknown_size_is_zero(self, source) -> None:
        opaque = make_die("DW_TAG_structure_type", 0x150, {"DW_AT_declaration": True})
        die = variable(0x200, "g_opaque", opaque, address=0x2000)

        assert source._make_record(die, 0x2000).size == 0

    @pytest.mark.unit
    def test_address_outside_sections(self, source, int_type) -> None:
        die = variable(0x200, "kLost", int_type, address=0x9000)
        record = source._make_record(die, 0x9000)

        assert record.section_lookup is SectionLookup.ABSENT
        assert record.offset == 0

    @pytest.mark.unit
    def test_section_query_failed(self, source, int_type) -> None:
        source.sections = None
        die = variable(0x200, "kLimit", int_type, address=0x2010)

        record = source._make_record(die, 0x2010)

        assert record.section_lookup is SectionLookup.QUERY_FAILED
        assert record.size == 4

    @pytest.mark.unit
    def test_undecodable_name(self, source, int_type) -> None:
        die = variable(0x200, None, int_type, address=0x2000)
        die.attributes["DW_AT_name"] = make_attr(b"k\xffTable", "DW_FORM_strp")

        assert source._make_record(die, 0x2000).name == "k\ufffdTable"


class TestLoadSymbols:
    """Walking every compilation unit."""

    @pytest.mark.unit
    def test_collects_static_variables(self, elf_path: Path, int_type) -> None:
        matrix = make_die("DW_TAG_structure_type", 0x110, {"DW_AT_byte_size": 64})
        subprogram = make_die("DW_TAG_subprogram", 0x180, {"DW_AT_name": b"main"})
        local = variable(0x190, "i", int_type)
        local.attributes["DW_AT_location"] = make_attr([0x91, 0x6C], "DW_FORM_exprloc")
        extern_decl = variable(0x1A0, "g_extern", int_type)

        first = make_cu(
            [
                int_type,
                matrix,
                variable(0x200, "kUnitMatrix", matrix, address=0x2040),
                subprogram,
                local,
                extern_decl,
                variable(0x210, "g_count", int_type, address=0x5000),
            ]
        )
        second = make_cu(
            [variable(0x1200, "kUnitMatrix", matrix, address=0x2080)], offset=0x1000
        )

        with patch(
            "dwarf_globals.core.symbol_source.ELFFile", return_value=make_elf([first, second])
        ):
            with DwarfSymbolSource(elf_path) as source:
                symbols = source.load_symbols()

        assert symbols == [
            SymbolRecord(name="kUnitMatrix", size=64, section=2, offset=0x40),
            SymbolRecord(name="g_count", size=4, section=5, offset=0),
            SymbolRecord(name="kUnitMatrix", size=64, section=2, offset=0x80),
        ]
        assert source.progress.cu_count == 2
        assert source.progress.die_count == 8
        assert source.progress.symbol_count == 3

    @pytest.mark.unit
    def test_tls_variables_are_excluded(self, elf_path: Path, int_type) -> None:
        tls = variable(0x200, "t_local", int_type)
        tls.attributes["DW_AT_location"] = make_attr(
            [0x0E, *(0x10).to_bytes(8, "little"), 0xE0], "DW_FORM_exprloc"
        )
        cu = make_cu([tls, variable(0x210, "g_count", int_type, address=0x5000)])

        with patch("dwarf_globals.core.symbol_source.ELFFile", return_value=make_elf([cu])):
            with DwarfSymbolSource(elf_path) as source:
                symbols = source.load_symbols()

        assert [s.name for s in symbols] == ["g_count"]

    @pytest.mark.unit
    def test_broken_cu_is_skipped(self, elf_path: Path, int_type) -> None:
        broken = make_cu([], offset=0x40)
        broken.iter_DIEs.side_effect = DWARFError("truncated CU")
        good = make_cu([variable(0x210, "g_count", int_type, address=0x5000)], offset=0x80)

        with patch(
            "dwarf_globals.core.symbol_source.ELFFile", return_value=make_elf([broken, good])
        ):
            with DwarfSymbolSource(elf_path) as source:
                symbols = source.load_symbols()

        assert [s.name for s in symbols] == ["g_count"]

    @pytest.mark.unit
    def test_unreadable_variable_does_not_hide_the_rest_of_its_cu(
        self, elf_path: Path, int_type
    ) -> None:
        bad = variable(0x200, "g_bad", int_type, address=0x2000)
        bad.get_DIE_from_attribute.side_effect = DWARFError("bad DW_AT_type reference")
        cu = make_cu([bad, variable(0x210, "g_good", int_type, address=0x5000)])

        with patch("dwarf_globals.core.symbol_source.ELFFile", return_value=make_elf([cu])):
            with DwarfSymbolSource(elf_path) as source:
                symbols = source.load_symbols()

        assert [s.name for s in symbols] == ["g_good"]
        assert source.progress.skipped_count == 1

    @pytest.mark.unit
    def test_skipped_records_are_counted(self, elf_path: Path, int_type) -> None:
        cu = make_cu(
            [
                variable(0x200, None, int_type, address=0x2000),
                variable(0x210, "g_count", int_type, address=0x5000),
            ]
        )

        with patch("dwarf_globals.core.symbol_source.ELFFile", return_value=make_elf([cu])):
            with DwarfSymbolSource(elf_path) as source:
                source.load_symbols()

        assert source.progress.skipped_count == 1
        assert source.progress.symbol_count == 1

    @pytest.mark.unit
    def test_unreadable_section_headers(self, elf_path: Path, int_type) -> None:
        """Records are still produced, each flagged as a failed section query."""
        elf = make_elf([make_cu([variable(0x210, "g_count", int_type, address=0x5000)])])
        elf.iter_sections.side_effect = ELFError("bad section header table")

        with patch("dwarf_globals.core.symbol_source.ELFFile", return_value=elf):
            with DwarfSymbolSource(elf_path) as source:
                symbols = source.load_symbols()

        assert source.sections is None
        assert symbols[0].section_lookup is SectionLookup.QUERY_FAILED

    @pytest.mark.unit
    def test_no_symbols(self, elf_path: Path, int_type) -> None:
        cu = make_cu([int_type, variable(0x1A0, "g_extern", int_type)])

        with patch("dwarf_globals.core.symbol_source.ELFFile", return_value=make_elf([cu])):
            with DwarfSymbolSource(elf_path) as source:
                with pytest.raises(NoSymbols):
                    source.load_symbols()

    @pytest.mark.unit
    def test_addrx_is_resolved_through_debug_addr(self, elf_path: Path, int_type) -> None:
        die = variable(0x200, "kSplit", int_type)
        die.attributes["DW_AT_location"] = make_attr([0xA1, 0x02], "DW_FORM_exprloc")
        cu = make_cu([die])
        elf = make_elf([cu])
        elf.get_dwarf_info.return_value.get_addr.return_value = 0x2004

        with patch("dwarf_globals.core.symbol_source.ELFFile", return_value=elf):
            with DwarfSymbolSource(elf_path) as source:
                symbols = source.load_symbols()

        elf.get_dwarf_info.return_value.get_addr.assert_called_once_with(cu, 2)
        assert symbols == [SymbolRecord(name="kSplit", size=4, section=2, offset=4)]
