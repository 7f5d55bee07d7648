#!/usr/bin/env python3

"""Tab-separated globals report.

The layout is meant for pasting into a spreadsheet and building pivot tables.
Fields are separated by tabs (shown as `|` here). The zero Size of duplicate
rows and the size of large-symbol rows are padded to six characters:

    #Dups|#Folded|DupSize|  Size|Section|Symbol name|Binary name
    3|0|3072|     0|0|kTable|app.debug
    <blank line>
    0|0|  4096|16|kBigBuffer|app.debug

Duplicate rows have seven fields with zeros for size and section. Large-symbol
rows have six: two zeros, the padded size, the section index, the name and the
binary.
"""

from collections.abc import Iterable
from typing import TextIO

from ...domain.models.symbols import AnalysisResult, DuplicateGroup, SymbolRecord
from ...infrastructure.logging import get_logger

logger = get_logger(__name__)

HEADER = "#Dups\t#Folded\tDupSize\t  Size\tSection\tSymbol name\tBinary name"


class ReportEmitter:
    """Writes analysis results as tab-separated rows to a text stream."""

    def __init__(self, stream: TextIO, binary_name: str):
        """
        Args:
            stream: Destination for the report (stdout or an open file)
            binary_name: Name of the analyzed binary, repeated on every row
        """
        self.stream = stream
        self.binary_name = binary_name

    def format_duplicate(self, group: DuplicateGroup) -> str:
        """Format one duplicate group row."""
        return (
            f"{group.repeat_count}\t{group.folding_count}\t{group.bytes_wasted}\t"
            f"{0:6d}\t{0}\t{group.name}\t{self.binary_name}"
        )

    def format_large_symbol(self, symbol: SymbolRecord) -> str:
        """Format one large symbol row; a missing section prints as its sentinel."""
        return (
            f"{0}\t{0}\t{symbol.size:6d}\t{symbol.section_value}\t"
            f"{symbol.name}\t{self.binary_name}"
        )

    def emit(
        self,
        duplicate_groups: Iterable[DuplicateGroup],
        large_symbols: Iterable[SymbolRecord],
    ) -> None:
        """Write the header, duplicate rows, a blank line, then large-symbol rows."""
        lines = [HEADER]
        lines.extend(self.format_duplicate(group) for group in duplicate_groups)
        duplicate_rows = len(lines) - 1
        lines.append("")
        lines.extend(self.format_large_symbol(symbol) for symbol in large_symbols)

        self.stream.write("\n".join(lines) + "\n")
        logger.debug(
            f"Wrote {duplicate_rows} duplicate rows and "
            f"{len(lines) - duplicate_rows - 2} large-symbol rows"
        )

    def emit_result(self, result: AnalysisResult) -> None:
        """Write both lists of an AnalysisResult."""
        self.emit(result.duplicate_groups, result.large_symbols)
