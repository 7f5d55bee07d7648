"""Main entry point for the DWARF globals auditor."""

import argparse
import sys
from pathlib import Path
from typing import NoReturn, Optional

from .application.reporting import ReportEmitter
from .config import Config
from .core import DwarfSymbolSource, SymbolSourceError
from .domain.models.symbols import AnalysisResult
from .domain.services.analysis import analyze
from .infrastructure.logging import LoggerSetup, get_logger, log_timing


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="dwarf-globals",
        description="List duplicated and large global variables found in the DWARF "
        "debug info of an ELF binary, as tab-separated rows",
        epilog="""
Duplicate global variables often come from constants defined in headers:

    const double sqrt_two = sqrt(2.0);

Every translation unit that includes the header may get its own copy. With
C++17 'inline const' (or constexpr) fixes this.

Examples:
  # Report for one binary
  python main.py out/Release/app.debug > app_globals.tsv

  # Count copies the linker already folded onto one address as waste too
  python main.py out/Release/app.debug --show_folded_constants

  # Lower the thresholds, write to a file, debug logging
  python main.py app.debug --wastage-threshold 32 --big-size-threshold 256 -o app.tsv -v

  # Using .env file for configuration
  echo 'ELF_FILE_PATH=out/Release/app.debug' > .env
  python main.py
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "elf_file",
        type=Path,
        nargs="?",
        help="Path to the ELF file to analyze (optional if using .env)",
    )
    parser.add_argument(
        "--show_folded_constants",
        "--show-folded-constants",
        dest="show_folded_constants",
        action="store_true",
        default=None,
        help="Count duplicates the linker folded onto one address as wasted bytes",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        metavar="FILE",
        help="Write the report to FILE instead of stdout",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=None,
        help="Enable verbose output with debug logs",
    )
    parser.add_argument(
        "--wastage-threshold",
        type=int,
        metavar="BYTES",
        help="List duplicate groups wasting more than BYTES (default: 100)",
    )
    parser.add_argument(
        "--big-size-threshold",
        type=int,
        metavar="BYTES",
        help="List symbols of at least BYTES (default: 500)",
    )
    return parser


def write_report(result: AnalysisResult, binary_name: str, output_file: Optional[Path]) -> None:
    """Write the report to ``output_file``, or stdout when it is None."""
    if output_file is None:
        ReportEmitter(sys.stdout, binary_name).emit_result(result)
        return

    output_file.parent.mkdir(parents=True, exist_ok=True)
    with open(output_file, "w", encoding="utf-8", newline="\n") as f:
        ReportEmitter(f, binary_name).emit_result(result)


@log_timing
def main(argv: Optional[list[str]] = None) -> NoReturn:
    """Main entry point: extract symbols, analyze them and print the report."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = Config.from_args(
            elf_file_path=args.elf_file,
            output_file=args.output,
            show_folded_constants=args.show_folded_constants,
            verbose=args.verbose,
            wastage_threshold=args.wastage_threshold,
            big_size_threshold=args.big_size_threshold,
        )
        config.validate()
    except ValueError as e:
        parser.print_usage(sys.stderr)
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    LoggerSetup.initialize(config.log_dir, verbose=config.verbose)
    logger = get_logger(__name__)

    logger.debug(f"ELF file: {config.elf_file_path}")
    logger.debug(
        f"Thresholds: wastage > {config.wastage_threshold}, "
        f"big size >= {config.big_size_threshold}, "
        f"show folded constants: {config.show_folded_constants}"
    )

    if config.elf_file_path is None:
        raise RuntimeError("validate() accepted a configuration without an ELF file")
    try:
        with DwarfSymbolSource(
            config.elf_file_path, type_cache_size=config.type_cache_size
        ) as source:
            symbols = source.load_symbols()
            binary_name = source.display_name
            logger.debug(f"Type size cache: {source.type_sizes.cache.stats()}")
    except SymbolSourceError as e:
        logger.error(str(e))
        sys.exit(1)

    result = analyze(
        symbols,
        show_folded_constants=config.show_folded_constants,
        wastage_threshold=config.wastage_threshold,
        big_size_threshold=config.big_size_threshold,
    )

    try:
        write_report(result, binary_name, config.output_file)
    except OSError as e:
        logger.error(f"Cannot write report to {config.output_file}: {e}")
        sys.exit(1)

    if config.output_file is not None:
        logger.info(f"Report written to {config.output_file}")

    sys.exit(0)


if __name__ == "__main__":
    main()
