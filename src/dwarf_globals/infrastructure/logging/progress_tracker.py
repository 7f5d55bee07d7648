#!/usr/bin/env python3

"""Progress tracking for the DWARF symbol walk."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from time import time
from typing import Any

import psutil


class ProgressTracker:
    """
    Counts CUs, DIEs and symbol records during a walk of the debug info.

    A walk over a large binary (tens of thousands of CUs) runs for minutes;
    the per-CU lines in the debug log and the periodic INFO heartbeat show
    where the time went.
    """

    # Emit an INFO heartbeat every this many compilation units
    CU_REPORT_INTERVAL = 500

    def __init__(self, logger: logging.Logger):
        """
        Args:
            logger: Logger that receives progress lines
        """
        self.logger = logger
        self.start_time = time()
        self.cu_count = 0
        self.die_count = 0
        self.symbol_count = 0
        self.skipped_count = 0

    @contextmanager
    def track_operation(self, operation_name: str) -> Iterator[None]:
        """
        Time a phase of the walk and log how many records it produced.

        Args:
            operation_name: Label used in the log lines, e.g. "symbol walk"
        """
        phase_start = time()
        symbols_before = self.symbol_count
        self.logger.debug(f"{operation_name}: started")

        try:
            yield
        except Exception as e:
            self.logger.error(
                f"{operation_name}: aborted after {time() - phase_start:.3f}s "
                f"({self.cu_count} CUs read): {e}"
            )
            raise

        self.logger.debug(
            f"{operation_name}: {self.symbol_count - symbols_before} records "
            f"in {time() - phase_start:.3f}s"
        )

    @contextmanager
    def track_cu(self, cu: Any) -> Iterator[None]:
        """Count one compilation unit and log its timing. Errors propagate to the caller."""
        self.cu_count += 1
        cu_start = time()
        cu_offset = getattr(cu, "cu_offset", 0)
        initial_symbols = self.symbol_count

        try:
            yield
        except Exception as e:
            self.logger.debug(
                f"CU #{self.cu_count} at 0x{cu_offset:x} failed after {time() - cu_start:.3f}s: {e}"
            )
            raise

        elapsed = time() - cu_start
        self.logger.debug(
            f"CU #{self.cu_count} at 0x{cu_offset:x} done in {elapsed:.3f}s "
            f"({self.symbol_count - initial_symbols} symbols)"
        )
        if self.cu_count % self.CU_REPORT_INTERVAL == 0:
            self.logger.info(
                f"Processed {self.cu_count} CUs, {self.symbol_count} symbols so far"
            )

    def count_die(self) -> None:
        """Increment DIE counter for statistics."""
        self.die_count += 1

    def count_symbol(self) -> None:
        """Increment the counter of emitted symbol records."""
        self.symbol_count += 1

    def count_skipped(self) -> None:
        """Increment the counter of static variables that could not be recorded."""
        self.skipped_count += 1

    def report_summary(self) -> None:
        """Report final processing statistics."""
        total_time = time() - self.start_time
        avg_die_rate = self.die_count / total_time if total_time > 0 else 0

        self.logger.info(
            f"Symbol walk complete: {self.cu_count} CUs, {self.die_count} DIEs, "
            f"{self.symbol_count} symbols ({self.skipped_count} skipped) "
            f"in {total_time:.2f}s ({avg_die_rate:.1f} DIEs/s)"
        )
        self.log_memory_usage()

    def log_memory_usage(self) -> None:
        """Log resident memory of this process at DEBUG level."""
        try:
            memory_mb = psutil.Process().memory_info().rss / 1024 / 1024
        except psutil.Error as e:
            self.logger.debug(f"Could not get memory usage: {e}")
            return
        self.logger.debug(f"Memory usage: {memory_mb:.1f} MB")

    def reset(self) -> None:
        """Reset all counters and timers."""
        self.start_time = time()
        self.cu_count = 0
        self.die_count = 0
        self.symbol_count = 0
        self.skipped_count = 0
