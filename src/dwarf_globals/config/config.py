"""Configuration management for the globals auditor."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from ..domain.models.symbols import BIG_SIZE_THRESHOLD, WASTAGE_THRESHOLD

TRUE_VALUES = ("true", "1", "yes")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in TRUE_VALUES


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_path(name: str, default: Optional[str] = None) -> Optional[Path]:
    value = os.getenv(name, default)
    return Path(value) if value else None


@dataclass
class Config:
    """Configuration for a globals audit run."""

    elf_file_path: Optional[Path] = None
    output_file: Optional[Path] = None
    show_folded_constants: bool = False
    verbose: bool = False
    log_dir: Optional[Path] = Path("logs")
    wastage_threshold: int = WASTAGE_THRESHOLD
    big_size_threshold: int = BIG_SIZE_THRESHOLD
    type_cache_size: int = 5000

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None) -> "Config":
        """
        Load configuration from environment variables or .env file.

        Args:
            env_path: Optional path to .env file (defaults to .env in current directory)

        Returns:
            Config object
        """
        if env_path is None:
            env_path = Path.cwd() / ".env"

        if env_path.exists():
            load_dotenv(env_path)

        return cls(
            elf_file_path=_env_path("ELF_FILE_PATH"),
            output_file=_env_path("OUTPUT_FILE"),
            show_folded_constants=_env_bool("SHOW_FOLDED_CONSTANTS", False),
            verbose=_env_bool("VERBOSE", False),
            # LOG_DIR set to an empty string disables the log file
            log_dir=_env_path("LOG_DIR", "logs"),
            wastage_threshold=_env_int("WASTAGE_THRESHOLD", WASTAGE_THRESHOLD),
            big_size_threshold=_env_int("BIG_SIZE_THRESHOLD", BIG_SIZE_THRESHOLD),
            type_cache_size=_env_int("TYPE_CACHE_SIZE", 5000),
        )

    @classmethod
    def from_args(
        cls,
        elf_file_path: Optional[Path] = None,
        output_file: Optional[Path] = None,
        show_folded_constants: Optional[bool] = None,
        verbose: Optional[bool] = None,
        wastage_threshold: Optional[int] = None,
        big_size_threshold: Optional[int] = None,
    ) -> "Config":
        """
        Create configuration from explicit arguments, falling back to environment.

        Arguments left as None keep the environment (or default) value.

        Returns:
            Config object
        """
        config = cls.from_env()

        if elf_file_path is not None:
            config.elf_file_path = elf_file_path
        if output_file is not None:
            config.output_file = output_file
        if show_folded_constants is not None:
            config.show_folded_constants = show_folded_constants
        if verbose is not None:
            config.verbose = verbose
        if wastage_threshold is not None:
            config.wastage_threshold = wastage_threshold
        if big_size_threshold is not None:
            config.big_size_threshold = big_size_threshold

        return config

    def validate(self) -> None:
        """
        Validate the configuration.

        Raises:
            ValueError: If configuration is invalid
        """
        if self.elf_file_path is None:
            raise ValueError("No ELF file given (pass it as an argument or set ELF_FILE_PATH)")

        if not self.elf_file_path.exists():
            raise ValueError(f"ELF file not found: {self.elf_file_path}")

        if not self.elf_file_path.is_file():
            raise ValueError(f"Not a file: {self.elf_file_path}")

        if self.wastage_threshold < 0:
            raise ValueError(f"Wastage threshold must be >= 0, got {self.wastage_threshold}")

        if self.big_size_threshold < 0:
            raise ValueError(f"Big size threshold must be >= 0, got {self.big_size_threshold}")

        if self.type_cache_size < 0:
            raise ValueError(f"Type cache size must be >= 0, got {self.type_cache_size}")
