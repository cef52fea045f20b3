"""Configuration management for biblioteca.

Loads configuration from environment variables and provides defaults.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass
class Config:
    """Application configuration."""

    # Storage
    data_dir: Path

    # Lending rules
    loan_days: int

    # Logging
    log_level: str
    log_file: Optional[Path]

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        data_dir = Path(os.environ.get("BIBLIOTECA_DATA_DIR", "data")).expanduser()

        log_file_str = os.environ.get("BIBLIOTECA_LOG_FILE")
        log_file = Path(log_file_str).expanduser() if log_file_str else None

        return cls(
            data_dir=data_dir,
            loan_days=int(os.environ.get("BIBLIOTECA_LOAN_DAYS", "14")),
            log_level=os.environ.get("BIBLIOTECA_LOG_LEVEL", "INFO").upper(),
            log_file=log_file,
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if self.loan_days <= 0:
            errors.append(f"Loan period must be positive, got {self.loan_days}")

        if not isinstance(logging.getLevelName(self.log_level), int):
            errors.append(f"Unknown log level: {self.log_level}")

        # Check data directory is writable
        if not self.data_dir.exists():
            try:
                self.data_dir.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create data directory: {self.data_dir}")

        return errors


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
