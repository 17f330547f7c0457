"""Core module exports."""

from symdiff.core.errors import (
    ConfigError,
    DiffError,
    ErrorCode,
    SymdiffError,
)
from symdiff.core.logging import (
    clear_run_id,
    configure_logging,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Errors
    "ErrorCode",
    "SymdiffError",
    "ConfigError",
    "DiffError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_run_id",
    "set_run_id",
]
