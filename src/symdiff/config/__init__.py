"""Config module exports."""

from symdiff.config.loader import SymdiffSettings, load_config
from symdiff.config.models import (
    DiffConfig,
    LoggingConfig,
    LogOutputConfig,
    SymdiffConfig,
)

__all__ = [
    "load_config",
    "SymdiffConfig",
    "SymdiffSettings",
    "DiffConfig",
    "LoggingConfig",
    "LogOutputConfig",
]
