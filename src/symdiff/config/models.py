"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (SYMDIFF__SECTION__KEY)
3. Repo YAML (.symdiff/config.yaml)
4. Global YAML (~/.config/symdiff/config.yaml)
5. Built-in defaults (this file)

Examples:
    SYMDIFF__LOGGING__LEVEL=DEBUG
    SYMDIFF__DIFF__DEBOUNCE_SEC=0.5
    SYMDIFF__DIFF__BASELINE_CACHE_SIZE=200
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_ANALYZABLE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".py", ".cs", ".rs", ".go")
DEFAULT_EXCLUDED_DIRS = ("node_modules", "dist", "out", "build", ".git", "__pycache__")


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        SYMDIFF__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every cache hit and may be noisy.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class DiffConfig(BaseModel):
    """Structural diff configuration.

    Env vars:
        SYMDIFF__DIFF__DEBOUNCE_SEC: Change coalescing window
        SYMDIFF__DIFF__BASELINE_CACHE_SIZE: Baseline content LRU capacity
        SYMDIFF__DIFF__SNAPSHOT_DIR: Snapshot root, relative to the workspace
        SYMDIFF__DIFF__EXCLUDED_DIRS: JSON list of directory names the deletion scan skips
    """

    debounce_sec: float = Field(
        default=0.3,
        description="Debounce window before a changed file is re-analyzed. "
        "Lower values re-diff more often during rapid edits.",
    )
    baseline_cache_size: int = Field(
        default=100,
        description="Maximum number of baseline file contents kept in memory.",
    )
    snapshot_dir: str = Field(
        default=".symdiff/snapshots",
        description="Directory holding snapshot baselines, one subdirectory per snapshot.",
    )
    analyzable_extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ANALYZABLE_EXTENSIONS),
        description="Extensions considered when scanning baseline-only files for deletions.",
    )
    excluded_dirs: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDED_DIRS),
        description="Directory names skipped when scanning baseline-only files for deletions.",
    )

    @field_validator("debounce_sec")
    @classmethod
    def validate_debounce(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"debounce_sec must be >= 0, got {v}")
        return v

    @field_validator("baseline_cache_size")
    @classmethod
    def validate_cache_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"baseline_cache_size must be >= 1, got {v}")
        return v

    @field_validator("analyzable_extensions")
    @classmethod
    def normalize_extensions(cls, v: list[str]) -> list[str]:
        return [ext if ext.startswith(".") else f".{ext}" for ext in (e.lower() for e in v)]


class SymdiffConfig(BaseModel):
    """Root configuration for symdiff.

    All settings can be configured via:
    1. Environment variables: SYMDIFF__SECTION__KEY
    2. YAML config files (repo or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    diff: DiffConfig = Field(default_factory=DiffConfig)
