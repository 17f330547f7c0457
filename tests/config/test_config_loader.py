"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- _deep_merge() function
- load_config() precedence: defaults < global < repo < env < kwargs
- validation errors surfaced as ConfigError
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from symdiff.config.loader import (
    GLOBAL_CONFIG_PATH,
    REPO_CONFIG_DIR,
    _deep_merge,
    _load_yaml,
    load_config,
)
from symdiff.config.models import (
    DEFAULT_ANALYZABLE_EXTENSIONS,
    DEFAULT_EXCLUDED_DIRS,
    DiffConfig,
)
from symdiff.core.errors import ConfigError, ErrorCode


@pytest.fixture
def isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the global config at tmp_path and clear SYMDIFF__ env vars."""
    monkeypatch.setattr("symdiff.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "global.yaml")
    for key in list(os.environ):
        if key.upper().startswith("SYMDIFF__"):
            monkeypatch.delenv(key)
    repo = tmp_path / "repo"
    (repo / REPO_CONFIG_DIR).mkdir(parents=True)
    return repo


def _write_repo_config(repo: Path, text: str) -> None:
    (repo / REPO_CONFIG_DIR / "config.yaml").write_text(text)


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("diff:\n  debounce_sec: 0.5\n")
        assert _load_yaml(yaml_file) == {"diff": {"debounce_sec": 0.5}}

    def test_returns_empty_for_empty_file(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")
        assert _load_yaml(yaml_file) == {}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "bad.yaml"
        yaml_file.write_text("diff: [unclosed\n")

        with pytest.raises(ConfigError) as exc_info:
            _load_yaml(yaml_file)
        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR

    def test_raises_config_error_for_non_mapping(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError) as exc_info:
            _load_yaml(yaml_file)
        assert "mapping" in exc_info.value.message


class TestDeepMerge:
    """Tests for _deep_merge function."""

    def test_nested_merge(self) -> None:
        base = {"diff": {"debounce_sec": 0.3, "snapshot_dir": "a"}}
        override = {"diff": {"debounce_sec": 1.0}}
        assert _deep_merge(base, override) == {"diff": {"debounce_sec": 1.0, "snapshot_dir": "a"}}

    def test_override_replaces_non_dict(self) -> None:
        assert _deep_merge({"a": [1]}, {"a": {"b": 2}}) == {"a": {"b": 2}}

    def test_does_not_mutate_base(self) -> None:
        base = {"diff": {"debounce_sec": 0.3}}
        _deep_merge(base, {"diff": {"debounce_sec": 1.0}})
        assert base == {"diff": {"debounce_sec": 0.3}}


class TestLoadConfig:
    """Tests for load_config precedence."""

    def test_returns_defaults_when_no_files(self, isolated: Path) -> None:
        config = load_config(isolated)

        assert config.logging.level == "INFO"
        assert config.diff.debounce_sec == 0.3
        assert config.diff.baseline_cache_size == 100
        assert config.diff.snapshot_dir == ".symdiff/snapshots"
        assert config.diff.analyzable_extensions == list(DEFAULT_ANALYZABLE_EXTENSIONS)
        assert config.diff.excluded_dirs == list(DEFAULT_EXCLUDED_DIRS)

    def test_loads_repo_config(self, isolated: Path) -> None:
        _write_repo_config(isolated, "diff:\n  baseline_cache_size: 25\n")
        assert load_config(isolated).diff.baseline_cache_size == 25

    def test_repo_config_overrides_global(self, isolated: Path, tmp_path: Path) -> None:
        (tmp_path / "global.yaml").write_text(
            "logging:\n  level: DEBUG\ndiff:\n  debounce_sec: 2.0\n  baseline_cache_size: 7\n"
        )
        _write_repo_config(isolated, "diff:\n  debounce_sec: 0.1\n")

        config = load_config(isolated)
        assert config.logging.level == "DEBUG"
        assert config.diff.debounce_sec == 0.1
        assert config.diff.baseline_cache_size == 7

    def test_env_vars_override_yaml(self, isolated: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_repo_config(isolated, "logging:\n  level: DEBUG\n")
        monkeypatch.setenv("SYMDIFF__LOGGING__LEVEL", "WARNING")
        monkeypatch.setenv("SYMDIFF__DIFF__DEBOUNCE_SEC", "0.75")

        config = load_config(isolated)
        assert config.logging.level == "WARNING"
        assert config.diff.debounce_sec == 0.75

    def test_kwargs_override_all(self, isolated: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_repo_config(isolated, "diff:\n  snapshot_dir: from-yaml\n")
        monkeypatch.setenv("SYMDIFF__DIFF__SNAPSHOT_DIR", "from-env")

        config = load_config(isolated, diff={"snapshot_dir": "from-kwargs"})
        assert config.diff.snapshot_dir == "from-kwargs"

    def test_extensions_are_normalized(self, isolated: Path) -> None:
        _write_repo_config(isolated, "diff:\n  analyzable_extensions: [TS, .Py]\n")
        assert load_config(isolated).diff.analyzable_extensions == [".ts", ".py"]

    def test_raises_config_error_for_invalid_value(self, isolated: Path) -> None:
        _write_repo_config(isolated, "diff:\n  debounce_sec: -1\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(isolated)
        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_VALUE
        assert exc_info.value.details["field"] == "diff.debounce_sec"

    def test_raises_config_error_for_invalid_yaml(self, isolated: Path) -> None:
        _write_repo_config(isolated, "diff: {broken\n")
        with pytest.raises(ConfigError):
            load_config(isolated)

    def test_explicit_config_file_replaces_repo_config(
        self, isolated: Path, tmp_path: Path
    ) -> None:
        _write_repo_config(isolated, "diff:\n  baseline_cache_size: 25\n")
        explicit = tmp_path / "ci.yaml"
        explicit.write_text("diff:\n  debounce_sec: 1.5\n")

        config = load_config(isolated, config_file=explicit)
        assert config.diff.debounce_sec == 1.5
        assert config.diff.baseline_cache_size == 100

    def test_missing_explicit_config_file(self, isolated: Path, tmp_path: Path) -> None:
        missing = tmp_path / "nowhere.yaml"

        with pytest.raises(ConfigError) as exc_info:
            load_config(isolated, config_file=missing)
        assert exc_info.value.code == ErrorCode.CONFIG_FILE_NOT_FOUND
        assert exc_info.value.details == {"path": str(missing)}


class TestDiffConfig:
    def test_rejects_zero_cache_size(self) -> None:
        with pytest.raises(ValueError, match="baseline_cache_size"):
            DiffConfig(baseline_cache_size=0)

    def test_zero_debounce_allowed(self) -> None:
        assert DiffConfig(debounce_sec=0).debounce_sec == 0


class TestGlobalConfigPath:
    def test_is_in_user_config(self) -> None:
        assert isinstance(GLOBAL_CONFIG_PATH, Path)
        assert "symdiff" in str(GLOBAL_CONFIG_PATH)
