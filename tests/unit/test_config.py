"""Unit tests for tagscan/config.py: config file loading and validation.

Covers:
  - Missing config file → Config.defaults(), no exception
  - Missing or unsupported 'version' → SystemExit(1) with a CONFIG ERROR line
  - Invalid YAML / non-mapping file → SystemExit(1)
  - scanner.* limits validated as integers
  - logging.level validated against the known levels
  - TAGSCAN_CONFIG, TAGSCAN_WORKERS and TAGSCAN_LOG_LEVEL env overrides
"""

from __future__ import annotations

import textwrap
from typing import Any

import pytest

from tagscan.config import (
    SUPPORTED_VERSIONS,
    VALID_LOG_LEVELS,
    Config,
    LoggingConfig,
    ScannerConfig,
    load_config,
)


def _write(tmp_path: Any, body: str) -> str:
    config_file = tmp_path / "config.yaml"
    config_file.write_text(textwrap.dedent(body))
    return str(config_file)


# ─── Missing config file → Config.defaults() ─────────────────────────────────


class TestMissingConfigFile:
    def test_nonexistent_path_returns_defaults(self) -> None:
        """load_config(nonexistent path) returns defaults without raising."""
        config = load_config(config_path="/nonexistent/path/to/config.yaml")
        assert isinstance(config, Config)
        assert config.version == 1
        assert config.path is None

    def test_default_scanner_limits(self) -> None:
        """Defaults mirror tagscan.constants."""
        config = load_config(config_path="/nonexistent/path/config.yaml")
        assert config.scanner.max_input_chars == 1_048_576
        assert config.scanner.match_budget_ms == 250
        assert config.scanner.match_budget_s == pytest.approx(0.25)
        assert config.scanner.context_chars == 100
        assert config.scanner.max_depth == 64
        assert config.scanner.workers == 0

    def test_default_logging(self) -> None:
        """JSON logging at INFO unless configured otherwise."""
        config = load_config()
        assert config.logging.level == "INFO"
        assert config.logging.json is True

    def test_defaults_are_independent(self) -> None:
        """Each defaults() call builds fresh section objects."""
        first = Config.defaults()
        first.scanner.workers = 4
        assert Config.defaults().scanner.workers == 0


# ─── Version validation ──────────────────────────────────────────────────────


class TestVersionField:
    def test_missing_version_raises_system_exit(
        self, tmp_path: Any, capsys: pytest.CaptureFixture
    ) -> None:
        """A config file without 'version' exits with code 1."""
        path = _write(tmp_path, "scanner:\n  workers: 2\n")
        with pytest.raises(SystemExit) as exc_info:
            load_config(config_path=path)
        assert exc_info.value.code == 1
        captured = capsys.readouterr()
        assert "CONFIG ERROR" in captured.err
        assert "version" in captured.err.lower()

    def test_empty_file_raises_system_exit(
        self, tmp_path: Any, capsys: pytest.CaptureFixture
    ) -> None:
        """An empty config file has no version and exits with code 1."""
        path = _write(tmp_path, "")
        with pytest.raises(SystemExit) as exc_info:
            load_config(config_path=path)
        assert exc_info.value.code == 1
        assert "CONFIG ERROR" in capsys.readouterr().err

    @pytest.mark.parametrize("version", [0, 2, 99])
    def test_unsupported_version(
        self, tmp_path: Any, capsys: pytest.CaptureFixture, version: int
    ) -> None:
        """An unknown schema version exits with code 1."""
        path = _write(tmp_path, f"version: {version}\n")
        with pytest.raises(SystemExit) as exc_info:
            load_config(config_path=path)
        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert str(version) in err
        assert "Supported versions" in err

    def test_supported_versions_constant(self) -> None:
        """Only schema version 1 is accepted."""
        assert SUPPORTED_VERSIONS == frozenset({1})


# ─── Malformed files ─────────────────────────────────────────────────────────


class TestMalformedFile:
    def test_invalid_yaml(self, tmp_path: Any, capsys: pytest.CaptureFixture) -> None:
        """Unparseable YAML exits with code 1 and reports the parse failure."""
        path = _write(tmp_path, "version: 1\nscanner: [unclosed\n")
        with pytest.raises(SystemExit) as exc_info:
            load_config(config_path=path)
        assert exc_info.value.code == 1
        assert "Failed to parse" in capsys.readouterr().err

    def test_top_level_list(self, tmp_path: Any, capsys: pytest.CaptureFixture) -> None:
        """The document root must be a mapping."""
        path = _write(tmp_path, "- version\n- 1\n")
        with pytest.raises(SystemExit):
            load_config(config_path=path)
        assert "not a valid YAML mapping" in capsys.readouterr().err


# ─── Scanner section ─────────────────────────────────────────────────────────


class TestScannerSection:
    def test_version_only_gives_defaults(self, tmp_path: Any) -> None:
        """A file holding only 'version: 1' yields default sections."""
        config = load_config(config_path=_write(tmp_path, "version: 1\n"))
        assert config.scanner == ScannerConfig()
        assert config.logging == LoggingConfig()

    def test_values_loaded(self, tmp_path: Any) -> None:
        """Every scanner key in the file lands on ScannerConfig."""
        path = _write(
            tmp_path,
            """\
            version: 1
            scanner:
              max_input_chars: 2048
              match_budget_ms: 50
              context_chars: 0
              max_depth: 8
              workers: 3
            """,
        )
        config = load_config(config_path=path)
        assert config.path == path
        assert config.scanner.max_input_chars == 2048
        assert config.scanner.match_budget_s == pytest.approx(0.05)
        assert config.scanner.context_chars == 0
        assert config.scanner.max_depth == 8
        assert config.scanner.workers == 3

    def test_unknown_keys_ignored(self, tmp_path: Any) -> None:
        """Unrecognized keys are ignored, not rejected."""
        path = _write(tmp_path, "version: 1\nscanner:\n  colour: blue\nextra: true\n")
        assert load_config(config_path=path).scanner == ScannerConfig()

    @pytest.mark.parametrize(
        "line",
        [
            "max_input_chars: 0",
            "max_input_chars: lots",
            "match_budget_ms: -5",
            "max_depth: true",
            "workers: -1",
            "context_chars: 1.5",
        ],
    )
    def test_invalid_limits(
        self, tmp_path: Any, capsys: pytest.CaptureFixture, line: str
    ) -> None:
        """Each bad limit names the offending key on stderr and exits with code 1."""
        path = _write(tmp_path, f"version: 1\nscanner:\n  {line}\n")
        with pytest.raises(SystemExit) as exc_info:
            load_config(config_path=path)
        assert exc_info.value.code == 1
        assert f"scanner.{line.split(':')[0]}" in capsys.readouterr().err


# ─── Logging section ─────────────────────────────────────────────────────────


class TestLoggingSection:
    def test_level_normalized(self, tmp_path: Any) -> None:
        """Log level is upper-cased; json flag is read as a bool."""
        path = _write(tmp_path, "version: 1\nlogging:\n  level: debug\n  json: false\n")
        config = load_config(config_path=path)
        assert config.logging.level == "DEBUG"
        assert config.logging.json is False

    def test_invalid_level(self, tmp_path: Any, capsys: pytest.CaptureFixture) -> None:
        """An unknown log level names logging.level on stderr."""
        path = _write(tmp_path, "version: 1\nlogging:\n  level: chatty\n")
        with pytest.raises(SystemExit):
            load_config(config_path=path)
        assert "logging.level" in capsys.readouterr().err

    def test_valid_levels_constant(self) -> None:
        """Level names follow the stdlib logging levels."""
        assert "WARNING" in VALID_LOG_LEVELS
        assert "TRACE" not in VALID_LOG_LEVELS


# ─── Environment overrides ───────────────────────────────────────────────────


class TestEnvOverrides:
    def test_tagscan_config_env(self, tmp_path: Any, monkeypatch: pytest.MonkeyPatch) -> None:
        """TAGSCAN_CONFIG points at the file to load."""
        path = _write(tmp_path, "version: 1\nscanner:\n  workers: 5\n")
        monkeypatch.setenv("TAGSCAN_CONFIG", path)
        config = load_config()
        assert config.path == path
        assert config.scanner.workers == 5

    def test_explicit_path_wins_over_env(
        self, tmp_path: Any, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """An explicit config_path beats TAGSCAN_CONFIG."""
        env_dir = tmp_path / "env"
        env_dir.mkdir()
        monkeypatch.setenv("TAGSCAN_CONFIG", _write(env_dir, "version: 1\nscanner:\n  workers: 5\n"))
        explicit = _write(tmp_path, "version: 1\nscanner:\n  workers: 1\n")
        assert load_config(config_path=explicit).scanner.workers == 1

    def test_workers_env_without_file(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """TAGSCAN_WORKERS applies on top of defaults."""
        monkeypatch.setenv("TAGSCAN_WORKERS", "2")
        assert load_config().scanner.workers == 2

    def test_workers_env_overrides_file(
        self, tmp_path: Any, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """TAGSCAN_WORKERS beats the file value."""
        monkeypatch.setenv("TAGSCAN_WORKERS", "0")
        path = _write(tmp_path, "version: 1\nscanner:\n  workers: 4\n")
        assert load_config(config_path=path).scanner.workers == 0

    @pytest.mark.parametrize("value", ["many", "-2"])
    def test_invalid_workers_env(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture, value: str
    ) -> None:
        """A non-integer or negative TAGSCAN_WORKERS exits with code 1."""
        monkeypatch.setenv("TAGSCAN_WORKERS", value)
        with pytest.raises(SystemExit) as exc_info:
            load_config()
        assert exc_info.value.code == 1
        assert "TAGSCAN_WORKERS" in capsys.readouterr().err

    def test_log_level_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """TAGSCAN_LOG_LEVEL is normalized like the file value."""
        monkeypatch.setenv("TAGSCAN_LOG_LEVEL", "warning")
        assert load_config().logging.level == "WARNING"

    def test_invalid_log_level_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """An unknown TAGSCAN_LOG_LEVEL exits."""
        monkeypatch.setenv("TAGSCAN_LOG_LEVEL", "loud")
        with pytest.raises(SystemExit):
            load_config()
