"""Config loading for tagscan.

Reads `.tagscan/config.yaml` (or `~/.tagscan/config.yaml`).
Raises SystemExit on parse errors or missing `version` field.
If no config file is found, returns default values (safe to run without config).

Config search order:
  1. `config_path` argument (if provided, for testing or explicit override)
  2. TAGSCAN_CONFIG environment variable (if set)
  3. `.tagscan/config.yaml` (working directory)
  4. `~/.tagscan/config.yaml` (home directory)

Environment variable overrides:
  TAGSCAN_LOG_LEVEL: overrides logging.level
  TAGSCAN_WORKERS:   overrides scanner.workers
  TAGSCAN_CONFIG:    sets an explicit config file path to try first
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import NoReturn, Optional

import yaml

from tagscan.constants import (
    CONTEXT_WINDOW_CHARS,
    MATCH_BUDGET_S,
    MAX_DOCUMENT_DEPTH,
    MAX_INPUT_CHARS,
)
from tagscan.utils.logger import get_logger

logger = get_logger(__name__)

# ─── Version constants ────────────────────────────────────────────────────────

SUPPORTED_CONFIG_VERSION = 1

SUPPORTED_VERSIONS: frozenset[int] = frozenset({1})

# ─── Validation sets ─────────────────────────────────────────────────────────

VALID_LOG_LEVELS: frozenset[str] = frozenset(
    {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
)

# Default config search paths (TAGSCAN_CONFIG env var prepended at runtime)
DEFAULT_CONFIG_PATHS = [
    ".tagscan/config.yaml",
    os.path.expanduser("~/.tagscan/config.yaml"),
]


def _fail(msg: str) -> NoReturn:
    print(msg, file=sys.stderr)
    raise SystemExit(1)


# ─── Dataclasses ─────────────────────────────────────────────────────────────


@dataclass
class ScannerConfig:
    """Detection engine limits."""

    max_input_chars: int = MAX_INPUT_CHARS   # hard truncation cap per blob
    match_budget_ms: int = int(MATCH_BUDGET_S * 1000)  # per pattern, per blob
    context_chars: int = CONTEXT_WINDOW_CHARS
    max_depth: int = MAX_DOCUMENT_DEPTH
    workers: int = 0                         # 0 = sequential scan

    @property
    def match_budget_s(self) -> float:
        return self.match_budget_ms / 1000.0


@dataclass
class LoggingConfig:
    """structlog output configuration."""

    level: str = "INFO"
    json: bool = True


@dataclass
class Config:
    """Root configuration object populated from .tagscan/config.yaml.

    All fields have safe defaults; tagscan can run without any config file.
    """

    version: int = SUPPORTED_CONFIG_VERSION
    scanner: ScannerConfig = field(default_factory=ScannerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    path: Optional[str] = None  # Path to the loaded config file

    @classmethod
    def defaults(cls) -> "Config":
        """Return a fully-default Config (no file required)."""
        return cls()

    @classmethod
    def from_dict(cls, raw: dict, path: Optional[str] = None) -> "Config":
        """Construct Config from a parsed YAML dict.

        Merges user-supplied values onto defaults; unknown keys are silently ignored.

        Raises:
            SystemExit(1): On non-integer or out-of-range scanner limits, or an
                           unknown logging level.
        """
        # ── Scanner ───────────────────────────────────────────────────────────
        scanner_raw = raw.get("scanner") or {}
        scanner = ScannerConfig(
            max_input_chars=_positive_int(
                scanner_raw, "max_input_chars", MAX_INPUT_CHARS
            ),
            match_budget_ms=_positive_int(
                scanner_raw, "match_budget_ms", int(MATCH_BUDGET_S * 1000)
            ),
            context_chars=_non_negative_int(
                scanner_raw, "context_chars", CONTEXT_WINDOW_CHARS
            ),
            max_depth=_positive_int(scanner_raw, "max_depth", MAX_DOCUMENT_DEPTH),
            workers=_non_negative_int(scanner_raw, "workers", 0),
        )

        # ── Logging ───────────────────────────────────────────────────────────
        logging_raw = raw.get("logging") or {}
        level = str(logging_raw.get("level", "INFO")).upper()
        if level not in VALID_LOG_LEVELS:
            _fail(
                f"CONFIG ERROR: Invalid logging.level: '{level}'. "
                f"Supported values: {sorted(VALID_LOG_LEVELS)}."
            )
        logging_config = LoggingConfig(
            level=level,
            json=bool(logging_raw.get("json", True)),
        )

        return cls(
            version=raw.get("version", SUPPORTED_CONFIG_VERSION),
            scanner=scanner,
            logging=logging_config,
            path=path,
        )


def _positive_int(section: dict, key: str, default: int) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        _fail(
            f"CONFIG ERROR: scanner.{key} must be a positive integer, got {value!r}."
        )
    return value


def _non_negative_int(section: dict, key: str, default: int) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        _fail(
            f"CONFIG ERROR: scanner.{key} must be a non-negative integer, got {value!r}."
        )
    return value


# ─── Config loading ───────────────────────────────────────────────────────────


def load_config(config_path: Optional[str] = None) -> Config:
    """Load and validate tagscan configuration.

    If no file is found at any search path, returns default Config (not an error).
    If a file is found but invalid, writes error to stderr and raises SystemExit(1).

    Env var overrides are applied afterwards, whether or not a file was found.

    Raises:
        SystemExit(1): On YAML parse error, missing ``version`` field, unsupported
                       version, invalid values, or invalid env overrides.
    """
    search_paths: list[str] = []
    if config_path:
        search_paths.append(config_path)
    env_config = os.environ.get("TAGSCAN_CONFIG")
    if env_config:
        search_paths.append(env_config)
    search_paths.extend(DEFAULT_CONFIG_PATHS)

    found_path: Optional[str] = None
    for candidate in search_paths:
        expanded = os.path.expanduser(candidate)
        if os.path.isfile(expanded):
            found_path = expanded
            break

    # ── No config file found ─────────────────────────────────────────────────
    if found_path is None:
        logger.debug("No config file found, using defaults", searched=search_paths)
        config = Config.defaults()
        _apply_env_overrides(config)
        return config

    # ── Parse config file ─────────────────────────────────────────────────────
    logger.debug("Loading config", path=found_path)

    try:
        with open(found_path) as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        _fail(
            f"CONFIG ERROR: Failed to parse {found_path}: {exc}\n"
            "Check the YAML syntax and try again."
        )
    except OSError as exc:
        _fail(f"CONFIG ERROR: Could not read {found_path}: {exc}")

    if not isinstance(raw, dict):
        if raw is None:
            _fail(
                f"CONFIG ERROR: {found_path} is missing the required 'version' field.\n"
                "Add 'version: 1' to the top of your config file."
            )
        _fail(
            f"CONFIG ERROR: {found_path} is not a valid YAML mapping.\n"
            "The config file must be a YAML dictionary at the top level."
        )

    # ── Version validation ────────────────────────────────────────────────────
    version = raw.get("version")
    if version is None:
        _fail(
            f"CONFIG ERROR: {found_path} is missing the required 'version' field.\n"
            "Add 'version: 1' to the top of your config file."
        )
    if version not in SUPPORTED_VERSIONS:
        _fail(
            f"CONFIG ERROR: Unsupported config version: {version}. "
            f"Supported versions: {sorted(SUPPORTED_VERSIONS)}."
        )

    config = Config.from_dict(raw, path=found_path)
    _apply_env_overrides(config)

    logger.debug(
        "Config loaded",
        path=found_path,
        version=config.version,
        workers=config.scanner.workers,
    )
    return config


def _apply_env_overrides(config: Config) -> None:
    """Apply environment variable overrides to a Config object in-place.

    Raises:
        SystemExit(1): If TAGSCAN_WORKERS is not a non-negative integer or
                       TAGSCAN_LOG_LEVEL is not a known level.
    """
    env_workers = os.environ.get("TAGSCAN_WORKERS")
    if env_workers is not None:
        try:
            workers = int(env_workers)
        except ValueError:
            workers = -1
        if workers < 0:
            _fail(
                "CONFIG ERROR: TAGSCAN_WORKERS environment variable is not a valid "
                f"non-negative integer: '{env_workers}'"
            )
        config.scanner.workers = workers

    env_level = os.environ.get("TAGSCAN_LOG_LEVEL")
    if env_level is not None:
        level = env_level.upper()
        if level not in VALID_LOG_LEVELS:
            _fail(
                f"CONFIG ERROR: TAGSCAN_LOG_LEVEL is not a valid level: '{env_level}'"
            )
        config.logging.level = level
