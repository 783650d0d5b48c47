"""Root test configuration for tagscan.

Provides:
  - isolation from any real config file or TAGSCAN_* env var on the machine
  - per-test structlog configuration at DEBUG so every log call is exercised
  - ``tracking_samples``: one minimal, realistic snippet per registry pattern
"""

from __future__ import annotations

import pytest

from samples import TRACKING_SAMPLES
from tagscan.utils.logger import configure_logging


@pytest.fixture(autouse=True)
def isolate_config(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Never pick up a developer's real config file or env overrides."""
    for name in ("TAGSCAN_CONFIG", "TAGSCAN_WORKERS", "TAGSCAN_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(
        "tagscan.config.DEFAULT_CONFIG_PATHS",
        [str(tmp_path / "no-such-dir" / "config.yaml")],
    )


@pytest.fixture(autouse=True)
def debug_logging() -> None:
    """Run every test with DEBUG logging so each log call is exercised."""
    configure_logging("DEBUG", json_output=True)


@pytest.fixture
def tracking_samples() -> dict[str, tuple[str, tuple[str, ...]]]:
    return dict(TRACKING_SAMPLES)
