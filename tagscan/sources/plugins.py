"""Active analytics-extension inventory.

Informational only: findings are reported next to the scan but never count
toward snippet totals or the safety score.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

#: Plugin entry file -> display name for known analytics / header-injection plugins.
ANALYTICS_PLUGINS: dict[str, str] = {
    "google-analytics-for-wordpress/googleanalytics.php": "MonsterInsights",
    "ga-google-analytics/ga-google-analytics.php": "GA Google Analytics",
    "googleanalytics/googleanalytics.php": "Google Analytics",
    "google-analytics-dashboard-for-wp/gadwp.php": "Google Analytics Dashboard",
    "insert-headers-and-footers/ihaf.php": "Insert Headers and Footers",
    "header-footer-elementor/header-footer-elementor.php": "Header Footer Elementor",
}


@dataclass(frozen=True)
class PluginFinding:
    name: str
    file: str
    status: str = "active"

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "file": self.file, "status": self.status}


def detect_analytics_plugins(active_plugins: Iterable[str]) -> list[PluginFinding]:
    """Known analytics plugins present in ``active_plugins``, in table order."""
    active = set(active_plugins)
    return [
        PluginFinding(name=name, file=plugin_file)
        for plugin_file, name in ANALYTICS_PLUGINS.items()
        if plugin_file in active
    ]
