"""Site export collector.

Reads a YAML or JSON dump of a site's content store and produces the
categorized blobs the scan aggregator consumes. Selection mirrors how the
live site is queried: post status filter, case-insensitive pre-filter
needles, row limits, well-known option names and the page-builder tables.

Export layout::

    stylesheet: astra
    active_plugins: [elementor/elementor.php, ...]
    posts:
      - {id: 12, title: Home, type: page, status: publish, content: "..."}
    options:
      header_scripts: "..."
    theme_mods:
      footer_html: "..."
    page_builder:
      pages:
        - {post_id: 12, data: '[{"elType": "section", ...}]'}
      custom_css: ""
      custom_js: ""
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, Union

import yaml

from tagscan.constants import MAX_CONTENT_RECORDS, MAX_PAGE_BUILDER_ROWS
from tagscan.models.document import Node, parse_document
from tagscan.models.scan import SourceKind
from tagscan.sources import SourceError
from tagscan.utils.logger import get_logger

logger = get_logger(__name__)

#: Post statuses that are scanned.
SCANNED_POST_STATUSES: frozenset[str] = frozenset({"publish", "draft", "private"})

#: Case-insensitive substrings a post must contain to be scanned at all.
POST_PREFILTER: tuple[str, ...] = (
    "gtag(",
    "googletagmanager.com",
    "google-analytics.com",
    "googlesyndication.com",
    "UA-",
    "G-",
    "GTM-",
    "ca-pub-",
)

#: Case-insensitive substrings a page-builder row must contain to be scanned.
PAGE_BUILDER_PREFILTER: tuple[str, ...] = (
    "gtag",
    "googletagmanager",
    "UA-",
    "G-",
    "GTM-",
)

#: Option names that commonly hold pasted tracking code.
COMMON_OPTIONS: tuple[str, ...] = (
    "google_analytics_code",
    "gtag_code",
    "google_tag_manager",
    "ga_code",
    "analytics_code",
    "header_scripts",
    "footer_scripts",
    "custom_css",
    "custom_js",
    "theme_options",
)

#: Entry file of the page builder whose data is walked.
PAGE_BUILDER_PLUGIN = "elementor/elementor.php"

#: Identifier used for the page builder's site-wide custom code.
GLOBAL_SETTINGS_IDENTIFIER = "global"


def load_site_export(path: Union[str, Path]) -> dict[str, Any]:
    """Load a site export from ``path``.

    ``.json`` files are parsed as JSON, everything else as YAML.

    Raises:
        SourceError: If the file cannot be read or is not a mapping.
    """
    path = Path(path).expanduser()
    try:
        with path.open(encoding="utf-8") as fh:
            if path.suffix.lower() == ".json":
                raw = json.load(fh)
            else:
                raw = yaml.safe_load(fh)
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceError(f"Could not read site export {path}: {exc}") from exc
    except (ValueError, yaml.YAMLError) as exc:
        raise SourceError(f"Could not parse site export {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise SourceError(f"Site export {path} must be a mapping at the top level")
    logger.debug("Site export loaded", path=str(path), sections=sorted(raw))
    return raw


def _contains_any(value: str, needles: Iterable[str]) -> bool:
    folded = value.lower()
    return any(needle.lower() in folded for needle in needles)


def collect_content_records(export: dict[str, Any]) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for post in export.get("posts") or []:
        if len(pairs) >= MAX_CONTENT_RECORDS:
            logger.info("Content record limit reached", limit=MAX_CONTENT_RECORDS)
            break
        if not isinstance(post, dict):
            continue
        content = post.get("content")
        if post.get("status") not in SCANNED_POST_STATUSES or not isinstance(content, str):
            continue
        if not _contains_any(content, POST_PREFILTER):
            continue
        pairs.append((str(post.get("id", "")), content))
    return pairs


def collect_options(export: dict[str, Any]) -> list[tuple[str, str]]:
    options = export.get("options")
    if not isinstance(options, dict):
        return []
    names = list(COMMON_OPTIONS)
    stylesheet = export.get("stylesheet")
    if stylesheet:
        names.append(f"{stylesheet}_options")

    pairs: list[tuple[str, str]] = []
    for name in names:
        value = options.get(name)
        if isinstance(value, str) and value:
            pairs.append((name, value))
    return pairs


def collect_customizer_settings(export: dict[str, Any]) -> list[tuple[str, str]]:
    theme_mods = export.get("theme_mods")
    if not isinstance(theme_mods, dict):
        return []
    prefix = f"theme_mods_{export.get('stylesheet') or ''}"
    return [
        (f"{prefix}[{key}]", value)
        for key, value in theme_mods.items()
        if isinstance(value, str)
    ]


def collect_page_builder_data(export: dict[str, Any]) -> list[tuple[str, Node]]:
    """Page-builder rows decoded into documents.

    Rows whose raw data fails the pre-filter or cannot be decoded are skipped.
    """
    section = export.get("page_builder") or {}
    pairs: list[tuple[str, Node]] = []
    for row in section.get("pages") or []:
        if len(pairs) >= MAX_PAGE_BUILDER_ROWS:
            logger.info("Page-builder row limit reached", limit=MAX_PAGE_BUILDER_ROWS)
            break
        if not isinstance(row, dict):
            continue
        data = row.get("data")
        if isinstance(data, str):
            if not _contains_any(data, PAGE_BUILDER_PREFILTER):
                continue
            node = parse_document(data)
        else:
            try:
                node = Node.from_python(data)
            except TypeError:
                node = None
            if node is not None and not _contains_any(node.serialize(), PAGE_BUILDER_PREFILTER):
                continue
        if node is None:
            logger.debug("Page-builder row not decodable, skipped", post_id=row.get("post_id"))
            continue
        pairs.append((str(row.get("post_id", "")), node))
    return pairs


def collect_page_builder_globals(export: dict[str, Any]) -> list[tuple[str, str]]:
    section = export.get("page_builder") or {}
    custom_css = section.get("custom_css") or ""
    custom_js = section.get("custom_js") or ""
    if not isinstance(custom_css, str) or not isinstance(custom_js, str):
        return []
    return [(GLOBAL_SETTINGS_IDENTIFIER, f"{custom_css} {custom_js}")]


def collect_blobs(export: dict[str, Any]) -> dict[SourceKind, list[tuple[str, Any]]]:
    """Build the aggregator ingress mapping from a loaded export.

    Page-builder categories are only collected when the page builder plugin
    is listed in ``active_plugins``.
    """
    blobs: dict[SourceKind, list[tuple[str, Any]]] = {
        SourceKind.CONTENT_RECORD: collect_content_records(export),
        SourceKind.OPTION: collect_options(export),
        SourceKind.CUSTOMIZER_SETTING: collect_customizer_settings(export),
    }
    if PAGE_BUILDER_PLUGIN in (export.get("active_plugins") or []):
        blobs[SourceKind.PAGE_BUILDER_DATA] = collect_page_builder_data(export)
        blobs[SourceKind.PAGE_BUILDER_GLOBAL_SETTING] = collect_page_builder_globals(export)
    return blobs
