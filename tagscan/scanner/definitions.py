"""Pattern registry for the tracking-code detector.

All patterns are pre-compiled at module load time using google-re2.
NO pattern compilation happens per-blob, per-call, or lazily.

google-re2 matches in linear time, so lazy ``.*?`` spans that run to a closing
tag cannot backtrack catastrophically on long single-line content.

IMPORT RULES:
  - ``import re2`` ONLY; ``import re`` is PROHIBITED in this file and any
    tagscan/scanner/ file.
  - Lint gate: grep -r "^import re$|^from re import|^import re " tagscan/scanner/

Flag conventions:
  - ``(?s)`` dot-all for patterns whose body spans a multi-line script block.
  - ``(?i)`` case-insensitive for loader ``<script src=...>`` tags.
  - Identifier matchers are always case-sensitive.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

import re2  # google-re2, not stdlib re


# ---------------------------------------------------------------------------
# PatternDescriptor dataclass
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PatternDescriptor:
    """One recognizable tracking-code family.

    Fields:
        key:          Stable identifier (e.g. ``"google_tag_manager"``).
        display_name: Human label shown next to each Snippet.
        body_matcher: Pre-compiled re2 pattern for the full snippet.
        id_matcher:   Pre-compiled re2 pattern for the tracking identifier.
                      With a capturing group, group 1 is the identifier;
                      otherwise the whole match is.
    """
    key: str
    display_name: str
    body_matcher: Any      # re2._Regexp, pre-compiled at module load
    id_matcher: Any        # re2._Regexp, pre-compiled at module load


# ---------------------------------------------------------------------------
# Identifier fragments
# ---------------------------------------------------------------------------

_UA_ID = r'UA-[0-9]+-[0-9]+'
_GA4_ID = r'G-[A-Z0-9]+'
_GTM_ID = r'GTM-[A-Z0-9]+'
_AW_ID = r'AW-[0-9]+'
_PUB_ID = r'ca-pub-[0-9]+'

#: Broad identifier probe used by the structured walker to decide whether a
#: string leaf is worth a full extraction pass.
TRACKING_ID_PROBE = re2.compile(rf'({_UA_ID}|{_GA4_ID}|{_GTM_ID})')

#: Literal substrings that also qualify a string leaf for extraction.
LEAF_TRIGGERS: tuple[str, ...] = ("gtag", "googletagmanager")


# ===========================================================================
# REGISTRY
# COMPILED AT MODULE LOAD, never per-blob
# Order is the output order of SnippetExtractor.
# ===========================================================================

_DEFINITIONS: list[PatternDescriptor] = [
    # ─── Universal Analytics inline snippet ───────────────────────────────
    PatternDescriptor(
        key="google_analytics_universal",
        display_name="Google Analytics (Universal)",
        body_matcher=re2.compile(
            r'(?s)<script[^>]*>\s*\(function\(i,s,o,g,r,a,m\)[^}]+\}[^<]*gtag[^<]*</script>'
        ),
        id_matcher=re2.compile(_UA_ID),
    ),
    # ─── GA4 loader ───────────────────────────────────────────────────────
    PatternDescriptor(
        key="google_analytics_ga4",
        display_name="Google Analytics 4 (GA4)",
        body_matcher=re2.compile(
            r'(?i)<script[^>]*googletagmanager\.com/gtag/js\?id=G-[A-Z0-9]+[^>]*></script>'
        ),
        id_matcher=re2.compile(_GA4_ID),
    ),
    # ─── gtag('config', ...) calls ────────────────────────────────────────
    PatternDescriptor(
        key="gtag_config",
        display_name="Google gtag() Configuration",
        body_matcher=re2.compile(
            r'''(?s)<script[^>]*>.*?gtag\s*\(\s*["']config["'].*?</script>'''
        ),
        id_matcher=re2.compile(rf'({_UA_ID}|{_GA4_ID}|{_AW_ID})'),
    ),
    # ─── Tag Manager container (comment-delimited) ────────────────────────
    PatternDescriptor(
        key="google_tag_manager",
        display_name="Google Tag Manager",
        body_matcher=re2.compile(
            r'(?s)<!-- Google Tag Manager -->.*?<!-- End Google Tag Manager -->'
        ),
        id_matcher=re2.compile(_GTM_ID),
    ),
    # ─── Tag Manager noscript iframe ──────────────────────────────────────
    PatternDescriptor(
        key="gtm_noscript",
        display_name="Google Tag Manager (noscript)",
        body_matcher=re2.compile(
            r'(?s)<noscript>.*?googletagmanager\.com/ns\.html.*?</noscript>'
        ),
        id_matcher=re2.compile(_GTM_ID),
    ),
    # ─── Ads / AdSense loader ─────────────────────────────────────────────
    PatternDescriptor(
        key="google_ads",
        display_name="Google Ads / AdWords",
        body_matcher=re2.compile(
            r'(?i)<script[^>]*googlesyndication\.com/pagead/js/adsbygoogle\.js[^>]*></script>'
        ),
        id_matcher=re2.compile(rf'({_PUB_ID}|{_AW_ID})'),
    ),
    # ─── Inline adsbygoogle push ──────────────────────────────────────────
    PatternDescriptor(
        key="adsbygoogle",
        display_name="Google AdSense Code",
        body_matcher=re2.compile(
            r'(?s)<script[^>]*>.*?\(adsbygoogle.*?</script>'
        ),
        id_matcher=re2.compile(_PUB_ID),
    ),
    # ─── Optimize loader ──────────────────────────────────────────────────
    PatternDescriptor(
        key="google_optimize",
        display_name="Google Optimize",
        body_matcher=re2.compile(
            r'(?i)<script[^>]*googleoptimize\.com/optimize\.js[^>]*></script>'
        ),
        id_matcher=re2.compile(_GTM_ID),
    ),
    # ─── Legacy analytics.js loader ───────────────────────────────────────
    PatternDescriptor(
        key="analytics_js",
        display_name="Legacy Google Analytics (analytics.js)",
        body_matcher=re2.compile(
            r'(?i)<script[^>]*google-analytics\.com/analytics\.js[^>]*></script>'
        ),
        id_matcher=re2.compile(_UA_ID),
    ),
]


def build_registry(
    descriptors: Iterable[PatternDescriptor],
) -> tuple[PatternDescriptor, ...]:
    """Freeze ``descriptors`` into a registry tuple.

    Raises:
        ValueError: On an empty registry or a duplicated key.
    """
    registry = tuple(descriptors)
    if not registry:
        raise ValueError("Pattern registry must not be empty")
    seen: set[str] = set()
    for descriptor in registry:
        if descriptor.key in seen:
            raise ValueError(f"Duplicate pattern key in registry: {descriptor.key!r}")
        seen.add(descriptor.key)
    return registry


#: The fixed, ordered registry used by default everywhere.
PATTERN_REGISTRY: tuple[PatternDescriptor, ...] = build_registry(_DEFINITIONS)

_BY_KEY: dict[str, PatternDescriptor] = {d.key: d for d in PATTERN_REGISTRY}


def get_descriptor(key: str) -> PatternDescriptor:
    """Look up a registry entry by key. Raises KeyError for unknown keys."""
    return _BY_KEY[key]
