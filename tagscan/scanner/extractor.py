"""Snippet extractor: scans one text blob against the pattern registry.

Provides:
  - ``ExtractionResult``: frozen dataclass for one blob's extraction.
  - ``apply_input_cap()``: hard per-blob input limit; first step of extraction.
  - ``SnippetExtractor``: registry-bound extractor with a per-pattern budget.
  - ``extract_snippets()``: convenience wrapper over the default registry.

IMPORT RULES:
  - ``import re2`` ONLY; ``import re`` is PROHIBITED in this file.
  - Lint gate: grep -r "^import re$|^from re import|^import re " tagscan/scanner/
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import re2  # noqa: F401  google-re2. NEVER: import re

from tagscan.constants import CONTEXT_WINDOW_CHARS, MATCH_BUDGET_S, MAX_INPUT_CHARS
from tagscan.models.scan import Snippet
from tagscan.scanner.definitions import PATTERN_REGISTRY, PatternDescriptor
from tagscan.utils.logger import get_logger

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# ExtractionResult
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExtractionResult:
    """Result of extracting one blob.

    Fields:
        snippets:        Snippets in registry order, then text order.
        truncated:       True if the blob was cut to the input cap first.
        original_length: Length before truncation (None when not truncated).
        skipped_keys:    Pattern keys dropped for exceeding the matching budget
                         or raising inside the regex engine.
    """

    snippets: tuple[Snippet, ...] = ()
    truncated: bool = False
    original_length: Optional[int] = None
    skipped_keys: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# apply_input_cap()
# ---------------------------------------------------------------------------


def apply_input_cap(text: str, cap: int = MAX_INPUT_CHARS) -> tuple[str, bool]:
    """Cap ``text`` at ``cap`` chars.

    NEVER raises. O(1) length check when text fits.

    Returns:
        ``(text, False)`` if it fits; ``(text[:cap], True)`` otherwise.
    """
    if len(text) > cap:
        logger.warning(
            "Input truncated before matching",
            cap=cap,
            original_length=len(text),
        )
        return text[:cap], True
    return text, False


# ---------------------------------------------------------------------------
# SnippetExtractor
# ---------------------------------------------------------------------------


class SnippetExtractor:
    """Locate and contextualize every registry match inside a text blob.

    Extraction is a pure function of the text and the registry: the same
    input always yields the same Snippet sequence.
    """

    def __init__(
        self,
        registry: Sequence[PatternDescriptor] = PATTERN_REGISTRY,
        max_input_chars: int = MAX_INPUT_CHARS,
        match_budget_s: float = MATCH_BUDGET_S,
        context_chars: int = CONTEXT_WINDOW_CHARS,
    ) -> None:
        self.registry = tuple(registry)
        self.max_input_chars = max_input_chars
        self.match_budget_s = match_budget_s
        self.context_chars = context_chars

    def extract(self, text: Any) -> list[Snippet]:
        """Return every Snippet in ``text``. Non-str input yields ``[]``."""
        return list(self.extract_with_meta(text).snippets)

    def extract_with_meta(self, text: Any) -> ExtractionResult:
        """Extract ``text`` and report truncation and skipped patterns.

        NEVER raises for any input.
        """
        if not isinstance(text, str) or not text:
            return ExtractionResult()

        original_length = len(text)
        text, truncated = apply_input_cap(text, self.max_input_chars)

        snippets: list[Snippet] = []
        skipped: list[str] = []
        for descriptor in self.registry:
            found = self._match_pattern(descriptor, text)
            if found is None:
                skipped.append(descriptor.key)
                continue
            snippets.extend(found)

        return ExtractionResult(
            snippets=tuple(snippets),
            truncated=truncated,
            original_length=original_length if truncated else None,
            skipped_keys=tuple(skipped),
        )

    def _match_pattern(
        self,
        descriptor: PatternDescriptor,
        text: str,
    ) -> Optional[list[Snippet]]:
        """All non-overlapping matches of one pattern, in text order.

        Returns None when the pattern blew its budget or the engine raised;
        the caller treats that as zero matches for this pattern only.
        """
        deadline = time.perf_counter() + self.match_budget_s
        found: list[Snippet] = []
        try:
            for m in descriptor.body_matcher.finditer(text):
                found.append(self._build_snippet(descriptor, text, m.start(), m.group(0)))
                if time.perf_counter() > deadline:
                    break
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Pattern matching failed, pattern skipped for this blob",
                pattern=descriptor.key,
                error=f"{type(exc).__name__}: {exc}",
            )
            return None

        if time.perf_counter() > deadline:
            logger.warning(
                "Matching budget exceeded, pattern skipped for this blob",
                pattern=descriptor.key,
                budget_ms=round(self.match_budget_s * 1000, 1),
                text_length=len(text),
            )
            return None
        return found

    def _build_snippet(
        self,
        descriptor: PatternDescriptor,
        text: str,
        offset: int,
        raw: str,
    ) -> Snippet:
        end = offset + len(raw)
        context_start = max(0, offset - self.context_chars)
        context_end = min(len(text), end + self.context_chars)
        return Snippet(
            pattern_key=descriptor.key,
            display_name=descriptor.display_name,
            raw_content=raw,
            length=len(raw),
            byte_offset=offset,
            line_number=text.count("\n", 0, offset) + 1,
            context=text[context_start:context_end],
            extracted_ids=extract_ids(descriptor.id_matcher, raw),
        )


def extract_ids(id_matcher: Any, raw: str) -> tuple[str, ...]:
    """Distinct identifiers in ``raw``, first-occurrence order.

    Group 1 when the matcher captures, the whole match otherwise.
    """
    group = 1 if id_matcher.groups else 0
    seen: dict[str, None] = {}
    for m in id_matcher.finditer(raw):
        value = m.group(group)
        if value:
            seen.setdefault(value, None)
    return tuple(seen)


_DEFAULT_EXTRACTOR = SnippetExtractor()


def extract_snippets(text: Any) -> list[Snippet]:
    """Extract ``text`` with the default registry and limits."""
    return _DEFAULT_EXTRACTOR.extract(text)
