"""Structured data walker: recursive extraction inside page-builder documents.

``walk()`` runs two passes and concatenates them:

  1. The whole document is serialized to canonical JSON and extracted once.
  2. Every string leaf that mentions ``gtag`` / ``googletagmanager`` or holds
     a UA-/G-/GTM- identifier is extracted on its own, and each snippet is
     tagged with the leaf's key path.

The passes are NOT deduplicated. A tracking block stored in one field is
reported by both passes, and the risk thresholds in ``risk.py`` are
calibrated against that doubled count.

``walk_with_meta()`` returns the same snippets plus whether the input cap cut
either pass short.

IMPORT RULES:
  - ``import re2`` ONLY; ``import re`` is PROHIBITED in this file.
"""

from __future__ import annotations

from typing import Any, Optional, Union

import re2  # noqa: F401  google-re2. NEVER: import re

from tagscan.constants import MAX_DOCUMENT_DEPTH
from tagscan.models.document import Node, NodeKind, parse_document
from tagscan.models.scan import Snippet
from tagscan.scanner.definitions import LEAF_TRIGGERS, TRACKING_ID_PROBE
from tagscan.scanner.extractor import ExtractionResult, SnippetExtractor
from tagscan.utils.logger import get_logger

logger = get_logger(__name__)

PathPart = Union[str, int]


def leaf_qualifies(value: str) -> bool:
    """True if a string leaf deserves its own extraction pass."""
    if any(trigger in value for trigger in LEAF_TRIGGERS):
        return True
    return TRACKING_ID_PROBE.search(value) is not None


def format_path(path: tuple[PathPart, ...]) -> str:
    """Render a key path as ``elements.0.settings.html``."""
    return ".".join(str(part) for part in path)


class DocumentWalker:
    """Apply a SnippetExtractor across a structured document."""

    def __init__(
        self,
        extractor: SnippetExtractor,
        max_depth: int = MAX_DOCUMENT_DEPTH,
    ) -> None:
        self.extractor = extractor
        self.max_depth = max_depth

    def walk(self, document: Any) -> list[Snippet]:
        """Return whole-document snippets followed by leaf-string snippets.

        ``document`` may be a Node, a decoded JSON value (dict/list), or raw
        JSON text/bytes. Undecodable input and scalar roots yield ``[]``.
        NEVER raises for malformed data.
        """
        return list(self.walk_with_meta(document).snippets)

    def walk_with_meta(self, document: Any) -> ExtractionResult:
        """Walk ``document`` and report whether any pass hit the input cap.

        ``truncated`` is True when the serialized document or any qualifying
        leaf was cut before matching; ``original_length`` is the serialized
        document's length in that case.
        """
        node = self._coerce(document)
        if node is None or not node.is_container:
            return ExtractionResult()

        snippets: list[Snippet] = []
        truncated = False
        original_length: Optional[int] = None

        # ── Pass 1: whole serialized document ────────────────────────────────
        try:
            serialized = node.serialize()
        except (TypeError, ValueError, RecursionError) as exc:
            logger.warning(
                "Document could not be serialized, whole-document pass skipped",
                error=type(exc).__name__,
            )
        else:
            result = self.extractor.extract_with_meta(serialized)
            snippets.extend(result.snippets)
            truncated = result.truncated
            original_length = result.original_length

        # ── Pass 2: qualifying string leaves ─────────────────────────────────
        leaf_truncated = self._walk_container(node, (), 0, snippets)
        return ExtractionResult(
            snippets=tuple(snippets),
            truncated=truncated or leaf_truncated,
            original_length=original_length,
        )

    def _coerce(self, document: Any) -> Optional[Node]:
        if isinstance(document, Node):
            return document
        if isinstance(document, (str, bytes, bytearray)):
            return parse_document(document)
        try:
            return Node.from_python(document)
        except TypeError as exc:
            logger.debug("Document value not walkable", error=str(exc))
            return None

    def _walk_container(
        self,
        node: Node,
        path: tuple[PathPart, ...],
        depth: int,
        out: list[Snippet],
    ) -> bool:
        """Append leaf snippets under ``node``; True if any leaf was capped."""
        if depth >= self.max_depth:
            logger.debug(
                "Document depth limit reached, branch skipped",
                path=format_path(path),
                max_depth=self.max_depth,
            )
            return False

        truncated = False
        for key, child in node.children():
            child_path = path + (key,)
            if child.kind is NodeKind.STRING:
                if leaf_qualifies(child.value):
                    hint = format_path(child_path)
                    result = self.extractor.extract_with_meta(child.value)
                    truncated = truncated or result.truncated
                    out.extend(snippet.with_location(hint) for snippet in result.snippets)
            elif child.is_container:
                if self._walk_container(child, child_path, depth + 1, out):
                    truncated = True
        return truncated
