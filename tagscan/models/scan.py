"""Scan result contracts: Snippet, LocatedItem, ScanReport, SourceKind.

All result types are frozen dataclasses. A ScanReport is built once per scan
invocation and never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, Optional


class SourceKind(str, Enum):
    """Category of content source a blob was read from."""

    CONTENT_RECORD = "content-record"
    OPTION = "option"
    CUSTOMIZER_SETTING = "customizer-setting"
    PAGE_BUILDER_DATA = "page-builder-data"
    PAGE_BUILDER_GLOBAL_SETTING = "page-builder-global-setting"
    THEME_FILE = "theme-file"

    @classmethod
    def parse(cls, label: "SourceKind | str") -> "SourceKind":
        """Resolve a category label to a SourceKind.

        Raises:
            ValueError: If ``label`` is not a known category. An unknown label
                        is a caller bug, not a data irregularity.
        """
        if isinstance(label, cls):
            return label
        try:
            return cls(label)
        except ValueError:
            raise ValueError(
                f"Unknown source category {label!r}; "
                f"expected one of {[k.value for k in cls]}"
            ) from None


@dataclass(frozen=True)
class Snippet:
    """One located match of a tracking-code pattern.

    Fields:
        pattern_key:   PatternDescriptor.key of the matching pattern.
        display_name:  Human label of the matching pattern.
        raw_content:   Exact matched substring, unmodified.
        length:        len(raw_content).
        byte_offset:   Start offset of the match in the scanned text.
        line_number:   1-based line of byte_offset.
        context:       Up to 100 chars either side of the match, clamped.
        extracted_ids: Unique tracking identifiers in first-occurrence order.
        location_hint: Key path inside a structured document, when the
                       snippet came from the leaf-string pass of a walk.
    """

    pattern_key: str
    display_name: str
    raw_content: str
    length: int
    byte_offset: int
    line_number: int
    context: str
    extracted_ids: tuple[str, ...] = ()
    location_hint: Optional[str] = None

    def with_location(self, location_hint: str) -> "Snippet":
        return replace(self, location_hint=location_hint)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "key": self.pattern_key,
            "type": self.display_name,
            "content": self.raw_content,
            "length": self.length,
            "position": self.byte_offset,
            "line_number": self.line_number,
            "context": self.context,
            "extracted_ids": list(self.extracted_ids),
        }
        if self.location_hint is not None:
            data["location_hint"] = self.location_hint
        return data


@dataclass(frozen=True)
class LocatedItem:
    """A content source together with every Snippet found inside it."""

    source_kind: SourceKind
    source_identifier: str
    snippets: tuple[Snippet, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_kind": self.source_kind.value,
            "source_identifier": self.source_identifier,
            "snippets": [s.to_dict() for s in self.snippets],
        }


@dataclass(frozen=True)
class ScanReport:
    """Aggregate result of one scan invocation.

    INVARIANT: ``total_snippets == 0`` if and only if ``safety_score == 100``.

    ``categories`` always holds every SourceKind, with an empty tuple for
    categories that produced no Located Item.
    """

    scan_id: str
    categories: Mapping[SourceKind, tuple[LocatedItem, ...]]
    total_snippets: int
    unique_ids: frozenset[str]
    safety_score: int
    message: str
    truncated: tuple[str, ...] = field(default=())

    @property
    def total_locations(self) -> int:
        return sum(len(items) for items in self.categories.values())

    def items(self, kind: SourceKind | str) -> tuple[LocatedItem, ...]:
        return self.categories[SourceKind.parse(kind)]

    def to_dict(self) -> dict[str, Any]:
        """Structural mapping of the report, ready for ``json.dumps``.

        ``unique_ids`` is emitted sorted so the output is stable.
        """
        return {
            "scan_id": self.scan_id,
            "categories": {
                kind.value: [item.to_dict() for item in items]
                for kind, items in self.categories.items()
            },
            "total_snippets": self.total_snippets,
            "total_locations": self.total_locations,
            "unique_ids": sorted(self.unique_ids),
            "safety_score": self.safety_score,
            "message": self.message,
            "truncated": list(self.truncated),
        }
