"""Scan aggregator: the orchestration entry point of the detection engine.

Receives categorized ``(source_identifier, content)`` pairs from collaborators,
routes each blob to the SnippetExtractor (text) or the DocumentWalker
(structured documents), folds the results into a ScanReport and scores it.

ATOMIC WRAPPER INVARIANTS:
  - ``scan_blob()`` NEVER raises. A blob that blows up the engine is logged
    and contributes no Located Item; the rest of the scan continues.
  - Only programmer errors propagate: an unknown category label raises
    ValueError before any blob is scanned.
  - Sequential and pooled scans produce identical reports (results are
    folded in input order).
"""

from __future__ import annotations

from concurrent.futures import Executor, ProcessPoolExecutor
from concurrent.futures.process import BrokenProcessPool
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from tagscan.config import Config, ScannerConfig
from tagscan.models.document import Node
from tagscan.models.scan import LocatedItem, ScanReport, Snippet, SourceKind
from tagscan.scanner.definitions import PATTERN_REGISTRY, PatternDescriptor
from tagscan.scanner.extractor import SnippetExtractor
from tagscan.scanner.pool import (
    ScanPool,
    create_scan_pool,
    engine_signature,
    pool_scan_blob,
    shippable_keys,
    shutdown_scan_pool,
)
from tagscan.scanner.risk import score
from tagscan.scanner.walker import DocumentWalker
from tagscan.utils.logger import PerformanceLogger, clear_scan_id, get_logger, set_scan_id
from tagscan.utils.ulid import generate_scan_id

logger = get_logger(__name__)

#: Ingress shape: category label -> sequence of (source_identifier, content).
CategorizedBlobs = Mapping[Any, Iterable[tuple[Any, Any]]]


@dataclass(frozen=True)
class BlobOutcome:
    """Snippets found in one blob, plus whether its text was capped."""

    snippets: tuple[Snippet, ...] = ()
    truncated: bool = False


class ScanAggregator:
    """Route blobs through the engine and build the ScanReport.

    The registry and limits are fixed at construction and passed in
    explicitly; the aggregator holds no mutable state between scans.
    """

    def __init__(self, extractor: SnippetExtractor, walker: DocumentWalker) -> None:
        self.extractor = extractor
        self.walker = walker

    def can_use_pool(self, pool: ScanPool) -> bool:
        """True if ``pool``'s workers produce exactly what this engine would."""
        pattern_keys = shippable_keys(self.extractor.registry)
        if pattern_keys is None:
            return False
        return pool.signature == engine_signature(
            pattern_keys,
            self.extractor.max_input_chars,
            self.extractor.match_budget_s,
            self.extractor.context_chars,
            self.walker.max_depth,
        )

    # ── Per-blob ─────────────────────────────────────────────────────────────

    def scan_blob(self, content: Any) -> BlobOutcome:
        """Scan one blob, dispatching on its shape. NEVER raises."""
        try:
            if isinstance(content, (bytes, bytearray)):
                content = bytes(content).decode("utf-8", errors="replace")
            if isinstance(content, str):
                result = self.extractor.extract_with_meta(content)
                return BlobOutcome(result.snippets, result.truncated)
            if isinstance(content, (Node, dict, list)):
                result = self.walker.walk_with_meta(content)
                return BlobOutcome(result.snippets, result.truncated)
            return BlobOutcome()
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Unexpected error scanning blob, blob skipped",
                error=f"{type(exc).__name__}: {exc}",
                exc_info=True,
            )
            return BlobOutcome()

    # ── Whole scan ───────────────────────────────────────────────────────────

    def aggregate(
        self,
        categorized_blobs: CategorizedBlobs,
        executor: Optional[Executor] = None,
        scan_id: Optional[str] = None,
    ) -> ScanReport:
        """Scan every blob and fold the results into a ScanReport.

        Args:
            categorized_blobs: Category label (SourceKind or its value) mapped
                               to ``(source_identifier, content)`` pairs.
            executor:          Pool from ``create_scan_pool()`` or a thread
                               pool; None scans sequentially in this
                               process. Any other process pool, or a
                               ScanPool built for a different engine, is
                               ignored with a warning.
            scan_id:           Correlation id; generated when omitted.

        Raises:
            ValueError: On an unknown category label.
        """
        scan_id = scan_id or generate_scan_id()

        # Resolve every label first so a bad label fails before any work.
        jobs: list[tuple[SourceKind, str, Any]] = []
        for label, pairs in categorized_blobs.items():
            kind = SourceKind.parse(label)
            for source_identifier, content in pairs:
                jobs.append((kind, str(source_identifier), content))

        set_scan_id(scan_id)
        try:
            with PerformanceLogger("scan", logger):
                outcomes = self._run(jobs, executor)
                report = self._fold(scan_id, jobs, outcomes)
        finally:
            clear_scan_id()

        logger.info(
            "Scan complete",
            scan_id=scan_id,
            blobs=len(jobs),
            total_snippets=report.total_snippets,
            total_locations=report.total_locations,
            unique_ids=len(report.unique_ids),
            safety_score=report.safety_score,
        )
        return report

    def _run(
        self,
        jobs: Sequence[tuple[SourceKind, str, Any]],
        executor: Optional[Executor],
    ) -> list[BlobOutcome]:
        contents = [content for _, _, content in jobs]
        job = self._pick_job(executor) if contents else None
        if job is not None:
            try:
                return list(executor.map(job, contents))
            except BrokenProcessPool as exc:
                logger.error(
                    "Scan pool broken, rescanning sequentially",
                    error=str(exc),
                )
        return [self.scan_blob(content) for content in contents]

    def _pick_job(self, executor: Optional[Executor]) -> Optional[Callable[[Any], BlobOutcome]]:
        """Per-blob callable for ``executor``; None means scan sequentially."""
        if executor is None:
            return None
        if isinstance(executor, ScanPool):
            if self.can_use_pool(executor):
                return pool_scan_blob
            logger.warning("Scan pool engine differs from this engine, scanning sequentially")
            return None
        if isinstance(executor, ProcessPoolExecutor):
            # Workers of a foreign process pool have no engine.
            logger.warning("Process pool not created by create_scan_pool, scanning sequentially")
            return None
        # Threads share this engine.
        return self.scan_blob

    def _fold(
        self,
        scan_id: str,
        jobs: Sequence[tuple[SourceKind, str, Any]],
        outcomes: Sequence[BlobOutcome],
    ) -> ScanReport:
        categories: dict[SourceKind, list[LocatedItem]] = {kind: [] for kind in SourceKind}
        unique_ids: set[str] = set()
        truncated: list[str] = []
        total_snippets = 0

        for (kind, source_identifier, _), outcome in zip(jobs, outcomes):
            if outcome.truncated:
                truncated.append(source_identifier)
            if not outcome.snippets:
                continue
            categories[kind].append(
                LocatedItem(kind, source_identifier, outcome.snippets)
            )
            total_snippets += len(outcome.snippets)
            for snippet in outcome.snippets:
                unique_ids.update(snippet.extracted_ids)

        total_locations = sum(len(items) for items in categories.values())
        verdict = score(total_snippets, total_locations)

        return ScanReport(
            scan_id=scan_id,
            categories=MappingProxyType(
                {kind: tuple(items) for kind, items in categories.items()}
            ),
            total_snippets=total_snippets,
            unique_ids=frozenset(unique_ids),
            safety_score=verdict.safety_score,
            message=verdict.message,
            truncated=tuple(truncated),
        )


# ---------------------------------------------------------------------------
# Construction helpers
# ---------------------------------------------------------------------------


def build_engine(
    settings: Optional[ScannerConfig] = None,
    registry: Sequence[PatternDescriptor] = PATTERN_REGISTRY,
) -> ScanAggregator:
    """Build an aggregator wired to one extractor and walker."""
    settings = settings or ScannerConfig()
    extractor = SnippetExtractor(
        registry=registry,
        max_input_chars=settings.max_input_chars,
        match_budget_s=settings.match_budget_s,
        context_chars=settings.context_chars,
    )
    walker = DocumentWalker(extractor, max_depth=settings.max_depth)
    return ScanAggregator(extractor, walker)


def scan(
    categorized_blobs: CategorizedBlobs,
    config: Optional[Config] = None,
) -> ScanReport:
    """One-shot scan using ``config`` (defaults when None).

    Starts a worker pool when ``config.scanner.workers > 0`` and shuts it
    down afterwards.
    """
    config = config or Config.defaults()
    engine = build_engine(config.scanner)
    pool = create_scan_pool(config.scanner, engine.extractor.registry)
    try:
        return engine.aggregate(categorized_blobs, executor=pool)
    finally:
        shutdown_scan_pool(pool)
