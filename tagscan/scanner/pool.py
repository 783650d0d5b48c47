"""Scan worker pool: optional parallel per-blob extraction.

Provides:
  - ScanPool: ProcessPoolExecutor whose workers each build their own engine
    once via ``scan_worker_init``, tagged with that engine's signature.
  - create_scan_pool(): build a ScanPool, or None for a sequential scan.
  - shutdown_scan_pool(): graceful pool shutdown.
  - pool_scan_blob(): the picklable per-blob job executed inside a worker.
  - engine_signature(): the limits and pattern keys an engine was built with.

Non-negotiables:
  - ProcessPoolExecutor(initializer=scan_worker_init, ...): compiled re2
    patterns never cross the process boundary. Workers receive pattern keys
    and resolve them against their own copy of the registry.
  - Only registries drawn from PATTERN_REGISTRY can be rebuilt in a worker;
    any other registry scans sequentially.
  - Jobs and results are plain picklable values (tuples, Node, Snippet).
"""

from __future__ import annotations

from concurrent.futures import ProcessPoolExecutor
from typing import Any, Optional, Sequence

from tagscan.config import ScannerConfig
from tagscan.scanner.definitions import PATTERN_REGISTRY, PatternDescriptor, get_descriptor
from tagscan.utils.logger import get_logger

logger = get_logger(__name__)

# Per-process engine, set by scan_worker_init() in each worker.
_worker_engine: Optional[Any] = None

EngineSignature = tuple[tuple[str, ...], int, float, int, int]


def engine_signature(
    pattern_keys: tuple[str, ...],
    max_input_chars: int,
    match_budget_s: float,
    context_chars: int,
    max_depth: int,
) -> EngineSignature:
    """Everything that decides an engine's output, as a comparable tuple."""
    return (
        pattern_keys,
        max_input_chars,
        match_budget_s,
        context_chars,
        max_depth,
    )


def resolve_pattern_keys(keys: Sequence[str]) -> tuple[PatternDescriptor, ...]:
    """Rebuild a registry from pattern keys. Raises KeyError for unknown keys."""
    return tuple(get_descriptor(key) for key in keys)


def shippable_keys(registry: Sequence[PatternDescriptor]) -> Optional[tuple[str, ...]]:
    """Pattern keys a worker can rebuild ``registry`` from, or None.

    None when any descriptor is not the PATTERN_REGISTRY entry for its key.
    """
    keys = tuple(d.key for d in registry)
    try:
        rebuilt = resolve_pattern_keys(keys)
    except KeyError:
        return None
    if any(a is not b for a, b in zip(rebuilt, registry)):
        return None
    return keys


class ScanPool(ProcessPoolExecutor):
    """Process pool whose workers hold an engine with ``signature``."""

    def __init__(self, max_workers: int, settings: ScannerConfig, pattern_keys: tuple[str, ...]) -> None:
        super().__init__(
            max_workers=max_workers,
            initializer=scan_worker_init,
            initargs=(settings, pattern_keys),
        )
        self.signature = engine_signature(
            pattern_keys,
            settings.max_input_chars,
            settings.match_budget_s,
            settings.context_chars,
            settings.max_depth,
        )


def scan_worker_init(settings: ScannerConfig, pattern_keys: Sequence[str]) -> None:
    """Build the worker's engine once, before any job runs."""
    global _worker_engine
    from tagscan.scanner.aggregator import build_engine

    _worker_engine = build_engine(settings, resolve_pattern_keys(pattern_keys))


def pool_scan_blob(content: Any) -> Any:
    """Scan one blob inside a worker process. Returns a BlobOutcome."""
    if _worker_engine is None:
        raise RuntimeError("scan worker used before scan_worker_init()")
    return _worker_engine.scan_blob(content)


def create_scan_pool(
    settings: ScannerConfig,
    registry: Sequence[PatternDescriptor] = PATTERN_REGISTRY,
) -> Optional[ScanPool]:
    """Create the worker pool, or None for a sequential scan.

    Never raises. Returns None when ``settings.workers`` is 0, when the
    registry holds descriptors workers cannot rebuild, or when pool creation
    fails; the scan then runs sequentially with identical results.
    """
    if settings.workers <= 0:
        return None

    pattern_keys = shippable_keys(registry)
    if pattern_keys is None:
        logger.warning(
            "Custom pattern registry cannot be shipped to workers, scanning sequentially",
            workers=settings.workers,
        )
        return None

    try:
        pool = ScanPool(settings.workers, settings, pattern_keys)
    except (OSError, ValueError) as exc:
        logger.error(
            "Scan pool creation failed, falling back to sequential scan",
            workers=settings.workers,
            error=str(exc),
        )
        return None
    logger.info("Scan pool started", workers=settings.workers)
    return pool


def shutdown_scan_pool(pool: Optional[ProcessPoolExecutor]) -> None:
    if pool is None:
        return
    pool.shutdown(wait=True)
    logger.debug("Scan pool shut down")
