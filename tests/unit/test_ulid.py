"""Unit tests for tagscan/utils/ulid.py: scan identifier generation."""

from __future__ import annotations

import re
import threading

from tagscan.utils.ulid import generate_scan_id

# Crockford Base32 charset: 0-9 and A-Z, excluding I, L, O, U
ULID_CHARSET = re.compile(r"^[0-9A-HJKMNP-TV-Z]{26}$")


def test_generate_scan_id_returns_string() -> None:
    assert isinstance(generate_scan_id(), str)


def test_generate_scan_id_format() -> None:
    """26 uppercase Crockford Base32 characters."""
    result = generate_scan_id()
    assert ULID_CHARSET.match(result), f"Invalid scan id {result!r}"


def test_generate_scan_id_unique_1000() -> None:
    ids = [generate_scan_id() for _ in range(1000)]
    assert len(set(ids)) == 1000


def test_generate_scan_id_sortable_across_milliseconds() -> None:
    """Ids from later milliseconds sort after earlier ones (timestamp prefix)."""
    first = generate_scan_id()
    threading.Event().wait(0.005)
    second = generate_scan_id()
    assert first[:10] <= second[:10]


def test_generate_scan_id_thread_safe() -> None:
    results: list[str] = []
    lock = threading.Lock()

    def worker() -> None:
        local = [generate_scan_id() for _ in range(100)]
        with lock:
            results.extend(local)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 800
    assert len(set(results)) == 800
