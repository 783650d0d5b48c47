"""ULID generation for scan identifiers.

``generate_scan_id()`` returns a 26-character ULID used as:
  - ScanReport.scan_id
  - the scan_id correlation key bound into structured log entries

Uses the ``python-ulid`` library. Do not hand-roll ULID generation.
"""

from __future__ import annotations

from ulid import ULID


def generate_scan_id() -> str:
    """Generate a new ULID as a 26-character uppercase string.

    Returns:
        str: Crockford Base32 ULID, e.g. ``"01KJ0JRVHYA7KX32VPN5ZSCTMV"``.
    """
    return str(ULID())
