"""Risk scorer: maps aggregate counts to a safety score and verdict.

Tiers are evaluated in order and the first match wins. Each tier checks BOTH
the snippet bound and the location bound, so 5 snippets across 6 locations
falls through the 85 tier into the 75 tier.
"""

from __future__ import annotations

from typing import NamedTuple, Optional


class RiskVerdict(NamedTuple):
    safety_score: int
    message: str


class _Tier(NamedTuple):
    max_snippets: Optional[int]    # None = unbounded
    max_locations: Optional[int]   # None = unbounded
    verdict: RiskVerdict


NO_TRACKING = RiskVerdict(100, "No Google tracking codes found!")

_TIERS: tuple[_Tier, ...] = (
    _Tier(3, 2, RiskVerdict(95, "Very low risk - minimal tracking code found")),
    _Tier(8, 5, RiskVerdict(85, "Low risk - safe to proceed with cleanup")),
    _Tier(15, None, RiskVerdict(75, "Medium risk - review findings carefully")),
    _Tier(None, None, RiskVerdict(60, "High complexity - manual review strongly recommended")),
)


def score(total_snippets: int, total_locations: int) -> RiskVerdict:
    """Score a scan from its snippet and location counts.

    Raises:
        ValueError: If either count is negative.
    """
    if total_snippets < 0 or total_locations < 0:
        raise ValueError(
            f"Counts must be non-negative, got snippets={total_snippets} "
            f"locations={total_locations}"
        )
    if total_snippets == 0:
        return NO_TRACKING
    for tier in _TIERS:
        if tier.max_snippets is not None and total_snippets > tier.max_snippets:
            continue
        if tier.max_locations is not None and total_locations > tier.max_locations:
            continue
        return tier.verdict
    raise AssertionError("unreachable: last tier is unbounded")
