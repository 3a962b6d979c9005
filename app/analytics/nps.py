"""Net Promoter Score classification and computation"""
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Iterable, NamedTuple, Optional


class NpsBand(str, Enum):
    """Recommendation bands of a 0-10 score"""
    PROMOTER = "promoter"
    PASSIVE = "passive"
    DETRACTOR = "detractor"


NPS_BAND_LABELS = {
    NpsBand.PROMOTER.value: "Promotor",
    NpsBand.PASSIVE.value: "Pasivo",
    NpsBand.DETRACTOR.value: "Detractor",
}

PROMOTER_MIN_SCORE = 9
PASSIVE_MIN_SCORE = 7


class NpsSummary(NamedTuple):
    nps: int
    promoters: int
    passives: int
    detractors: int
    total: int


def classify(score: int) -> NpsBand:
    """
    Classify a 0-10 recommendation score.

    9-10 promoter, 7-8 passive, 0-6 detractor.
    """
    if score >= PROMOTER_MIN_SCORE:
        return NpsBand.PROMOTER
    if score >= PASSIVE_MIN_SCORE:
        return NpsBand.PASSIVE
    return NpsBand.DETRACTOR


def round_half_away_from_zero(value: Decimal | float) -> int:
    """Round to the nearest integer, halves away from zero (12.5 -> 13, -12.5 -> -13)."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percentage(count: int, total: int) -> int:
    """Whole-number share of total; 0 when total is 0."""
    if total <= 0:
        return 0
    return round_half_away_from_zero(Decimal(count * 100) / Decimal(total))


def nps_breakdown(scores: Iterable[Optional[int]]) -> NpsSummary:
    """
    Count bands and compute the NPS of a collection of scores.

    Missing scores are skipped. An empty collection yields an NPS of 0.
    """
    counts = {NpsBand.PROMOTER: 0, NpsBand.PASSIVE: 0, NpsBand.DETRACTOR: 0}
    for score in scores:
        if score is None:
            continue
        counts[classify(score)] += 1

    total = sum(counts.values())
    if total == 0:
        return NpsSummary(nps=0, promoters=0, passives=0, detractors=0, total=0)

    net = counts[NpsBand.PROMOTER] - counts[NpsBand.DETRACTOR]
    nps = round_half_away_from_zero(Decimal(net * 100) / Decimal(total))
    return NpsSummary(
        nps=nps,
        promoters=counts[NpsBand.PROMOTER],
        passives=counts[NpsBand.PASSIVE],
        detractors=counts[NpsBand.DETRACTOR],
        total=total,
    )


def compute_nps(scores: Iterable[Optional[int]]) -> int:
    """NPS of a collection of scores, in [-100, 100]; 0 for an empty collection."""
    return nps_breakdown(scores).nps
