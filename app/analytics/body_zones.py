"""Treated body zone frequencies and intensity tiers"""
from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Optional

from app.analytics.nps import percentage
from app.surveys.vocabulary import BODY_AREA_LABELS, BodyArea


class IntensityTier(str, Enum):
    """Presentation bucket for a zone's treatment count"""
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


# Upper bound (inclusive) of each tier; anything above the last is VERY_HIGH
TIER_UPPER_BOUNDS = (
    (0, IntensityTier.NONE),
    (2, IntensityTier.LOW),
    (5, IntensityTier.MEDIUM),
    (10, IntensityTier.HIGH),
)


class ZoneCount(NamedTuple):
    zone: str
    label: str
    count: int
    percentage: int
    tier: IntensityTier


def tier(count: int) -> IntensityTier:
    """0 none, 1-2 low, 3-5 medium, 6-10 high, more than 10 very high."""
    for upper_bound, zone_tier in TIER_UPPER_BOUNDS:
        if count <= upper_bound:
            return zone_tier
    return IntensityTier.VERY_HIGH


def effective_zone(response) -> Optional[str]:
    """
    Zone a response is tallied under.

    When the patient picked the "other" zone and described it, the
    description is the zone.
    """
    body_area = getattr(response, "body_area", None)
    if not body_area:
        return None
    if isinstance(body_area, Enum):
        body_area = body_area.value
    if body_area == BodyArea.OTHER.value:
        described = (getattr(response, "other_body_area", None) or "").strip()
        if described:
            return described
    return body_area


def tally_body_zones(responses: Iterable) -> List[ZoneCount]:
    """Count responses per effective zone, most treated first."""
    counts: Dict[str, int] = {}
    for response in responses:
        zone = effective_zone(response)
        if zone is None:
            continue
        counts[zone] = counts.get(zone, 0) + 1

    total = sum(counts.values())
    zones = [
        ZoneCount(
            zone=zone,
            label=BODY_AREA_LABELS.get(zone, zone),
            count=count,
            percentage=percentage(count, total),
            tier=tier(count),
        )
        for zone, count in counts.items()
    ]
    return sorted(zones, key=lambda item: item.count, reverse=True)


def body_zone_heatmap(responses: Iterable) -> List[ZoneCount]:
    """Every canonical zone of the body diagram with its count and tier, zeros included."""
    tallied = {item.zone: item for item in tally_body_zones(responses)}
    heatmap = []
    for area in BodyArea:
        if area is BodyArea.OTHER:
            continue
        item = tallied.get(area.value)
        if item is None:
            item = ZoneCount(
                zone=area.value,
                label=BODY_AREA_LABELS[area.value],
                count=0,
                percentage=0,
                tier=IntensityTier.NONE,
            )
        heatmap.append(item)
    return heatmap
