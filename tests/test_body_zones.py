"""
Tests for body zone frequencies and intensity tiers
"""
from app.analytics.body_zones import (
    IntensityTier,
    body_zone_heatmap,
    effective_zone,
    tally_body_zones,
    tier,
)
from app.surveys.vocabulary import BodyArea


def test_tier_thresholds():
    assert tier(0) == IntensityTier.NONE
    assert tier(1) == IntensityTier.LOW
    assert tier(2) == IntensityTier.LOW
    assert tier(3) == IntensityTier.MEDIUM
    assert tier(5) == IntensityTier.MEDIUM
    assert tier(6) == IntensityTier.HIGH
    assert tier(10) == IntensityTier.HIGH
    assert tier(11) == IntensityTier.VERY_HIGH


def test_effective_zone_substitutes_other(make_survey):
    """A described "other" zone is tallied under the description."""
    survey = make_survey(body_area="otra", other_body_area="  Tobillo ")
    assert effective_zone(survey) == "Tobillo"


def test_effective_zone_blank_other_keeps_sentinel(make_survey):
    assert effective_zone(make_survey(body_area="otra", other_body_area="  ")) == "otra"


def test_effective_zone_canonical(make_survey):
    assert effective_zone(make_survey(body_area="hombro", other_body_area="ignored")) == "hombro"


def test_tally_body_zones(make_survey):
    responses = [
        make_survey(body_area="hombro"),
        make_survey(body_area="rodilla"),
        make_survey(body_area="otra", other_body_area="Tobillo"),
        make_survey(body_area="rodilla"),
    ]
    zones = tally_body_zones(responses)
    assert [(zone.zone, zone.count) for zone in zones] == [
        ("rodilla", 2),
        ("hombro", 1),
        ("Tobillo", 1),
    ]
    assert zones[0].label == "Rodilla"
    assert zones[0].percentage == 50
    assert zones[2].label == "Tobillo"
    assert zones[0].tier == IntensityTier.LOW


def test_tally_body_zones_empty():
    assert tally_body_zones([]) == []


def test_body_zone_heatmap_includes_every_zone(make_survey):
    heatmap = body_zone_heatmap([make_survey(body_area="codo")] * 3)
    zones = {item.zone: item for item in heatmap}

    assert len(heatmap) == len(BodyArea) - 1
    assert BodyArea.OTHER.value not in zones
    assert zones["codo"].count == 3
    assert zones["codo"].tier == IntensityTier.MEDIUM
    assert zones["pie"].count == 0
    assert zones["pie"].tier == IntensityTier.NONE
