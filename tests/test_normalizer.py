"""
Tests for rating normalization onto the 1-10 axis
"""
import pytest
from app.analytics.normalizer import RATING_SCALES, normalize, normalize_field


def test_normalize_scale_endpoints():
    """Scale endpoints map onto the target endpoints."""
    assert normalize(1, 1, 3) == 1.0
    assert normalize(3, 1, 3) == 10.0
    assert normalize(1, 1, 5) == 1.0
    assert normalize(5, 1, 5) == 10.0


def test_normalize_midpoints():
    assert normalize(2, 1, 3) == pytest.approx(5.5)
    assert normalize(3, 1, 5) == pytest.approx(5.5)
    assert normalize(4, 1, 5) == pytest.approx(7.75)


def test_normalize_clamps_out_of_range():
    assert normalize(0, 1, 5) == 1.0
    assert normalize(7, 1, 5) == 10.0


def test_normalize_degenerate_scale():
    """A zero-width scale maps to the bottom of the target axis."""
    assert normalize(4, 4, 4) == 1.0


def test_normalize_custom_target():
    assert normalize(3, 1, 5, 1, 5) == pytest.approx(3.0)
    assert normalize(10, 1, 10, 1, 5) == pytest.approx(5.0)


def test_normalize_identity_on_target_scale():
    """Normalizing a value already on the 1-10 axis leaves it unchanged."""
    for value in (1, 2.5, 7, 10):
        assert normalize(value, 1, 10) == pytest.approx(value)


def test_normalize_stays_in_bounds():
    for field, scale in RATING_SCALES.items():
        for value in range(scale.min - 1, scale.max + 2):
            assert 1.0 <= normalize_field(field, value) <= 10.0


def test_normalize_field_uses_declared_scale():
    assert normalize_field("website_design_rating", 3) == 10.0
    assert normalize_field("doctor_listening", 3) == pytest.approx(5.5)
