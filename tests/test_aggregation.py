"""
Tests for survey aggregation
"""
import pytest
from datetime import datetime
import pytz
from app.analytics.aggregation import (
    SatisfactionLevel,
    category_breakdown,
    comment_count,
    composite_satisfaction,
    field_averages,
    monthly_nps_trend,
    normalized_field_averages,
    referral_breakdown,
    response_satisfaction,
    satisfaction_level,
    section_scores,
)
from app.surveys.vocabulary import WAITING_TIME_LABELS


def test_field_averages(make_survey):
    responses = [
        make_survey(doctor_listening=5, website_design_rating=3),
        make_survey(doctor_listening=3, website_design_rating=1),
    ]
    averages = field_averages(responses)
    assert averages["doctor_listening"] == 4.0
    assert averages["website_design_rating"] == 2.0


def test_field_averages_skip_missing_values(make_survey):
    """Missing ratings are left out of that field's denominator only."""
    responses = [
        make_survey(consultation_time=None, clinic_environment=2),
        make_survey(consultation_time=4, clinic_environment=4),
    ]
    averages = field_averages(responses)
    assert averages["consultation_time"] == 4.0
    assert averages["clinic_environment"] == 3.0


def test_aggregation_empty_input():
    """Empty collections produce empty results, never errors."""
    assert field_averages([]) == {}
    assert normalized_field_averages([]) == []
    assert composite_satisfaction([]) is None
    assert satisfaction_level(None) is None
    assert monthly_nps_trend([]) == []
    assert referral_breakdown([]) == []
    assert comment_count([]) == 0


def test_composite_satisfaction_top_marks(make_survey):
    assert composite_satisfaction([make_survey()]) == pytest.approx(10.0)


def test_composite_satisfaction_bottom_marks(make_survey):
    survey = make_survey(
        website_design_rating=1,
        communication_clarity=1,
        reception_friendliness=1,
        clinic_environment=1,
        doctor_listening=1,
        explanation_clarity=1,
        consultation_time=1,
    )
    assert composite_satisfaction([survey]) == pytest.approx(1.0)
    assert satisfaction_level(response_satisfaction(survey)) == SatisfactionLevel.DISSATISFIED


def test_normalized_field_averages_carry_scale(make_survey):
    ratings = {item.field: item for item in normalized_field_averages([make_survey(website_design_rating=2)])}
    website = ratings["website_design_rating"]
    assert website.average == 2.0
    assert website.normalized == pytest.approx(5.5)
    assert (website.scale.min, website.scale.max) == (1, 3)
    assert website.label == "Facilidad Web"


def test_section_scores(make_survey):
    survey = make_survey(doctor_listening=1, explanation_clarity=1, consultation_time=1)
    scores = section_scores(survey)
    assert scores["booking"] == pytest.approx(10.0)
    assert scores["clinic"] == pytest.approx(10.0)
    assert scores["doctor"] == pytest.approx(1.0)


def test_satisfaction_level_thresholds():
    """Thresholds apply to the 5-point equivalent of the 1-10 composite."""
    assert satisfaction_level(10.0) == SatisfactionLevel.VERY_SATISFIED
    assert satisfaction_level(7.75) == SatisfactionLevel.VERY_SATISFIED  # 4.0
    assert satisfaction_level(7.0) == SatisfactionLevel.SATISFIED  # 3.67
    assert satisfaction_level(5.5) == SatisfactionLevel.NEUTRAL  # 3.0
    assert satisfaction_level(2.0) == SatisfactionLevel.DISSATISFIED


def test_monthly_nps_trend_ascending(make_survey):
    """Months come out oldest first whatever the input order."""
    responses = [
        make_survey(created_at=datetime(2024, 5, 2, tzinfo=pytz.utc), nps_score=2),
        make_survey(created_at=datetime(2024, 1, 10, tzinfo=pytz.utc), nps_score=10),
        make_survey(created_at=datetime(2024, 3, 5, tzinfo=pytz.utc), nps_score=9),
        make_survey(created_at=datetime(2024, 3, 20, tzinfo=pytz.utc), nps_score=3),
    ]
    trend = monthly_nps_trend(responses)
    assert [point.month for point in trend] == ["2024-01", "2024-03", "2024-05"]
    assert [point.nps for point in trend] == [100, 0, -100]
    assert trend[1].responses == 2
    assert trend[0].label == "ene 2024"


def test_monthly_nps_trend_uses_clinic_calendar(make_survey):
    """23:30 UTC on 31 January is already February in Madrid."""
    trend = monthly_nps_trend([make_survey(created_at=datetime(2024, 1, 31, 23, 30, tzinfo=pytz.utc))])
    assert trend[0].month == "2024-02"


def test_monthly_nps_trend_skips_missing_timestamps(make_survey):
    trend = monthly_nps_trend([make_survey(created_at=None), make_survey()])
    assert len(trend) == 1
    assert trend[0].responses == 1


def test_referral_breakdown(make_survey):
    """Percentages are shares of the responses that answered."""
    responses = [
        make_survey(how_did_you_know_us="un_amigo"),
        make_survey(how_did_you_know_us="redes_sociales"),
        make_survey(how_did_you_know_us="un_amigo"),
        make_survey(how_did_you_know_us=None),
    ]
    breakdown = referral_breakdown(responses)
    assert [(item.key, item.count, item.percentage) for item in breakdown] == [
        ("un_amigo", 2, 67),
        ("redes_sociales", 1, 33),
    ]
    assert breakdown[0].label == "Un amigo"


def test_category_breakdown_include_all(make_survey):
    responses = [make_survey(waiting_time="bueno"), make_survey(waiting_time="bueno")]
    breakdown = category_breakdown(responses, "waiting_time", WAITING_TIME_LABELS, include_all=True)
    assert [item.key for item in breakdown] == ["bueno", "malo", "normal"]
    assert [item.count for item in breakdown] == [2, 0, 0]
    assert breakdown[0].percentage == 100


def test_comment_count_ignores_blank(make_survey):
    responses = [
        make_survey(additional_comments="Genial"),
        make_survey(additional_comments="   "),
        make_survey(additional_comments=None),
    ]
    assert comment_count(responses) == 1


def test_dashboard_tolerates_records_missing_fields(make_survey):
    from types import SimpleNamespace
    from app.analytics.service import build_dashboard

    partial = SimpleNamespace(id="legacy-1", created_at=None, doctor_listening=4)
    dashboard = build_dashboard([make_survey(nps_score=10), partial])

    assert dashboard.total == 2
    assert dashboard.nps.total == 1
    assert dashboard.nps.nps == 100
