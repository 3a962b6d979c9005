"""Survey aggregation: averages, satisfaction composites, trends and breakdowns"""
from collections import OrderedDict
from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence

from app.analytics.normalizer import RATING_SCALES, RatingScale, normalize, normalize_field
from app.analytics.nps import nps_breakdown, percentage
from app.surveys.vocabulary import REFERRAL_SOURCE_LABELS, label_for
from app.utils.timezone import convert_to_clinic_time


RATING_FIELDS = tuple(RATING_SCALES)

RATING_FIELD_LABELS = {
    "website_design_rating": "Facilidad Web",
    "communication_clarity": "Comunicación Previa",
    "reception_friendliness": "Recepción",
    "clinic_environment": "Ambiente Clínica",
    "doctor_listening": "Comunicación Doctor",
    "explanation_clarity": "Claridad Explicación",
    "consultation_time": "Tiempo Consulta",
}

# Survey sections and the rating fields each one groups
SECTION_FIELDS = {
    "booking": ("website_design_rating", "communication_clarity"),
    "clinic": ("reception_friendliness", "clinic_environment"),
    "doctor": ("doctor_listening", "explanation_clarity", "consultation_time"),
}

MONTH_LABELS = {
    1: "ene", 2: "feb", 3: "mar", 4: "abr", 5: "may", 6: "jun",
    7: "jul", 8: "ago", 9: "sep", 10: "oct", 11: "nov", 12: "dic",
}


class SatisfactionLevel(str, Enum):
    """Satisfaction levels based on the composite score"""
    VERY_SATISFIED = "VERY_SATISFIED"
    SATISFIED = "SATISFIED"
    NEUTRAL = "NEUTRAL"
    DISSATISFIED = "DISSATISFIED"


# Lower bounds on the 5-point equivalent of the composite, highest first
SATISFACTION_THRESHOLDS = (
    (4.0, SatisfactionLevel.VERY_SATISFIED),
    (3.5, SatisfactionLevel.SATISFIED),
    (2.5, SatisfactionLevel.NEUTRAL),
)


class FieldAverage(NamedTuple):
    field: str
    label: str
    average: float
    normalized: float
    scale: RatingScale


class TrendPoint(NamedTuple):
    month: str  # YYYY-MM
    label: str
    nps: int
    promoters: int
    passives: int
    detractors: int
    responses: int


class CategoryCount(NamedTuple):
    key: str
    label: str
    count: int
    percentage: int


def _mean(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


def field_averages(responses: Iterable, fields: Sequence[str] = RATING_FIELDS) -> Dict[str, float]:
    """
    Arithmetic mean of each rating field.

    Null ratings are left out of that field's denominator. Fields without any
    value are absent from the result, so an empty collection yields {}.
    """
    collected: Dict[str, List[int]] = {field: [] for field in fields}
    for response in responses:
        for field in fields:
            value = getattr(response, field, None)
            if value is not None:
                collected[field].append(value)

    return {field: _mean(values) for field, values in collected.items() if values}


def normalized_field_averages(responses: Iterable) -> List[FieldAverage]:
    """Per-question averages with their value on the common 1-10 axis."""
    averages = field_averages(responses)
    return [
        FieldAverage(
            field=field,
            label=RATING_FIELD_LABELS[field],
            average=average,
            normalized=normalize_field(field, average),
            scale=RATING_SCALES[field],
        )
        for field, average in averages.items()
    ]


def composite_satisfaction(responses: Iterable, fields: Sequence[str] = RATING_FIELDS) -> Optional[float]:
    """
    Mean of the normalized field averages, on the 1-10 axis.

    Returns None when no field has data.
    """
    averages = field_averages(responses, fields)
    return _mean([normalize_field(field, average) for field, average in averages.items()])


def response_satisfaction(response, fields: Sequence[str] = RATING_FIELDS) -> Optional[float]:
    """Composite satisfaction of a single response, on the 1-10 axis."""
    normalized = [
        normalize_field(field, getattr(response, field, None))
        for field in fields
        if getattr(response, field, None) is not None
    ]
    return _mean(normalized)


def section_scores(response) -> Dict[str, Optional[float]]:
    """Composite of each survey section for one response."""
    return {
        section: response_satisfaction(response, fields)
        for section, fields in SECTION_FIELDS.items()
    }


def satisfaction_level(composite: Optional[float]) -> Optional[SatisfactionLevel]:
    """Map a 1-10 composite onto a satisfaction level; None stays None."""
    if composite is None:
        return None
    five_point = normalize(composite, 1, 10, 1, 5)
    for threshold, level in SATISFACTION_THRESHOLDS:
        if five_point >= threshold:
            return level
    return SatisfactionLevel.DISSATISFIED


def month_key(response) -> Optional[str]:
    created_at = convert_to_clinic_time(getattr(response, "created_at", None))
    if created_at is None:
        return None
    return f"{created_at.year:04d}-{created_at.month:02d}"


def monthly_nps_trend(responses: Iterable) -> List[TrendPoint]:
    """
    NPS per calendar month, ascending.

    Only months with at least one response appear; responses without a
    timestamp are skipped.
    """
    by_month: Dict[str, List[Optional[int]]] = {}
    for response in responses:
        key = month_key(response)
        if key is None:
            continue
        by_month.setdefault(key, []).append(getattr(response, "nps_score", None))

    points = []
    for key in sorted(by_month):
        scores = by_month[key]
        summary = nps_breakdown(scores)
        year, month = key.split("-")
        points.append(TrendPoint(
            month=key,
            label=f"{MONTH_LABELS[int(month)]} {year}",
            nps=summary.nps,
            promoters=summary.promoters,
            passives=summary.passives,
            detractors=summary.detractors,
            responses=len(scores),
        ))
    return points


def category_breakdown(
    responses: Iterable,
    field: str,
    labels: Optional[Dict[str, str]] = None,
    include_all: bool = False,
) -> List[CategoryCount]:
    """
    Count responses per value of a categorical field.

    Absent values are ignored and percentages are shares of the non-absent
    total. With include_all, every value of the label table is reported even
    when its count is zero. Sorted by count descending, ties in first-seen order.
    """
    labels = labels or {}
    counts: Dict[str, int] = OrderedDict()
    if include_all:
        for key in labels:
            counts[key] = 0

    for response in responses:
        value = getattr(response, field, None)
        if value is None or value == "":
            continue
        key = value.value if isinstance(value, Enum) else value
        counts[key] = counts.get(key, 0) + 1

    total = sum(counts.values())
    breakdown = [
        CategoryCount(key=key, label=label_for(labels, key), count=count, percentage=percentage(count, total))
        for key, count in counts.items()
    ]
    return sorted(breakdown, key=lambda item: item.count, reverse=True)


def referral_breakdown(responses: Iterable) -> List[CategoryCount]:
    """How patients heard about the clinic, over responses that answered."""
    return category_breakdown(responses, "how_did_you_know_us", REFERRAL_SOURCE_LABELS)


def has_comment(response) -> bool:
    comment = getattr(response, "additional_comments", None)
    return bool(comment and comment.strip())


def comment_count(responses: Iterable) -> int:
    return sum(1 for response in responses if has_comment(response))
