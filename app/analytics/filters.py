"""Filter and sort pipeline over an in-memory response collection"""
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from app.analytics.aggregation import has_comment, response_satisfaction
from app.analytics.nps import NpsBand, classify
from app.surveys.vocabulary import AppointmentType, BodyArea, TreatmentType
from app.utils.timezone import as_utc, end_of_day, start_of_day, utc_now


Predicate = Callable[[object], bool]


class DateRangePreset(str, Enum):
    ALL = "all"
    LAST_7_DAYS = "last_7_days"
    LAST_30_DAYS = "last_30_days"
    LAST_3_MONTHS = "last_3_months"
    CUSTOM = "custom"


PRESET_WINDOWS = {
    DateRangePreset.LAST_7_DAYS: timedelta(days=7),
    DateRangePreset.LAST_30_DAYS: timedelta(days=30),
    DateRangePreset.LAST_3_MONTHS: timedelta(days=90),
}


class SortKey(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    HIGHEST_NPS = "highest_nps"
    LOWEST_NPS = "lowest_nps"
    HIGHEST_SATISFACTION = "highest_satisfaction"
    LOWEST_SATISFACTION = "lowest_satisfaction"


class SurveyFilter(BaseModel):
    """Filter and ordering chosen on the dashboard"""
    search: Optional[str] = None
    search_ids: bool = True
    nps_band: Optional[NpsBand] = None
    appointment_type: Optional[AppointmentType] = None
    treatment_type: Optional[TreatmentType] = None
    body_area: Optional[BodyArea] = None
    has_comments: Optional[bool] = None
    date_preset: DateRangePreset = DateRangePreset.ALL
    date_from: Optional[date] = None  # inclusive, clinic calendar day
    date_to: Optional[date] = None  # inclusive, clinic calendar day
    sort: SortKey = SortKey.NEWEST


def _created_at(response) -> Optional[datetime]:
    return as_utc(getattr(response, "created_at", None))


def search_predicate(term: str, include_ids: bool = True) -> Predicate:
    """Case-insensitive substring match on the comment, and optionally the id."""
    needle = term.lower()

    def predicate(response) -> bool:
        comment = getattr(response, "additional_comments", None) or ""
        if needle in comment.lower():
            return True
        return include_ids and needle in str(getattr(response, "id", "")).lower()

    return predicate


def nps_band_predicate(band: NpsBand) -> Predicate:
    def predicate(response) -> bool:
        score = getattr(response, "nps_score", None)
        return score is not None and classify(score) == band

    return predicate


def field_equals_predicate(field: str, expected) -> Predicate:
    expected = expected.value if isinstance(expected, Enum) else expected

    def predicate(response) -> bool:
        value = getattr(response, field, None)
        value = value.value if isinstance(value, Enum) else value
        return value == expected

    return predicate


def comments_predicate(with_comments: bool) -> Predicate:
    return lambda response: has_comment(response) == with_comments


def date_range_predicate(lower: Optional[datetime], upper: Optional[datetime]) -> Optional[Predicate]:
    """Inclusive bounds on created_at; None when both bounds are open."""
    if lower is None and upper is None:
        return None

    def predicate(response) -> bool:
        created_at = _created_at(response)
        if created_at is None:
            return False
        if lower is not None and created_at < lower:
            return False
        if upper is not None and created_at > upper:
            return False
        return True

    return predicate


def resolve_date_bounds(
    survey_filter: SurveyFilter,
    now: Optional[datetime] = None,
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Turn the preset and the calendar bounds into aware UTC instants.

    Relative presets give a lower bound counted back from now. Calendar
    bounds cover the whole clinic day and tighten the range further.
    """
    now = as_utc(now) if now is not None else utc_now()
    lower = upper = None

    window = PRESET_WINDOWS.get(survey_filter.date_preset)
    if window is not None:
        lower = now - window

    if survey_filter.date_from is not None:
        day_start = start_of_day(survey_filter.date_from)
        lower = day_start if lower is None else max(lower, day_start)
    if survey_filter.date_to is not None:
        upper = end_of_day(survey_filter.date_to)

    return lower, upper


def build_predicates(survey_filter: SurveyFilter, now: Optional[datetime] = None) -> List[Predicate]:
    predicates: List[Predicate] = []
    if survey_filter.search:
        predicates.append(search_predicate(survey_filter.search, survey_filter.search_ids))
    if survey_filter.nps_band is not None:
        predicates.append(nps_band_predicate(survey_filter.nps_band))
    if survey_filter.appointment_type is not None:
        predicates.append(field_equals_predicate("appointment_type", survey_filter.appointment_type))
    if survey_filter.treatment_type is not None:
        predicates.append(field_equals_predicate("treatment_type", survey_filter.treatment_type))
    if survey_filter.body_area is not None:
        predicates.append(field_equals_predicate("body_area", survey_filter.body_area))
    if survey_filter.has_comments is not None:
        predicates.append(comments_predicate(survey_filter.has_comments))

    date_predicate = date_range_predicate(*resolve_date_bounds(survey_filter, now))
    if date_predicate is not None:
        predicates.append(date_predicate)
    return predicates


def _sort_by_optional(responses: List, key: Callable, descending: bool) -> List:
    """Stable sort where responses without a value go last in both directions."""
    present = [response for response in responses if key(response) is not None]
    missing = [response for response in responses if key(response) is None]
    return sorted(present, key=key, reverse=descending) + missing


def sort_responses(responses: Sequence, sort: SortKey) -> List:
    """Order responses; ties keep their source order."""
    responses = list(responses)
    if sort == SortKey.NEWEST:
        return _sort_by_optional(responses, _created_at, descending=True)
    if sort == SortKey.OLDEST:
        return _sort_by_optional(responses, _created_at, descending=False)
    if sort == SortKey.HIGHEST_NPS:
        return _sort_by_optional(responses, lambda r: getattr(r, "nps_score", None), descending=True)
    if sort == SortKey.LOWEST_NPS:
        return _sort_by_optional(responses, lambda r: getattr(r, "nps_score", None), descending=False)
    if sort == SortKey.HIGHEST_SATISFACTION:
        return _sort_by_optional(responses, response_satisfaction, descending=True)
    if sort == SortKey.LOWEST_SATISFACTION:
        return _sort_by_optional(responses, response_satisfaction, descending=False)
    raise ValueError(f"Unknown sort key: {sort}")


def apply_filters(
    responses: Iterable,
    survey_filter: SurveyFilter,
    now: Optional[datetime] = None,
) -> List:
    """
    Filter the full collection with every active predicate, then sort.

    Always starts from the collection passed in, never from a previous result.
    """
    predicates = build_predicates(survey_filter, now)
    matching = [
        response for response in responses
        if all(predicate(response) for predicate in predicates)
    ]
    return sort_responses(matching, survey_filter.sort)


def paginate(items: Sequence, page: int, page_size: int) -> Tuple[List, int]:
    """Slice one page (1-indexed) and report the number of pages."""
    total_pages = (len(items) + page_size - 1) // page_size
    start = (page - 1) * page_size
    return list(items[start:start + page_size]), total_pages
