"""Analytics service layer: dashboard figures over the held snapshot"""
import logging
from datetime import datetime
from typing import List, NamedTuple, Optional, Tuple

from app.analytics.aggregation import (
    CategoryCount,
    FieldAverage,
    SatisfactionLevel,
    TrendPoint,
    category_breakdown,
    comment_count,
    composite_satisfaction,
    monthly_nps_trend,
    normalized_field_averages,
    referral_breakdown,
    satisfaction_level,
)
from app.analytics.body_zones import ZoneCount, body_zone_heatmap, tally_body_zones
from app.analytics.filters import SortKey, SurveyFilter, apply_filters
from app.analytics.nps import NpsSummary, nps_breakdown
from app.analytics.snapshot import DashboardSnapshot
from app.surveys.store import ResponseStore
from app.surveys.vocabulary import (
    APPOINTMENT_TYPE_LABELS,
    TREATMENT_TYPE_LABELS,
    WAITING_TIME_LABELS,
)

logger = logging.getLogger(__name__)


class Dashboard(NamedTuple):
    total: int
    with_comments: int
    nps: NpsSummary
    satisfaction: Optional[float]
    level: Optional[SatisfactionLevel]
    ratings: List[FieldAverage]
    trend: List[TrendPoint]
    zones: List[ZoneCount]
    heatmap: List[ZoneCount]
    referrals: List[CategoryCount]
    appointment_types: List[CategoryCount]
    treatment_types: List[CategoryCount]
    waiting_times: List[CategoryCount]


def treatment_breakdowns(responses: List) -> Tuple[List[CategoryCount], List[CategoryCount], List[CategoryCount]]:
    """Appointment type, treatment type and waiting time, every answer listed."""
    return (
        category_breakdown(responses, "appointment_type", APPOINTMENT_TYPE_LABELS, include_all=True),
        category_breakdown(responses, "treatment_type", TREATMENT_TYPE_LABELS, include_all=True),
        category_breakdown(responses, "waiting_time", WAITING_TIME_LABELS, include_all=True),
    )


def build_dashboard(responses: List) -> Dashboard:
    """Compute every dashboard panel from one response collection."""
    composite = composite_satisfaction(responses)
    appointment_types, treatment_types, waiting_times = treatment_breakdowns(responses)
    return Dashboard(
        total=len(responses),
        with_comments=comment_count(responses),
        nps=nps_breakdown(getattr(response, "nps_score", None) for response in responses),
        satisfaction=composite,
        level=satisfaction_level(composite),
        ratings=normalized_field_averages(responses),
        trend=monthly_nps_trend(responses),
        zones=tally_body_zones(responses),
        heatmap=body_zone_heatmap(responses),
        referrals=referral_breakdown(responses),
        appointment_types=appointment_types,
        treatment_types=treatment_types,
        waiting_times=waiting_times,
    )


class AnalyticsService:
    """Service layer for the analytics dashboard"""

    def __init__(self, store: ResponseStore, snapshot: DashboardSnapshot):
        self.store = store
        self.snapshot = snapshot

    async def responses_in_window(
        self,
        window: SurveyFilter,
        now: Optional[datetime] = None,
    ) -> List:
        """
        Held responses inside the date window, oldest first.

        Only the date part of the filter applies here; the snapshot is
        refetched first when an insert made it stale.
        """
        responses = await self.snapshot.current(self.store)
        date_only = SurveyFilter(
            date_preset=window.date_preset,
            date_from=window.date_from,
            date_to=window.date_to,
            sort=SortKey.OLDEST,
        )
        return apply_filters(responses, date_only, now)

    async def dashboard(self, window: SurveyFilter, now: Optional[datetime] = None) -> Dashboard:
        responses = await self.responses_in_window(window, now)
        dashboard = build_dashboard(responses)
        logger.info(f"Dashboard computed over {dashboard.total} responses (nps={dashboard.nps.nps})")
        return dashboard

    async def ratings(
        self,
        window: SurveyFilter,
        now: Optional[datetime] = None,
    ) -> Tuple[List[FieldAverage], Optional[float]]:
        """Per-question averages and the composite satisfaction."""
        responses = await self.responses_in_window(window, now)
        return normalized_field_averages(responses), composite_satisfaction(responses)

    async def nps_trend(self, window: SurveyFilter, now: Optional[datetime] = None) -> List[TrendPoint]:
        responses = await self.responses_in_window(window, now)
        return monthly_nps_trend(responses)

    async def body_zones(
        self,
        window: SurveyFilter,
        now: Optional[datetime] = None,
    ) -> Tuple[List[ZoneCount], List[ZoneCount]]:
        responses = await self.responses_in_window(window, now)
        return tally_body_zones(responses), body_zone_heatmap(responses)

    async def referrals(
        self,
        window: SurveyFilter,
        now: Optional[datetime] = None,
    ) -> Tuple[List[CategoryCount], int]:
        """Referral breakdown and how many responses answered the question."""
        responses = await self.responses_in_window(window, now)
        breakdown = referral_breakdown(responses)
        return breakdown, sum(item.count for item in breakdown)

    async def treatments(
        self,
        window: SurveyFilter,
        now: Optional[datetime] = None,
    ) -> Tuple[List[CategoryCount], List[CategoryCount], List[CategoryCount]]:
        responses = await self.responses_in_window(window, now)
        return treatment_breakdowns(responses)
