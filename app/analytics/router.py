"""Analytics REST API endpoints"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Request

from app.analytics.aggregation import CategoryCount, FieldAverage, TrendPoint
from app.analytics.body_zones import ZoneCount
from app.analytics.filters import DateRangePreset, SurveyFilter
from app.analytics.nps import NpsSummary
from app.analytics.schemas import (
    BodyZonesResponse,
    CategoryItem,
    DashboardResponse,
    DashboardSummary,
    RatingAverageItem,
    RatingsResponse,
    ReferralsResponse,
    SnapshotInfo,
    TreatmentsResponse,
    TrendPointItem,
    TrendResponse,
    ZoneItem,
)
from app.analytics.service import AnalyticsService
from app.analytics.snapshot import DashboardSnapshot
from app.auth.middleware import JWTPayload, verify_token, check_permission
from app.surveys.exceptions import InvalidDateRangeException
from app.surveys.schemas import NpsSummaryResponse
from app.surveys.store import ResponseStore, get_response_store


router = APIRouter(
    prefix="/analytics",
    tags=["analytics"],
)


def get_dashboard_snapshot(request: Request) -> DashboardSnapshot:
    """Dependency to get the process-wide dashboard snapshot"""
    return request.app.state.snapshot


def date_window(
    date_preset: DateRangePreset = Query(DateRangePreset.ALL),
    date_from: Optional[date] = Query(None, description="Inclusive, clinic calendar day"),
    date_to: Optional[date] = Query(None, description="Inclusive, clinic calendar day"),
) -> SurveyFilter:
    """Date window shared by every analytics endpoint"""
    if date_from and date_to and date_from > date_to:
        raise InvalidDateRangeException(date_from, date_to)
    return SurveyFilter(date_preset=date_preset, date_from=date_from, date_to=date_to)


def _round(value: Optional[float]) -> Optional[float]:
    return round(value, 2) if value is not None else None


def to_snapshot_info(snapshot: DashboardSnapshot) -> SnapshotInfo:
    return SnapshotInfo(
        responses=len(snapshot.responses),
        fetched_at=snapshot.fetched_at,
        stale=snapshot.is_stale,
        error=str(snapshot.last_error) if snapshot.last_error else None,
    )


def to_nps_summary(summary: NpsSummary) -> NpsSummaryResponse:
    return NpsSummaryResponse(**summary._asdict())


def to_rating_items(ratings: List[FieldAverage]) -> List[RatingAverageItem]:
    return [
        RatingAverageItem(
            field=item.field,
            label=item.label,
            average=_round(item.average),
            normalized=_round(item.normalized),
            scale_min=item.scale.min,
            scale_max=item.scale.max,
        )
        for item in ratings
    ]


def to_trend_items(trend: List[TrendPoint]) -> List[TrendPointItem]:
    return [TrendPointItem(**point._asdict()) for point in trend]


def to_category_items(breakdown: List[CategoryCount]) -> List[CategoryItem]:
    return [CategoryItem(**item._asdict()) for item in breakdown]


def to_zone_items(zones: List[ZoneCount]) -> List[ZoneItem]:
    return [
        ZoneItem(zone=item.zone, label=item.label, count=item.count, percentage=item.percentage, tier=item.tier.value)
        for item in zones
    ]


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    window: SurveyFilter = Depends(date_window),
    store: ResponseStore = Depends(get_response_store),
    snapshot: DashboardSnapshot = Depends(get_dashboard_snapshot),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Every dashboard panel for a date window.

    When the latest refetch failed, the figures come from the last good
    snapshot and `snapshot.error` says why.

    Required permission: survey:read
    """
    check_permission(jwt_payload, "survey:read")

    service = AnalyticsService(store, snapshot)
    dashboard = await service.dashboard(window)

    return DashboardResponse(
        summary=DashboardSummary(
            total_responses=dashboard.total,
            with_comments=dashboard.with_comments,
            nps=to_nps_summary(dashboard.nps),
            satisfaction_score=_round(dashboard.satisfaction),
            satisfaction_level=dashboard.level.value if dashboard.level else None,
        ),
        ratings=to_rating_items(dashboard.ratings),
        trend=to_trend_items(dashboard.trend),
        body_zones=to_zone_items(dashboard.zones),
        heatmap=to_zone_items(dashboard.heatmap),
        referrals=to_category_items(dashboard.referrals),
        appointment_types=to_category_items(dashboard.appointment_types),
        treatment_types=to_category_items(dashboard.treatment_types),
        waiting_times=to_category_items(dashboard.waiting_times),
        snapshot=to_snapshot_info(snapshot),
    )


@router.get("/ratings", response_model=RatingsResponse)
async def get_ratings(
    window: SurveyFilter = Depends(date_window),
    store: ResponseStore = Depends(get_response_store),
    snapshot: DashboardSnapshot = Depends(get_dashboard_snapshot),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Average of each question on its own scale and on the common 1-10 axis.

    Required permission: survey:read
    """
    check_permission(jwt_payload, "survey:read")

    service = AnalyticsService(store, snapshot)
    ratings, composite = await service.ratings(window)

    return RatingsResponse(
        ratings=to_rating_items(ratings),
        satisfaction_score=_round(composite),
        snapshot=to_snapshot_info(snapshot),
    )


@router.get("/nps/trend", response_model=TrendResponse)
async def get_nps_trend(
    window: SurveyFilter = Depends(date_window),
    store: ResponseStore = Depends(get_response_store),
    snapshot: DashboardSnapshot = Depends(get_dashboard_snapshot),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    NPS per calendar month, oldest month first.

    Required permission: survey:read
    """
    check_permission(jwt_payload, "survey:read")

    service = AnalyticsService(store, snapshot)
    trend = await service.nps_trend(window)

    return TrendResponse(
        trend=to_trend_items(trend),
        count=len(trend),
        snapshot=to_snapshot_info(snapshot),
    )


@router.get("/body-zones", response_model=BodyZonesResponse)
async def get_body_zones(
    window: SurveyFilter = Depends(date_window),
    store: ResponseStore = Depends(get_response_store),
    snapshot: DashboardSnapshot = Depends(get_dashboard_snapshot),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Treated body zones with their intensity tier.

    Required permission: survey:read
    """
    check_permission(jwt_payload, "survey:read")

    service = AnalyticsService(store, snapshot)
    zones, heatmap = await service.body_zones(window)

    return BodyZonesResponse(
        zones=to_zone_items(zones),
        heatmap=to_zone_items(heatmap),
        snapshot=to_snapshot_info(snapshot),
    )


@router.get("/referrals", response_model=ReferralsResponse)
async def get_referrals(
    window: SurveyFilter = Depends(date_window),
    store: ResponseStore = Depends(get_response_store),
    snapshot: DashboardSnapshot = Depends(get_dashboard_snapshot),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """Required permission: survey:read"""
    check_permission(jwt_payload, "survey:read")

    service = AnalyticsService(store, snapshot)
    referrals, answered = await service.referrals(window)

    return ReferralsResponse(
        referrals=to_category_items(referrals),
        answered=answered,
        snapshot=to_snapshot_info(snapshot),
    )


@router.get("/treatments", response_model=TreatmentsResponse)
async def get_treatments(
    window: SurveyFilter = Depends(date_window),
    store: ResponseStore = Depends(get_response_store),
    snapshot: DashboardSnapshot = Depends(get_dashboard_snapshot),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Appointment type, treatment type and waiting time breakdowns.

    Required permission: survey:read
    """
    check_permission(jwt_payload, "survey:read")

    service = AnalyticsService(store, snapshot)
    appointment_types, treatment_types, waiting_times = await service.treatments(window)

    return TreatmentsResponse(
        appointment_types=to_category_items(appointment_types),
        treatment_types=to_category_items(treatment_types),
        waiting_times=to_category_items(waiting_times),
        snapshot=to_snapshot_info(snapshot),
    )
