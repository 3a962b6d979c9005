"""Analytics Pydantic schemas"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel

from app.surveys.schemas import NpsSummaryResponse


class SnapshotInfo(BaseModel):
    """State of the response collection the figures were computed from"""
    responses: int  # Responses in the snapshot, before the date window
    fetched_at: Optional[datetime]
    stale: bool
    error: Optional[str]  # Last fetch failure, when the figures are last-known-good


class RatingAverageItem(BaseModel):
    """Average of one survey question"""
    field: str
    label: str
    average: float  # On the question's own scale
    normalized: float  # 1-10
    scale_min: int
    scale_max: int


class TrendPointItem(BaseModel):
    """NPS of one calendar month"""
    month: str  # YYYY-MM
    label: str
    nps: int
    promoters: int
    passives: int
    detractors: int
    responses: int


class CategoryItem(BaseModel):
    """Count and share of one categorical answer"""
    key: str
    label: str
    count: int
    percentage: int


class ZoneItem(BaseModel):
    """Treatment count of one body zone"""
    zone: str
    label: str
    count: int
    percentage: int
    tier: str  # none, low, medium, high, very_high


class DashboardSummary(BaseModel):
    """Headline figures"""
    total_responses: int
    with_comments: int
    nps: NpsSummaryResponse
    satisfaction_score: Optional[float]  # 1-10 composite
    satisfaction_level: Optional[str]


class RatingsResponse(BaseModel):
    ratings: List[RatingAverageItem]
    satisfaction_score: Optional[float]
    snapshot: SnapshotInfo


class TrendResponse(BaseModel):
    trend: List[TrendPointItem]
    count: int  # Number of months
    snapshot: SnapshotInfo


class BodyZonesResponse(BaseModel):
    zones: List[ZoneItem]  # Effective zones, most treated first
    heatmap: List[ZoneItem]  # Canonical zones, zeros included
    snapshot: SnapshotInfo


class ReferralsResponse(BaseModel):
    referrals: List[CategoryItem]
    answered: int
    snapshot: SnapshotInfo


class TreatmentsResponse(BaseModel):
    appointment_types: List[CategoryItem]
    treatment_types: List[CategoryItem]
    waiting_times: List[CategoryItem]
    snapshot: SnapshotInfo


class DashboardResponse(BaseModel):
    """Every dashboard panel for one date window"""
    summary: DashboardSummary
    ratings: List[RatingAverageItem]
    trend: List[TrendPointItem]
    body_zones: List[ZoneItem]
    heatmap: List[ZoneItem]
    referrals: List[CategoryItem]
    appointment_types: List[CategoryItem]
    treatment_types: List[CategoryItem]
    waiting_times: List[CategoryItem]
    snapshot: SnapshotInfo
