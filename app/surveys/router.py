"""Survey REST API endpoints"""
from uuid import UUID
from typing import Optional
from datetime import date
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse

from app.analytics.aggregation import response_satisfaction, satisfaction_level, section_scores
from app.analytics.filters import DateRangePreset, SortKey, SurveyFilter, paginate
from app.analytics.nps import NpsBand, classify, nps_breakdown
from app.auth.middleware import JWTPayload, verify_token, check_permission
from app.db.models import SurveyResponse
from app.reports.service import ReportsService
from app.surveys.exceptions import InvalidDateRangeException
from app.surveys.schemas import (
    CommentItem,
    CommentListResponse,
    CommentSummary,
    CreateSurveyRequest,
    NpsSummaryResponse,
    SurveyCreatedResponse,
    SurveyListResponse,
    SurveyResponseOut,
)
from app.surveys.service import SurveyService
from app.surveys.store import ResponseStore, get_response_store
from app.surveys.vocabulary import (
    AppointmentType,
    BodyArea,
    TreatmentType,
    BODY_AREA_LABELS,
    TREATMENT_TYPE_LABELS,
    WAITING_TIME_LABELS,
    label_for,
)
from app.utils.timezone import convert_to_clinic_time, utc_now


router = APIRouter(
    prefix="/surveys",
    tags=["surveys"],
)


def _round(value: Optional[float]) -> Optional[float]:
    return round(value, 2) if value is not None else None


def _band(survey: SurveyResponse) -> Optional[str]:
    return classify(survey.nps_score).value if survey.nps_score is not None else None


def to_response(survey: SurveyResponse) -> SurveyResponseOut:
    """Convert SurveyResponse model to response schema"""
    return SurveyResponseOut(
        id=survey.id,
        created_at=convert_to_clinic_time(survey.created_at),
        website_design_rating=survey.website_design_rating,
        communication_clarity=survey.communication_clarity,
        appointment_type=survey.appointment_type,
        treatment_type=survey.treatment_type,
        treatment_label=label_for(TREATMENT_TYPE_LABELS, survey.treatment_type),
        other_treatment=survey.other_treatment,
        body_area=survey.body_area,
        body_area_label=label_for(BODY_AREA_LABELS, survey.body_area),
        other_body_area=survey.other_body_area,
        reception_friendliness=survey.reception_friendliness,
        waiting_time=survey.waiting_time,
        waiting_time_label=label_for(WAITING_TIME_LABELS, survey.waiting_time),
        clinic_environment=survey.clinic_environment,
        doctor_listening=survey.doctor_listening,
        explanation_clarity=survey.explanation_clarity,
        consultation_time=survey.consultation_time,
        nps_score=survey.nps_score,
        nps_band=_band(survey),
        additional_comments=survey.additional_comments,
        how_did_you_know_us=survey.how_did_you_know_us,
        referral_details=survey.referral_details,
        satisfaction_score=_round(response_satisfaction(survey)),
    )


def to_comment(survey: SurveyResponse) -> CommentItem:
    """Convert a commented SurveyResponse to a comment browser item"""
    composite = response_satisfaction(survey)
    level = satisfaction_level(composite)
    return CommentItem(
        id=survey.id,
        created_at=convert_to_clinic_time(survey.created_at),
        nps_score=survey.nps_score,
        nps_band=_band(survey),
        comment=survey.additional_comments.strip(),
        satisfaction_score=_round(composite),
        satisfaction_level=level.value if level else None,
        section_scores={section: _round(score) for section, score in section_scores(survey).items()},
    )


def survey_filter_params(
    search: Optional[str] = Query(None, description="Text searched in comments and ids"),
    search_ids: bool = Query(True),
    nps_band: Optional[NpsBand] = Query(None),
    appointment_type: Optional[AppointmentType] = Query(None),
    treatment_type: Optional[TreatmentType] = Query(None),
    body_area: Optional[BodyArea] = Query(None),
    has_comments: Optional[bool] = Query(None),
    date_preset: DateRangePreset = Query(DateRangePreset.ALL),
    date_from: Optional[date] = Query(None, description="Inclusive, clinic calendar day"),
    date_to: Optional[date] = Query(None, description="Inclusive, clinic calendar day"),
    sort: SortKey = Query(SortKey.NEWEST),
) -> SurveyFilter:
    """Filter and ordering from the query string"""
    if date_from and date_to and date_from > date_to:
        raise InvalidDateRangeException(date_from, date_to)
    return SurveyFilter(
        search=search,
        search_ids=search_ids,
        nps_band=nps_band,
        appointment_type=appointment_type,
        treatment_type=treatment_type,
        body_area=body_area,
        has_comments=has_comments,
        date_preset=date_preset,
        date_from=date_from,
        date_to=date_to,
        sort=sort,
    )


@router.post("/", response_model=SurveyCreatedResponse, status_code=status.HTTP_201_CREATED)
async def submit_survey(
    request: CreateSurveyRequest,
    store: ResponseStore = Depends(get_response_store),
):
    """
    Submit a survey from the public patient form.

    Business rules:
    - Website and communication ratings: 1-3
    - Clinic and doctor ratings: 1-5
    - NPS: 0-10
    - other_treatment / other_body_area required with 'otro' / 'otra'
    - referral_details kept only for sources that ask for them

    No authentication required.
    """
    service = SurveyService(store)
    survey = await service.submit(request)

    return SurveyCreatedResponse(id=survey.id, created_at=survey.created_at)


@router.get("/", response_model=SurveyListResponse)
async def list_surveys(
    survey_filter: SurveyFilter = Depends(survey_filter_params),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    store: ResponseStore = Depends(get_response_store),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Response table: filtered, sorted and paginated, with the NPS of the
    filtered set.

    Required permission: survey:read
    """
    check_permission(jwt_payload, "survey:read")

    service = SurveyService(store)
    surveys = await service.list_surveys(survey_filter)
    page_items, total_pages = paginate(surveys, page, page_size)
    summary = nps_breakdown(survey.nps_score for survey in surveys)

    return SurveyListResponse(
        surveys=[to_response(survey) for survey in page_items],
        count=len(page_items),
        total=len(surveys),
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        nps=NpsSummaryResponse(**summary._asdict()),
    )


@router.get("/comments", response_model=CommentListResponse)
async def list_comments(
    survey_filter: SurveyFilter = Depends(survey_filter_params),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    store: ResponseStore = Depends(get_response_store),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Comment browser: only responses with a comment.

    The summary counts every commented response, regardless of filters.

    Required permission: survey:read
    """
    check_permission(jwt_payload, "survey:read")

    service = SurveyService(store)
    comments, commented = await service.list_comments(survey_filter)
    page_items, total_pages = paginate(comments, page, page_size)
    summary = nps_breakdown(survey.nps_score for survey in commented)

    return CommentListResponse(
        comments=[to_comment(survey) for survey in page_items],
        count=len(page_items),
        total=len(comments),
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        summary=CommentSummary(
            total_with_comments=len(commented),
            promoters=summary.promoters,
            detractors=summary.detractors,
        ),
    )


@router.get("/export")
async def export_surveys(
    survey_filter: SurveyFilter = Depends(survey_filter_params),
    store: ResponseStore = Depends(get_response_store),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    CSV of every response matching the filters.

    Required permission: survey:export
    """
    check_permission(jwt_payload, "survey:export")

    service = SurveyService(store)
    surveys = await service.list_surveys(survey_filter)
    csv_buffer = ReportsService().generate_csv(surveys)
    filename = f"encuestas_{convert_to_clinic_time(utc_now()).strftime('%Y-%m-%d')}.csv"

    return StreamingResponse(
        csv_buffer,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/{survey_id}", response_model=SurveyResponseOut)
async def get_survey(
    survey_id: UUID,
    store: ResponseStore = Depends(get_response_store),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Get one survey response by ID.

    Required permission: survey:read
    """
    check_permission(jwt_payload, "survey:read")

    service = SurveyService(store)
    survey = await service.get_survey(survey_id)

    return to_response(survey)
