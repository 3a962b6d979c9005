"""Survey Pydantic schemas"""
from uuid import UUID
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from app.surveys.vocabulary import (
    REFERRAL_SOURCES_WITH_DETAILS,
    AppointmentType,
    BodyArea,
    ReferralSource,
    TreatmentType,
    WaitingTime,
)


class CreateSurveyRequest(BaseModel):
    """Survey submitted by a patient from the public form"""
    # Section 1: booking
    website_design_rating: int = Field(..., ge=1, le=3, description="Ease of using the website: 1-3")
    communication_clarity: int = Field(..., ge=1, le=3, description="Clarity of pre-visit communication: 1-3")

    # Section 2: appointment and treatment
    appointment_type: AppointmentType
    treatment_type: TreatmentType
    other_treatment: Optional[str] = Field(None, description="Required when treatment_type is 'otro'")
    body_area: BodyArea
    other_body_area: Optional[str] = Field(None, description="Required when body_area is 'otra'")

    # Section 3: clinic
    reception_friendliness: int = Field(..., ge=1, le=5)
    waiting_time: WaitingTime
    clinic_environment: int = Field(..., ge=1, le=5)

    # Section 4: doctor
    doctor_listening: int = Field(..., ge=1, le=5)
    explanation_clarity: int = Field(..., ge=1, le=5)
    consultation_time: int = Field(..., ge=1, le=5)

    # Section 5: overall
    nps_score: int = Field(..., ge=0, le=10, description="Likelihood to recommend: 0-10")
    additional_comments: Optional[str] = None

    # Section 6: referral (optional)
    how_did_you_know_us: Optional[ReferralSource] = None
    referral_details: Optional[str] = None

    @field_validator(
        "other_treatment",
        "other_body_area",
        "additional_comments",
        "how_did_you_know_us",
        "referral_details",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, value):
        """Empty form inputs are stored as NULL."""
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def check_conditional_fields(self):
        """Elaborations are required with their sentinel and dropped without it."""
        if self.treatment_type == TreatmentType.OTHER:
            if not self.other_treatment:
                raise ValueError("other_treatment is required when treatment_type is 'otro'")
        else:
            self.other_treatment = None

        if self.body_area == BodyArea.OTHER:
            if not self.other_body_area:
                raise ValueError("other_body_area is required when body_area is 'otra'")
        else:
            self.other_body_area = None

        if self.how_did_you_know_us is None or self.how_did_you_know_us.value not in REFERRAL_SOURCES_WITH_DETAILS:
            self.referral_details = None
        return self


class SurveyCreatedResponse(BaseModel):
    """Acknowledgement returned to the patient"""
    id: UUID
    created_at: datetime


class SurveyResponseOut(BaseModel):
    """Survey response as shown to staff"""
    id: UUID
    created_at: datetime
    website_design_rating: Optional[int]
    communication_clarity: Optional[int]
    appointment_type: Optional[str]
    treatment_type: Optional[str]
    treatment_label: str
    other_treatment: Optional[str]
    body_area: Optional[str]
    body_area_label: str
    other_body_area: Optional[str]
    reception_friendliness: Optional[int]
    waiting_time: Optional[str]
    waiting_time_label: str
    clinic_environment: Optional[int]
    doctor_listening: Optional[int]
    explanation_clarity: Optional[int]
    consultation_time: Optional[int]
    nps_score: Optional[int]
    nps_band: Optional[str]  # promoter | passive | detractor
    additional_comments: Optional[str]
    how_did_you_know_us: Optional[str]
    referral_details: Optional[str]
    satisfaction_score: Optional[float]  # 1-10 composite


class NpsSummaryResponse(BaseModel):
    """NPS of a set of responses"""
    nps: int
    promoters: int
    passives: int
    detractors: int
    total: int


class SurveyListResponse(BaseModel):
    """Paginated, filtered list of responses"""
    surveys: List[SurveyResponseOut]
    count: int  # Number of items in current response
    total: int
    page: int
    page_size: int
    total_pages: int
    nps: NpsSummaryResponse


class CommentItem(BaseModel):
    """Commented response for the comment browser"""
    id: UUID
    created_at: datetime
    nps_score: Optional[int]
    nps_band: Optional[str]
    comment: str
    satisfaction_score: Optional[float]  # 1-10 composite
    satisfaction_level: Optional[str]
    section_scores: Dict[str, Optional[float]]  # booking / clinic / doctor, 1-10


class CommentSummary(BaseModel):
    total_with_comments: int
    promoters: int
    detractors: int


class CommentListResponse(BaseModel):
    """Paginated comment browser"""
    comments: List[CommentItem]
    count: int
    total: int
    page: int
    page_size: int
    total_pages: int
    summary: CommentSummary
