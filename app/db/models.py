from uuid import uuid4
from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from app.db.base import Base
from app.utils.timezone import utc_now
from app.surveys.vocabulary import (
    AppointmentType,
    BodyArea,
    ReferralSource,
    TreatmentType,
    WaitingTime,
    values_of,
)


def in_check(column: str, enum_cls) -> str:
    allowed = ", ".join(f"'{value}'" for value in values_of(enum_cls))
    return f"{column} IN ({allowed})"


def range_check(column: str, low: int, high: int) -> str:
    return f"{column} >= {low} AND {column} <= {high}"


class SurveyResponse(Base):
    """
    One completed patient satisfaction survey.
    Inserted once by the public form, read-only for the dashboard.
    """
    __tablename__ = "survey_responses"
    __table_args__ = (
        CheckConstraint(range_check("website_design_rating", 1, 3), name="ck_website_design_rating"),
        CheckConstraint(range_check("communication_clarity", 1, 3), name="ck_communication_clarity"),
        CheckConstraint(range_check("reception_friendliness", 1, 5), name="ck_reception_friendliness"),
        CheckConstraint(range_check("clinic_environment", 1, 5), name="ck_clinic_environment"),
        CheckConstraint(range_check("doctor_listening", 1, 5), name="ck_doctor_listening"),
        CheckConstraint(range_check("explanation_clarity", 1, 5), name="ck_explanation_clarity"),
        CheckConstraint(range_check("consultation_time", 1, 5), name="ck_consultation_time"),
        CheckConstraint(range_check("nps_score", 0, 10), name="ck_nps_score"),
        CheckConstraint(in_check("waiting_time", WaitingTime), name="survey_responses_waiting_time_check"),
        CheckConstraint(in_check("appointment_type", AppointmentType), name="ck_appointment_type"),
        CheckConstraint(in_check("treatment_type", TreatmentType), name="ck_treatment_type"),
        CheckConstraint(in_check("body_area", BodyArea), name="ck_body_area"),
        CheckConstraint(
            f"how_did_you_know_us IS NULL OR {in_check('how_did_you_know_us', ReferralSource)}",
            name="ck_how_did_you_know_us",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)

    # Section 1: booking
    website_design_rating = Column(Integer, nullable=False)  # 1-3
    communication_clarity = Column(Integer, nullable=False)  # 1-3

    # Section 2: appointment and treatment
    appointment_type = Column(String(20), nullable=False)
    treatment_type = Column(String(50), nullable=False)
    other_treatment = Column(Text, nullable=True)  # only when treatment_type = 'otro'
    body_area = Column(String(50), nullable=False, index=True)
    other_body_area = Column(Text, nullable=True)  # only when body_area = 'otra'

    # Section 3: clinic
    reception_friendliness = Column(Integer, nullable=False)  # 1-5
    waiting_time = Column(String(20), nullable=False)  # malo | normal | bueno
    clinic_environment = Column(Integer, nullable=False)  # 1-5

    # Section 4: doctor
    doctor_listening = Column(Integer, nullable=False)  # 1-5
    explanation_clarity = Column(Integer, nullable=False)  # 1-5
    consultation_time = Column(Integer, nullable=False)  # 1-5

    # Section 5: overall
    nps_score = Column(Integer, nullable=False)  # 0-10
    additional_comments = Column(Text, nullable=True)

    # Section 6: referral
    how_did_you_know_us = Column(String(50), nullable=True)
    referral_details = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
