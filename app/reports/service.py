from typing import Iterable, List
from io import BytesIO
import pandas as pd

from app.analytics.aggregation import response_satisfaction
from app.analytics.nps import NPS_BAND_LABELS, classify
from app.surveys.vocabulary import (
    APPOINTMENT_TYPE_LABELS,
    BODY_AREA_LABELS,
    REFERRAL_SOURCE_LABELS,
    TREATMENT_TYPE_LABELS,
    WAITING_TIME_LABELS,
    label_for,
)
from app.utils.timezone import convert_to_clinic_time

EXPORT_DATE_FORMAT = "%d/%m/%Y %H:%M"


def _satisfaction(survey) -> str:
    score = response_satisfaction(survey)
    return f"{score:.1f}" if score is not None else ''


def _nps_band(survey) -> str:
    if survey.nps_score is None:
        return ''
    return NPS_BAND_LABELS[classify(survey.nps_score).value]


def _created_at(survey) -> str:
    created_at = convert_to_clinic_time(survey.created_at)
    return created_at.strftime(EXPORT_DATE_FORMAT) if created_at else ''


# Column header and cell value of every exported column, in order
EXPORT_COLUMNS = [
    ('ID', lambda s: str(s.id)),
    ('Fecha', _created_at),
    ('Facilidad Web', lambda s: s.website_design_rating),
    ('Comunicación Previa', lambda s: s.communication_clarity),
    ('Tipo de Cita', lambda s: label_for(APPOINTMENT_TYPE_LABELS, s.appointment_type)),
    ('Tratamiento', lambda s: label_for(TREATMENT_TYPE_LABELS, s.treatment_type)),
    ('Otro Tratamiento', lambda s: s.other_treatment or ''),
    ('Zona', lambda s: label_for(BODY_AREA_LABELS, s.body_area)),
    ('Otra Zona', lambda s: s.other_body_area or ''),
    ('Amabilidad Recepción', lambda s: s.reception_friendliness),
    ('Tiempo Espera', lambda s: label_for(WAITING_TIME_LABELS, s.waiting_time)),
    ('Ambiente Clínica', lambda s: s.clinic_environment),
    ('Escucha Doctor', lambda s: s.doctor_listening),
    ('Claridad Explicaciones', lambda s: s.explanation_clarity),
    ('Tiempo Consulta', lambda s: s.consultation_time),
    ('NPS Score', lambda s: s.nps_score),
    ('Categoría NPS', _nps_band),
    ('Satisfacción (1-10)', _satisfaction),
    ('Cómo nos conoció', lambda s: label_for(REFERRAL_SOURCE_LABELS, s.how_did_you_know_us)),
    ('Detalle Referencia', lambda s: s.referral_details or ''),
    ('Comentarios', lambda s: s.additional_comments or ''),
]


class ReportsService:
    """Exports survey responses for staff"""

    def __init__(self, columns: List = None):
        self.columns = columns or EXPORT_COLUMNS

    def generate_csv(self, surveys: Iterable) -> BytesIO:
        """Generate CSV file from survey responses, one row per response"""
        data = [
            {header: value(survey) for header, value in self.columns}
            for survey in surveys
        ]
        df = pd.DataFrame(data, columns=[header for header, _ in self.columns])
        buffer = BytesIO()
        df.to_csv(buffer, index=False, encoding='utf-8')
        buffer.seek(0)
        return buffer
