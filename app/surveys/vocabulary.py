"""Categorical vocabularies of the survey and their display labels"""
from enum import Enum


class AppointmentType(str, Enum):
    IN_PERSON = "presencial"
    REMOTE = "telematica"


class TreatmentType(str, Enum):
    PHYSIOTHERAPY = "fisioterapia"
    OSTEOPATHY = "osteopatia"
    REHABILITATION = "readaptacion"
    DRY_NEEDLING = "puncion_seca"
    ELECTROLYSIS = "electrolisis"
    MANUAL_THERAPY = "terapia_manual"
    OTHER = "otro"


class BodyArea(str, Enum):
    KNEE = "rodilla"
    SHOULDER = "hombro"
    FOOT = "pie"
    HAND = "mano"
    ELBOW = "codo"
    CERVICAL_SPINE = "columna_cervical"
    DORSAL_SPINE = "columna_dorsal"
    LUMBAR_SPINE = "columna_lumbar"
    OTHER = "otra"


class WaitingTime(str, Enum):
    """Perceived waiting time (three qualitative buckets)."""
    BAD = "malo"
    NORMAL = "normal"
    GOOD = "bueno"


class ReferralSource(str, Enum):
    SOCIAL_MEDIA = "redes_sociales"
    PHYSIO_CLINIC = "clinica_fisioterapia"
    FRIEND = "un_amigo"
    ACQUAINTANCE = "un_conocido"


APPOINTMENT_TYPE_LABELS = {
    AppointmentType.IN_PERSON.value: "Presencial",
    AppointmentType.REMOTE.value: "Telemática",
}

TREATMENT_TYPE_LABELS = {
    TreatmentType.PHYSIOTHERAPY.value: "Fisioterapia",
    TreatmentType.OSTEOPATHY.value: "Osteopatía",
    TreatmentType.REHABILITATION.value: "Readaptación",
    TreatmentType.DRY_NEEDLING.value: "Punción Seca",
    TreatmentType.ELECTROLYSIS.value: "Electrólisis",
    TreatmentType.MANUAL_THERAPY.value: "Terapia Manual",
    TreatmentType.OTHER.value: "Otro",
}

BODY_AREA_LABELS = {
    BodyArea.KNEE.value: "Rodilla",
    BodyArea.SHOULDER.value: "Hombro",
    BodyArea.FOOT.value: "Pie",
    BodyArea.HAND.value: "Mano",
    BodyArea.ELBOW.value: "Codo",
    BodyArea.CERVICAL_SPINE.value: "Columna Cervical",
    BodyArea.DORSAL_SPINE.value: "Columna Dorsal",
    BodyArea.LUMBAR_SPINE.value: "Columna Lumbar",
    BodyArea.OTHER.value: "Otra zona",
}

WAITING_TIME_LABELS = {
    WaitingTime.BAD.value: "Malo",
    WaitingTime.NORMAL.value: "Normal",
    WaitingTime.GOOD.value: "Bueno",
}

REFERRAL_SOURCE_LABELS = {
    ReferralSource.SOCIAL_MEDIA.value: "Redes sociales",
    ReferralSource.PHYSIO_CLINIC.value: "Clínica de fisioterapia",
    ReferralSource.FRIEND.value: "Un amigo",
    ReferralSource.ACQUAINTANCE.value: "Un conocido",
}

# Sources that come with a free-text name (clinic, friend, acquaintance)
REFERRAL_SOURCES_WITH_DETAILS = frozenset({
    ReferralSource.PHYSIO_CLINIC.value,
    ReferralSource.FRIEND.value,
    ReferralSource.ACQUAINTANCE.value,
})

# One-time remapping of the retired four-bucket waiting time vocabulary.
# Applied by scripts/migrate_waiting_time.py; the service never accepts these.
LEGACY_WAITING_TIME_MIGRATION = {
    "less_than_5": WaitingTime.GOOD.value,
    "5_to_15": WaitingTime.NORMAL.value,
    "15_to_30": WaitingTime.NORMAL.value,
    "more_than_30": WaitingTime.BAD.value,
}


def label_for(labels: dict, value) -> str:
    """Display label for a stored value, falling back to the raw value."""
    if value is None:
        return ""
    key = value.value if isinstance(value, Enum) else value
    return labels.get(key, str(key))


def values_of(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]
