"""Rating normalization across heterogeneous scales"""
from typing import Dict, NamedTuple


class RatingScale(NamedTuple):
    """Closed range a rating field is recorded on."""
    min: int
    max: int


# Common comparison axis for every rating field
TARGET_MIN = 1
TARGET_MAX = 10

THREE_POINT = RatingScale(1, 3)
FIVE_POINT = RatingScale(1, 5)

# Declared scale of each rating field
RATING_SCALES: Dict[str, RatingScale] = {
    "website_design_rating": THREE_POINT,
    "communication_clarity": THREE_POINT,
    "reception_friendliness": FIVE_POINT,
    "clinic_environment": FIVE_POINT,
    "doctor_listening": FIVE_POINT,
    "explanation_clarity": FIVE_POINT,
    "consultation_time": FIVE_POINT,
}


def normalize(
    value: float,
    scale_min: float,
    scale_max: float,
    target_min: float = TARGET_MIN,
    target_max: float = TARGET_MAX,
) -> float:
    """
    Map a rating onto the target axis with a linear affine transform.

    Values outside [scale_min, scale_max] are clamped first. A degenerate
    scale (scale_min == scale_max) maps everything to target_min.

    Args:
        value: Raw rating (or an average of raw ratings)
        scale_min: Lowest value of the source scale
        scale_max: Highest value of the source scale
        target_min: Lowest value of the target axis
        target_max: Highest value of the target axis

    Returns:
        Value on the target axis
    """
    if scale_max == scale_min:
        return float(target_min)
    clamped = max(scale_min, min(scale_max, value))
    ratio = (clamped - scale_min) / (scale_max - scale_min)
    return ratio * (target_max - target_min) + target_min


def normalize_field(
    field: str,
    value: float,
    target_min: float = TARGET_MIN,
    target_max: float = TARGET_MAX,
) -> float:
    """Normalize a value of a known rating field using its declared scale."""
    scale = RATING_SCALES[field]
    return normalize(value, scale.min, scale.max, target_min, target_max)
