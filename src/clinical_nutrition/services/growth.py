"""WHO child growth z-scores (LMS method) for ages 0-60 months."""

import math
from enum import StrEnum

from clinical_nutrition.domain.composition import ZScoreResult
from clinical_nutrition.domain.patients import Sex


class GrowthIndicator(StrEnum):
    WEIGHT_FOR_AGE = "weight_for_age"
    LENGTH_FOR_AGE = "length_for_age"


# month -> (L, M, S)
_WFA_BOYS = {
    0: (0.3487, 3.3464, 0.14602),
    1: (0.2297, 4.4709, 0.13395),
    2: (0.1970, 5.5675, 0.12385),
    3: (0.1738, 6.3762, 0.11727),
    4: (0.1553, 7.0023, 0.11316),
    5: (0.1395, 7.5105, 0.10990),
    6: (0.1257, 7.9340, 0.10728),
    9: (0.0956, 8.9014, 0.10168),
    12: (0.0705, 9.6479, 0.09805),
    15: (0.0492, 10.2890, 0.09532),
    18: (0.0317, 10.8498, 0.09317),
    21: (0.0169, 11.3548, 0.09145),
    24: (0.0042, 11.8186, 0.09006),
    30: (-0.0158, 12.6304, 0.08792),
    36: (-0.0295, 13.3574, 0.08629),
    42: (-0.0390, 14.0222, 0.08506),
    48: (-0.0456, 14.6442, 0.08412),
    54: (-0.0504, 15.2347, 0.08340),
    60: (-0.0540, 15.8033, 0.08285),
}
_WFA_GIRLS = {
    0: (0.3809, 3.2322, 0.14171),
    1: (0.1714, 4.1873, 0.13724),
    2: (0.0962, 5.1282, 0.12859),
    3: (0.0402, 5.8458, 0.12256),
    4: (-0.0050, 6.4237, 0.11835),
    5: (-0.0430, 6.8985, 0.11515),
    6: (-0.0758, 7.2970, 0.11266),
    9: (-0.1504, 8.2004, 0.10745),
    12: (-0.2064, 8.9418, 0.10407),
    15: (-0.2498, 9.5841, 0.10166),
    18: (-0.2843, 10.1598, 0.09981),
    21: (-0.3121, 10.6901, 0.09833),
    24: (-0.3350, 11.1858, 0.09714),
    30: (-0.3689, 12.0756, 0.09541),
    36: (-0.3922, 12.8713, 0.09420),
    42: (-0.4082, 13.6058, 0.09334),
    48: (-0.4194, 14.2983, 0.09273),
    54: (-0.4272, 14.9598, 0.09232),
    60: (-0.4326, 15.5981, 0.09205),
}
_LFA_BOYS = {
    0: (1, 49.8842, 0.03795),
    1: (1, 54.7244, 0.03557),
    2: (1, 58.4249, 0.03424),
    3: (1, 61.4292, 0.03328),
    4: (1, 63.8860, 0.03257),
    5: (1, 65.9026, 0.03204),
    6: (1, 67.6236, 0.03165),
    9: (1, 71.7686, 0.03112),
    12: (1, 75.7488, 0.03080),
    15: (1, 79.1552, 0.03056),
    18: (1, 82.2614, 0.03038),
    21: (1, 85.1324, 0.03026),
    24: (1, 87.1161, 0.03015),
    30: (1, 91.9092, 0.03001),
    36: (1, 96.0683, 0.02991),
    42: (1, 99.8954, 0.02985),
    48: (1, 103.4732, 0.02981),
    54: (1, 106.8568, 0.02979),
    60: (1, 110.0749, 0.02979),
}
_LFA_GIRLS = {
    0: (1, 49.1477, 0.03790),
    1: (1, 53.6872, 0.03614),
    2: (1, 57.0673, 0.03497),
    3: (1, 59.8029, 0.03411),
    4: (1, 62.0899, 0.03347),
    5: (1, 64.0301, 0.03298),
    6: (1, 65.7311, 0.03261),
    9: (1, 69.7236, 0.03194),
    12: (1, 73.4857, 0.03161),
    15: (1, 76.7972, 0.03141),
    18: (1, 79.8481, 0.03128),
    21: (1, 82.6846, 0.03119),
    24: (1, 84.9764, 0.03110),
    30: (1, 89.8090, 0.03099),
    36: (1, 94.0633, 0.03092),
    42: (1, 97.9627, 0.03088),
    48: (1, 101.5994, 0.03086),
    54: (1, 105.0466, 0.03085),
    60: (1, 108.3557, 0.03085),
}

_TABLES = {
    (GrowthIndicator.WEIGHT_FOR_AGE, Sex.MALE): _WFA_BOYS,
    (GrowthIndicator.WEIGHT_FOR_AGE, Sex.FEMALE): _WFA_GIRLS,
    (GrowthIndicator.LENGTH_FOR_AGE, Sex.MALE): _LFA_BOYS,
    (GrowthIndicator.LENGTH_FOR_AGE, Sex.FEMALE): _LFA_GIRLS,
}

MAX_AGE_MONTHS = 60


def calculate_z_score(
    value: float, age_months: float, sex: Sex, indicator: GrowthIndicator
) -> ZScoreResult | None:
    """Compare a weight (kg) or length (cm) against the WHO reference.

    Returns None when the value is not positive or the age is outside the
    0-60 month table. The z-score is clamped to +/-5 and rounded to two
    decimals before it is interpreted.
    """
    if value <= 0 or age_months < 0 or age_months > MAX_AGE_MONTHS:
        return None
    lms_l, lms_m, lms_s = _interpolate(_TABLES[(indicator, sex)], age_months)
    if abs(lms_l) < 0.0001:
        z = math.log(value / lms_m) / lms_s
    else:
        z = ((value / lms_m) ** lms_l - 1) / (lms_l * lms_s)
    z = round(min(max(z, -5.0), 5.0), 2)
    diagnosis, severity = interpret_z_score(z, indicator)
    return ZScoreResult(
        z_score=z,
        percentile=z_score_to_percentile(z),
        diagnosis=diagnosis,
        severity=severity,
    )


def interpret_z_score(z: float, indicator: GrowthIndicator) -> tuple[str, str]:
    """Return (diagnosis, severity) following WHO cut-offs."""
    if indicator == GrowthIndicator.LENGTH_FOR_AGE:
        if z > 3:
            return "very tall", "severe_positive"
        if z > 2:
            return "tall", "moderate_positive"
        if z >= -2:
            return "normal", "normal"
        if z >= -3:
            return "stunted", "moderate_negative"
        return "severely stunted", "severe_negative"
    if z > 2:
        return "high weight", "moderate_positive"
    if z >= -2:
        return "normal", "normal"
    if z >= -3:
        return "underweight", "moderate_negative"
    return "severely underweight", "severe_negative"


def z_score_to_percentile(z: float) -> int:
    """Approximate the normal CDF (Abramowitz-Stegun) as a whole percentile."""
    t = 1 / (1 + 0.2316419 * abs(z))
    density = 0.3989423 * math.exp(-z * z / 2)
    tail = density * t * (
        0.3193815 + t * (-0.3565638 + t * (1.781478 + t * (-1.821256 + t * 1.330274)))
    )
    return round((1 - tail) * 100) if z > 0 else round(tail * 100)


def _interpolate(
    table: dict[int, tuple[float, float, float]], age_months: float
) -> tuple[float, float, float]:
    ages = sorted(table)
    if age_months <= ages[0]:
        return table[ages[0]]
    if age_months >= ages[-1]:
        return table[ages[-1]]
    for lower, upper in zip(ages, ages[1:], strict=False):
        if lower <= age_months <= upper:
            ratio = (age_months - lower) / (upper - lower)
            low, high = table[lower], table[upper]
            return (
                low[0] + ratio * (high[0] - low[0]),
                low[1] + ratio * (high[1] - low[1]),
                low[2] + ratio * (high[2] - low[2]),
            )
    return table[ages[-1]]
