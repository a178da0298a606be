"""Body composition calculators built on skinfolds, girths and breadths."""

import logging
import math
from collections.abc import Iterable

from clinical_nutrition.domain.composition import (
    BmiDiagnosis,
    BodyFatResult,
    BodyMassSplit,
    FiveComponentResult,
    WaistToHeight,
)
from clinical_nutrition.domain.measurements import Measurement, Somatotype
from clinical_nutrition.domain.patients import PatientType, Sex
from clinical_nutrition.domain.units import millimeters

_logger = logging.getLogger(__name__)

BODY_FAT_RANGE = (3.0, 50.0)
SOMATOTYPE_FLOOR = 0.5
PHANTOM_HEIGHT_CM = 170.18

# Phantom reference values (mean, standard deviation).
_PHANTOM_SKINFOLDS = {
    "triceps": (15.4, 4.47),
    "subscapular": (17.2, 5.07),
    "supraspinale": (15.4, 4.47),
    "abdominal": (25.4, 7.78),
    "thigh": (27.0, 8.33),
    "calf": (16.0, 4.67),
}
_PHANTOM_GIRTHS = {
    "arm_relaxed": (26.89, 2.33),
    "forearm": (25.13, 1.41),
    "thigh": (55.82, 4.23),
    "calf": (35.25, 2.30),
}
_PHANTOM_BREADTHS = {
    "humerus": (6.48, 0.35),
    "femur": (9.52, 0.48),
    "wrist": (5.21, 0.28),
    "ankle": (6.68, 0.36),
    "biacromial": (38.04, 1.92),
    "biiliocristal": (28.84, 1.75),
}
_PHANTOM_HEAD = (57.20, 1.52)
_PHANTOM_MASSES = {
    "adipose": (12.13, 3.25),
    "muscle": (25.55, 2.99),
    "bone": (6.68, 0.85),
    "residual": (6.35, 1.24),
}
_SKIN_THICKNESS_MM = 2.07
_SKIN_DENSITY = 1.05

_FIVE_COMPONENT_SKINFOLDS = ("triceps", "subscapular")
_FIVE_COMPONENT_GIRTHS = ("arm_relaxed", "thigh", "calf")
_FIVE_COMPONENT_BREADTHS = ("humerus", "femur")

_FORMULA_NAMES = {
    PatientType.GENERAL: "Wilmore & Behnke",
    PatientType.CONTROL: "Durnin & Womersley",
    PatientType.FITNESS: "Katch & McArdle",
    PatientType.ATHLETE: "Withers",
    PatientType.RAPID: "Sloan",
}


def estimate_body_fat(
    measurement: Measurement,
    sex: Sex,
    patient_type: PatientType = PatientType.GENERAL,
) -> BodyFatResult:
    """Estimate body fat % from skinfolds.

    The profile-specific density equation is tried first and converted with
    Siri. When it lacks the sites it needs, or yields a non-positive value,
    the modified Yuhasz regression over all recorded skinfolds is used. The
    result is clamped to 3-50 % and rounded to one decimal.
    """
    folds = _clamped_skinfolds(measurement)
    if not folds:
        return BodyFatResult(value=None, method="unavailable", formula_used="none")

    density = body_density(folds, sex, patient_type)
    if density is not None:
        fat = siri(density)
        if fat > 0:
            return BodyFatResult(
                value=_clamp_body_fat(fat),
                method="primary",
                formula_used=f"{_FORMULA_NAMES[patient_type]} + Siri",
                density=round(density, 5),
            )

    total = sum(folds.values())
    if total <= 0:
        return BodyFatResult(value=None, method="unavailable", formula_used="none")
    if sex == Sex.MALE:
        fat = total * 0.097 + 3.64
    else:
        fat = total * 0.1429 + 4.56
    _logger.info(
        "Body fat fell back to Yuhasz: profile=%s sites=%s", patient_type, len(folds)
    )
    return BodyFatResult(
        value=_clamp_body_fat(fat),
        method="fallback:yuhasz",
        formula_used="Yuhasz (modified)",
    )


def body_density(
    folds: dict[str, float], sex: Sex, patient_type: PatientType
) -> float | None:
    """Return body density (g/mL) for a profile, or None if sites are missing."""
    male = sex == Sex.MALE

    def need(*sites: str) -> list[float] | None:
        values = [folds.get(site, 0.0) for site in sites]
        return values if all(value > 0 for value in values) else None

    if patient_type == PatientType.GENERAL:
        if male:
            values = need("abdominal", "thigh")
            if values is None:
                return None
            abdominal, thigh = values
            return 1.08543 - 0.000886 * abdominal - 0.00040 * thigh
        values = need("subscapular", "triceps", "thigh")
        if values is None:
            return None
        subscapular, triceps, thigh = values
        return 1.06234 - 0.00068 * subscapular - 0.00039 * triceps - 0.00025 * thigh

    if patient_type == PatientType.CONTROL:
        total = sum(
            folds.get(site, 0.0)
            for site in ("triceps", "biceps", "subscapular", "iliac_crest")
        )
        if total <= 0:
            return None
        if male:
            return 1.1765 - 0.0744 * math.log10(total)
        return 1.1567 - 0.0717 * math.log10(total)

    if patient_type == PatientType.FITNESS:
        if male:
            values = need("triceps", "subscapular", "abdominal")
            if values is None:
                return None
            triceps, subscapular, abdominal = values
            return (
                1.09655
                - 0.00103 * triceps
                - 0.00056 * subscapular
                + 0.00054 * abdominal
            )
        values = need("subscapular", "iliac_crest")
        if values is None:
            return None
        subscapular, iliac = values
        return 1.09246 - 0.00049 * subscapular - 0.00075 * iliac

    if patient_type == PatientType.ATHLETE:
        if male:
            sites = (
                "triceps",
                "subscapular",
                "biceps",
                "supraspinale",
                "abdominal",
                "thigh",
                "calf",
            )
            total = sum(folds.get(site, 0.0) for site in sites)
            return 1.0988 - 0.0004 * total if total > 0 else None
        total = sum(
            folds.get(site, 0.0)
            for site in ("triceps", "subscapular", "supraspinale", "calf")
        )
        return 1.20953 - 0.08294 * math.log10(total) if total > 0 else None

    if patient_type == PatientType.RAPID:
        if male:
            values = need("thigh", "subscapular")
            if values is None:
                return None
            thigh, subscapular = values
            return 1.1043 - 0.001327 * thigh - 0.001310 * subscapular
        values = need("iliac_crest", "triceps")
        if values is None:
            return None
        iliac, triceps = values
        return 1.0764 - 0.00081 * iliac - 0.00088 * triceps

    return None


def siri(density: float) -> float:
    """Convert body density to body fat % (Siri, 1961)."""
    if density <= 0:
        return 0.0
    return 495 / density - 450


def body_mass_split(weight_kg: float, body_fat_percent: float) -> BodyMassSplit:
    fat_mass = weight_kg * body_fat_percent / 100
    return BodyMassSplit(
        fat_mass_kg=round(fat_mass, 2), lean_mass_kg=round(weight_kg - fat_mass, 2)
    )


def five_component_fractionation(
    measurement: Measurement,
) -> FiveComponentResult | None:
    """Partition body mass into skin, adipose, muscle, bone and residual (Kerr).

    Returns None unless triceps and subscapular skinfolds, humerus and femur
    breadths and relaxed arm, thigh and calf girths are all present and
    positive. Missing sites are never treated as zero.
    """
    weight = measurement.weight_kg
    height = measurement.height_cm
    if weight <= 0 or height <= 0:
        return None
    folds = _clamped_skinfolds(measurement)
    required = (
        [folds.get(site) for site in _FIVE_COMPONENT_SKINFOLDS]
        + [measurement.girth(site) for site in _FIVE_COMPONENT_GIRTHS]
        + [measurement.breadth(site) for site in _FIVE_COMPONENT_BREADTHS]
    )
    if any(value is None or value <= 0 for value in required):
        return None

    skin = _skin_mass(weight, height)

    z_adipose = _mean_z(
        _phantom_z(folds.get(site), height, *reference)
        for site, reference in _PHANTOM_SKINFOLDS.items()
    )

    muscle_z = []
    for site in ("arm_relaxed", "thigh", "calf"):
        fold_site = "triceps" if site == "arm_relaxed" else site
        girth = measurement.girth(site) or 0.0
        corrected = girth - math.pi * (folds.get(fold_site, 0.0) / 10)
        muscle_z.append(_phantom_z(corrected, height, *_PHANTOM_GIRTHS[site]))
    muscle_z.append(
        _phantom_z(measurement.girth("forearm"), height, *_PHANTOM_GIRTHS["forearm"])
    )
    z_muscle = _mean_z(muscle_z)

    z_bone = _mean_z(
        _phantom_z(measurement.breadth(site), height, *reference)
        for site, reference in _PHANTOM_BREADTHS.items()
    )

    trunk_z = [
        z
        for z in (
            _phantom_z(measurement.head_circumference_cm, height, *_PHANTOM_HEAD),
            _phantom_z(
                measurement.breadth("biacromial"),
                height,
                *_PHANTOM_BREADTHS["biacromial"],
            ),
            _phantom_z(
                measurement.breadth("biiliocristal"),
                height,
                *_PHANTOM_BREADTHS["biiliocristal"],
            ),
        )
        if z is not None
    ]
    if trunk_z:
        z_residual = sum(trunk_z) / len(trunk_z)
    else:
        z_residual = (z_adipose + z_muscle + z_bone) / 3

    adipose = _phantom_mass(z_adipose, *_PHANTOM_MASSES["adipose"], height)
    muscle = _phantom_mass(z_muscle, *_PHANTOM_MASSES["muscle"], height)
    bone = _phantom_mass(z_bone, *_PHANTOM_MASSES["bone"], height)
    residual = _phantom_mass(z_residual, *_PHANTOM_MASSES["residual"], height)

    raw_total = skin + adipose + muscle + bone + residual
    if raw_total <= 0:
        return None
    factor = weight / raw_total
    difference = raw_total - weight
    return FiveComponentResult(
        adipose_kg=round(adipose * factor, 2),
        muscle_kg=round(muscle * factor, 2),
        bone_kg=round(bone * factor, 2),
        residual_kg=round(residual * factor, 2),
        skin_kg=round(skin * factor, 2),
        raw_total_kg=round(raw_total, 2),
        difference_kg=round(difference, 2),
        difference_percent=round(difference / weight * 100, 1),
    )


def calculate_somatotype(
    measurement: Measurement, age_years: int | None = None
) -> Somatotype | None:
    """Heath-Carter anthropometric somatotype.

    Returns None for patients under 18 or when any required site is
    missing. Each component is floored at 0.5.
    """
    if age_years is not None and age_years < 18:
        return None
    height = measurement.height_cm
    weight = measurement.weight_kg
    if height <= 0 or weight <= 0:
        return None
    folds = _clamped_skinfolds(measurement)
    triceps = folds.get("triceps", 0.0)
    subscapular = folds.get("subscapular", 0.0)
    supraspinale = folds.get("supraspinale", 0.0)
    calf_fold = folds.get("calf", 0.0)
    humerus = measurement.breadth("humerus") or 0.0
    femur = measurement.breadth("femur") or 0.0
    arm_flexed = measurement.girth("arm_flexed") or 0.0
    calf_girth = measurement.girth("calf") or 0.0
    required = (
        triceps, subscapular, supraspinale, humerus, femur, arm_flexed, calf_girth
    )
    if min(required) <= 0:
        return None

    x = (triceps + subscapular + supraspinale) * (PHANTOM_HEIGHT_CM / height)
    endomorphy = -0.7182 + 0.1451 * x - 0.00068 * x**2 + 0.0000014 * x**3

    mesomorphy = (
        0.858 * humerus
        + 0.601 * femur
        + 0.188 * (arm_flexed - triceps / 10)
        + 0.161 * (calf_girth - calf_fold / 10)
        - 0.131 * height
        + 4.5
    )

    hwr = height / weight ** (1 / 3)
    if hwr >= 40.75:
        ectomorphy = 0.732 * hwr - 28.58
    elif hwr > 38.25:
        ectomorphy = 0.463 * hwr - 17.63
    else:
        ectomorphy = SOMATOTYPE_FLOOR

    return Somatotype(
        endomorphy=max(SOMATOTYPE_FLOOR, round(endomorphy, 1)),
        mesomorphy=max(SOMATOTYPE_FLOOR, round(mesomorphy, 1)),
        ectomorphy=max(SOMATOTYPE_FLOOR, round(ectomorphy, 1)),
    )


def calculate_bmi(weight_kg: float, height_cm: float) -> float | None:
    if weight_kg <= 0 or height_cm <= 0:
        return None
    height_m = height_cm / 100
    return round(weight_kg / (height_m * height_m), 1)


def diagnose_bmi(
    weight_kg: float, height_cm: float, age_years: int
) -> BmiDiagnosis | None:
    """Classify BMI with adult or geriatric (60+) cut-offs.

    Under 18 the BMI is reported without a category; growth z-scores are
    the reference for children.
    """
    bmi = calculate_bmi(weight_kg, height_cm)
    if bmi is None:
        return None
    if age_years < 18:
        return BmiDiagnosis(
            bmi=bmi, category="use growth z-scores", population="pediatric"
        )
    if age_years >= 60:
        if bmi < 23:
            category = "underweight"
        elif bmi <= 28:
            category = "normal"
        elif bmi <= 32:
            category = "overweight"
        else:
            category = "obesity"
        return BmiDiagnosis(bmi=bmi, category=category, population="geriatric")
    if bmi < 18.5:
        category = "underweight"
    elif bmi < 25:
        category = "normal"
    elif bmi < 30:
        category = "overweight"
    elif bmi < 35:
        category = "obesity class I"
    elif bmi < 40:
        category = "obesity class II"
    else:
        category = "obesity class III"
    return BmiDiagnosis(bmi=bmi, category=category, population="adult")


def waist_to_height(waist_cm: float, height_cm: float) -> WaistToHeight | None:
    if waist_cm <= 0 or height_cm <= 0:
        return None
    ratio = round(waist_cm / height_cm, 2)
    return WaistToHeight(ratio=ratio, at_risk=ratio >= 0.5)


def height_from_tibia(tibia_length_cm: float) -> float:
    """Estimate stature from tibial length (Stevenson, 1995)."""
    return round(3.26 * tibia_length_cm + 30.8, 1)


def _clamped_skinfolds(measurement: Measurement) -> dict[str, float]:
    folds: dict[str, float] = {}
    for site in measurement.skinfolds:
        value = measurement.skinfold(site)
        if value is not None:
            folds[site] = float(millimeters(value))
    return folds


def _clamp_body_fat(value: float) -> float:
    low, high = BODY_FAT_RANGE
    return round(min(max(value, low), high), 1)


def _phantom_z(
    value: float | None, height: float, mean: float, sd: float
) -> float | None:
    if value is None or value <= 0:
        return None
    return (value * (PHANTOM_HEIGHT_CM / height) - mean) / sd


def _mean_z(values: Iterable[float | None]) -> float:
    present = [value for value in values if value is not None]
    if not present:
        return 0.0
    return sum(present) / len(present)


def _phantom_mass(z: float, mean: float, sd: float, height: float) -> float:
    return max(0.0, (z * sd + mean) * (height / PHANTOM_HEIGHT_CM) ** 3)


def _skin_mass(weight: float, height: float) -> float:
    surface_cm2 = weight**0.425 * height**0.725 * 71.84
    return surface_cm2 * (_SKIN_THICKNESS_MM / 10) * _SKIN_DENSITY / 1000
