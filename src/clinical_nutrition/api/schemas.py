"""Pydantic request models for the engine API."""

from datetime import date
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from clinical_nutrition.domain.measurements import (
    AnthroValue,
    IsakValue,
    Measurement,
    RawValue,
)
from clinical_nutrition.domain.patients import (
    DEFAULT_MEAL_MOMENTS,
    ActivityLevel,
    Allergy,
    AllergySeverity,
    CaloriePreset,
    ClinicalRecord,
    EnergyFormula,
    LactationType,
    MealMoment,
    NutritionConfig,
    Patient,
    PatientType,
    PregnancyInfo,
    ProteinBasis,
    Sex,
)
from clinical_nutrition.domain.protocols import AnemiaInput


class ReadingPayload(BaseModel):
    """Repeated ISAK readings; the final value is resolved server-side."""

    val1: float
    val2: float
    val3: float | None = None


class MeasurementPayload(BaseModel):
    """Anthropometric record; skinfolds in mm, everything else in cm."""

    measured_on: date | None = None
    weight_kg: float = Field(gt=0)
    height_cm: float = Field(gt=0)
    sitting_height_cm: float | None = None
    head_circumference_cm: float | None = None
    skinfolds: dict[str, float | ReadingPayload] = Field(default_factory=dict)
    girths: dict[str, float | ReadingPayload] = Field(default_factory=dict)
    breadths: dict[str, float | ReadingPayload] = Field(default_factory=dict)
    body_fat_percent: float | None = None

    def to_domain(self, patient_id: UUID) -> Measurement:
        return Measurement(
            patient_id=patient_id,
            measured_on=self.measured_on or date.today(),
            weight_kg=self.weight_kg,
            height_cm=self.height_cm,
            sitting_height_cm=self.sitting_height_cm,
            head_circumference_cm=self.head_circumference_cm,
            skinfolds=_sites(self.skinfolds),
            girths=_sites(self.girths),
            breadths=_sites(self.breadths),
            body_fat_percent=self.body_fat_percent,
        )


class AllergyPayload(BaseModel):
    allergen: str
    severity: AllergySeverity = AllergySeverity.FATAL


class MealMomentPayload(BaseModel):
    name: str
    ratio: float = Field(ge=0, le=1)
    enabled: bool = True


class ConfigPayload(BaseModel):
    """Clinician settings; omitted fields use the engine defaults."""

    activity_level: ActivityLevel = ActivityLevel.SEDENTARY
    formula: EnergyFormula | None = None
    carbs_percent: float = Field(default=50.0, ge=0, le=100)
    protein_ratio_g_per_kg: float = Field(default=1.6, gt=0)
    protein_basis: ProteinBasis | None = None
    calorie_preset: CaloriePreset | None = None
    kcal_adjustment: float = 0.0
    patient_type: PatientType = PatientType.GENERAL
    is_athlete: bool = False
    include_tef: bool = False
    meal_moments: list[MealMomentPayload] | None = None
    liked_foods: list[str] = Field(default_factory=list)
    disliked_foods: list[str] = Field(default_factory=list)
    micronutrient_overrides: dict[str, float] = Field(default_factory=dict)

    def to_domain(self) -> NutritionConfig:
        moments = (
            tuple(MealMoment(**moment.model_dump()) for moment in self.meal_moments)
            if self.meal_moments
            else DEFAULT_MEAL_MOMENTS
        )
        return NutritionConfig(
            **self.model_dump(exclude={"meal_moments"}), meal_moments=moments
        )


class PatientPayload(BaseModel):
    """Inline patient for stateless engine calls."""

    id: UUID = Field(default_factory=uuid4)
    owner_id: UUID = Field(default_factory=uuid4)
    name: str = ""
    birth_date: date
    sex: Sex
    weight_kg: float = Field(gt=0)
    height_cm: float = Field(gt=0)
    pathologies: list[str] = Field(default_factory=list)
    medications: list[str] = Field(default_factory=list)
    allergies: list[AllergyPayload] = Field(default_factory=list)
    is_pregnant: bool = False
    trimester: int | None = Field(default=None, ge=1, le=3)
    is_postpartum: bool = False
    config: ConfigPayload = Field(default_factory=ConfigPayload)

    def to_domain(self) -> Patient:
        pregnancy = None
        if self.is_pregnant or self.is_postpartum:
            pregnancy = PregnancyInfo(
                is_pregnant=self.is_pregnant,
                trimester=self.trimester,
                is_postpartum=self.is_postpartum,
            )
        return Patient(
            id=self.id,
            owner_id=self.owner_id,
            name=self.name,
            birth_date=self.birth_date,
            sex=self.sex,
            weight_kg=self.weight_kg,
            height_cm=self.height_cm,
            clinical=ClinicalRecord(
                pathologies=list(self.pathologies),
                medications=list(self.medications),
                allergies=[
                    Allergy(allergy.allergen, allergy.severity)
                    for allergy in self.allergies
                ],
            ),
            config=self.config.to_domain(),
            pregnancy=pregnancy,
        )


class EngineRequest(BaseModel):
    """A patient, an optional measurement and the evaluation date."""

    patient: PatientPayload
    measurement: MeasurementPayload | None = None
    on: date | None = None

    def reference_date(self) -> date:
        if self.on:
            return self.on
        if self.measurement and self.measurement.measured_on:
            return self.measurement.measured_on
        return date.today()

    def measurement_for(self, patient: Patient) -> Measurement | None:
        if self.measurement is None:
            return None
        return self.measurement.to_domain(patient.id)


class SavePlanRequest(EngineRequest):
    """Generate a weekly plan and store it in the owner's history."""

    owner_id: UUID
    name: str = Field(min_length=1)
    patient_id: UUID | None = None


class ClonePlanRequest(BaseModel):
    name: str | None = None


class QuantityChangeRequest(BaseModel):
    day_index: int
    meal_index: int
    item_id: str
    quantity_g: float


class PediatricRequest(BaseModel):
    age_months: int = Field(ge=0)
    lactation_type: LactationType = LactationType.BREAST
    has_iron_supplementation: bool = False


class AnemiaRequest(BaseModel):
    age_months: int = Field(ge=0)
    weight_kg: float = Field(gt=0)
    sex: Sex
    has_anemia: bool = False
    hemoglobin_g_dl: float | None = Field(default=None, gt=0)
    altitude_m: float = Field(default=0.0, ge=0)
    is_pregnant: bool = False
    trimester: int | None = Field(default=None, ge=1, le=3)
    gestational_week: int | None = None
    is_postpartum: bool = False
    is_premature: bool = False
    gestational_weeks_at_birth: int | None = None
    low_birth_weight: bool = False

    def to_domain(self) -> AnemiaInput:
        return AnemiaInput(**self.model_dump())


def _sites(values: dict[str, float | ReadingPayload]) -> dict[str, AnthroValue]:
    sites: dict[str, AnthroValue] = {}
    for site, value in values.items():
        if isinstance(value, ReadingPayload):
            sites[site] = IsakValue.from_readings(value.val1, value.val2, value.val3)
        else:
            sites[site] = RawValue(float(value))
    return sites
