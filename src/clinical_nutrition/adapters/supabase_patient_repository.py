"""Supabase-backed patient and measurement repository."""

from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import TypeVar
from uuid import UUID

from supabase import Client

from clinical_nutrition.domain.measurements import (
    AnthroValue,
    Measurement,
    Somatotype,
    parse_anthro_value,
)
from clinical_nutrition.domain.patients import (
    DEFAULT_MEAL_MOMENTS,
    ActivityLevel,
    Allergy,
    AllergySeverity,
    CaloriePreset,
    ClinicalRecord,
    EnergyFormula,
    GeriatricInfo,
    LactationType,
    MealMoment,
    NutritionConfig,
    Patient,
    PatientType,
    PediatricInfo,
    PregnancyInfo,
    ProteinBasis,
    Sex,
)
from clinical_nutrition.services.patients import PatientRepository

_E = TypeVar("_E", bound=StrEnum)


@dataclass
class SupabasePatientRepository(PatientRepository):
    """Reads patients and measurements; nested records live in JSON columns."""

    client: Client

    def get_patient(self, patient_id: UUID) -> Patient | None:
        """Return a patient by id, if present."""
        response = (
            self.client.table("patients")
            .select("*")
            .eq("id", str(patient_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_patient(response.data[0])

    def list_measurements(self, patient_id: UUID) -> list[Measurement]:
        """Return a patient's measurements, newest first."""
        response = (
            self.client.table("measurements")
            .select("*")
            .eq("patient_id", str(patient_id))
            .order("measured_on", desc=True)
            .execute()
        )
        return [_parse_measurement(row) for row in response.data or []]


def _parse_patient(row: dict[str, object]) -> Patient:
    pediatric = row.get("pediatric_json")
    pregnancy = row.get("pregnancy_json")
    geriatric = row.get("geriatric_json")
    return Patient(
        id=UUID(str(row["id"])),
        owner_id=UUID(str(row["owner_id"])),
        name=str(row.get("name") or ""),
        birth_date=date.fromisoformat(str(row["birth_date"])),
        sex=Sex(str(row["sex"])),
        weight_kg=float(row["weight_kg"]),
        height_cm=float(row["height_cm"]),
        clinical=_parse_clinical(row.get("clinical_json") or {}),
        config=_parse_config(row.get("config_json") or {}),
        pediatric=_parse_pediatric(pediatric) if pediatric else None,
        pregnancy=PregnancyInfo(**pregnancy) if pregnancy else None,
        geriatric=GeriatricInfo(**geriatric) if geriatric else None,
    )


def _parse_clinical(data: dict[str, object]) -> ClinicalRecord:
    allergies = []
    for entry in data.get("allergies") or []:
        if isinstance(entry, str):
            allergies.append(Allergy(entry))
        else:
            allergies.append(
                Allergy(
                    allergen=entry["allergen"],
                    severity=AllergySeverity(entry.get("severity", "fatal")),
                )
            )
    return ClinicalRecord(
        pathologies=list(data.get("pathologies") or []),
        allergies=allergies,
        medications=list(data.get("medications") or []),
        hemoglobin_g_dl=data.get("hemoglobin_g_dl"),
        biochemistry=dict(data.get("biochemistry") or {}),
    )


def _parse_config(data: dict[str, object]) -> NutritionConfig:
    moments = data.get("meal_moments")
    return NutritionConfig(
        activity_level=ActivityLevel(data.get("activity_level", "sedentary")),
        formula=_optional(EnergyFormula, data.get("formula")),
        weight_objective=data.get("weight_objective"),
        carbs_percent=float(data.get("carbs_percent", 50.0)),
        protein_ratio_g_per_kg=float(data.get("protein_ratio_g_per_kg", 1.6)),
        protein_basis=_optional(ProteinBasis, data.get("protein_basis")),
        calorie_preset=_optional(CaloriePreset, data.get("calorie_preset")),
        kcal_adjustment=float(data.get("kcal_adjustment") or 0),
        patient_type=PatientType(data.get("patient_type", "general")),
        is_athlete=bool(data.get("is_athlete", False)),
        include_tef=bool(data.get("include_tef", False)),
        meal_moments=(
            tuple(MealMoment(**moment) for moment in moments)
            if moments
            else DEFAULT_MEAL_MOMENTS
        ),
        liked_foods=list(data.get("liked_foods") or []),
        disliked_foods=list(data.get("disliked_foods") or []),
        micronutrient_overrides=dict(data.get("micronutrient_overrides") or {}),
    )


def _parse_pediatric(data: dict[str, object]) -> PediatricInfo:
    return PediatricInfo(
        gestational_weeks_at_birth=data.get("gestational_weeks_at_birth"),
        birth_weight_kg=data.get("birth_weight_kg"),
        lactation_type=LactationType(data.get("lactation_type", "breast")),
        has_iron_supplementation=bool(data.get("has_iron_supplementation", False)),
    )


def _parse_measurement(row: dict[str, object]) -> Measurement:
    somatotype = row.get("somatotype_json")
    return Measurement(
        id=UUID(str(row["id"])) if row.get("id") else None,
        patient_id=UUID(str(row["patient_id"])),
        measured_on=date.fromisoformat(str(row["measured_on"])[:10]),
        weight_kg=float(row["weight_kg"]),
        height_cm=float(row["height_cm"]),
        sitting_height_cm=row.get("sitting_height_cm"),
        head_circumference_cm=row.get("head_circumference_cm"),
        skinfolds=_parse_sites(row.get("skinfolds_json")),
        girths=_parse_sites(row.get("girths_json")),
        breadths=_parse_sites(row.get("breadths_json")),
        body_fat_percent=row.get("body_fat_percent"),
        muscle_mass_kg=row.get("muscle_mass_kg"),
        somatotype=Somatotype(**somatotype) if somatotype else None,
        quality=row.get("quality"),
    )


def _parse_sites(data: object) -> dict[str, AnthroValue]:
    if not isinstance(data, dict):
        return {}
    sites: dict[str, AnthroValue] = {}
    for site, raw in data.items():
        value = parse_anthro_value(raw)
        if value is not None:
            sites[site] = value
    return sites


def _optional(enum_type: type[_E], value: object) -> _E | None:
    return enum_type(value) if value else None
