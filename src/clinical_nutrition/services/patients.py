"""Patient and measurement lookup."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from clinical_nutrition.domain.measurements import Measurement
from clinical_nutrition.domain.patients import Patient


class PatientNotFoundError(LookupError):
    """Raised when a patient id does not exist."""


class PatientRepository(Protocol):
    """Persistence interface for patients and their measurements."""

    def get_patient(self, patient_id: UUID) -> Patient | None:
        """Return a patient by id, if present."""

    def list_measurements(self, patient_id: UUID) -> list[Measurement]:
        """Return a patient's measurements, newest first."""


@dataclass
class PatientService:
    """Application service for patient lookups."""

    repository: PatientRepository

    def get_patient(self, patient_id: UUID) -> Patient:
        patient = self.repository.get_patient(patient_id)
        if patient is None:
            raise PatientNotFoundError(f"Patient {patient_id} not found")
        return patient

    def latest_measurement(self, patient_id: UUID) -> Measurement | None:
        """Return the most recent measurement, if any was recorded."""
        measurements = self.repository.list_measurements(patient_id)
        if not measurements:
            return None
        return max(measurements, key=lambda measurement: measurement.measured_on)
