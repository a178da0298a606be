"""Body composition results."""

from dataclasses import dataclass


@dataclass(frozen=True)
class BodyFatResult:
    """Body fat estimate tagged with the method that produced it.

    ``method`` is ``primary``, ``fallback:yuhasz`` or ``unavailable``.
    """

    value: float | None
    method: str
    formula_used: str
    density: float | None = None


@dataclass(frozen=True)
class BodyMassSplit:
    fat_mass_kg: float
    lean_mass_kg: float


@dataclass(frozen=True)
class FiveComponentResult:
    """Kerr fractionation masses in kilograms."""

    adipose_kg: float
    muscle_kg: float
    bone_kg: float
    residual_kg: float
    skin_kg: float
    raw_total_kg: float
    difference_kg: float
    difference_percent: float

    @property
    def total_kg(self) -> float:
        return (
            self.adipose_kg
            + self.muscle_kg
            + self.bone_kg
            + self.residual_kg
            + self.skin_kg
        )


@dataclass(frozen=True)
class BmiDiagnosis:
    bmi: float
    category: str
    population: str


@dataclass(frozen=True)
class WaistToHeight:
    ratio: float
    at_risk: bool


@dataclass(frozen=True)
class ZScoreResult:
    """Growth z-score with percentile and WHO diagnosis."""

    z_score: float
    percentile: int
    diagnosis: str
    severity: str
