"""
Record-level growth assessment.

Combines a patient's birth date and sex with one visit's raw measurements to
produce the values stored on a growth-measurement record: BMI and the
weight-, length/height-, head-circumference- and BMI-for-age Z-scores.
Persistence is the caller's responsibility.
"""

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from .ages import age_in_days
from .charts import ChartType, Sex
from .reference import load_reference_table
from .zscores import ZScoreCalculator


class PatientProfile(BaseModel):
    """Patient attributes needed for growth evaluation."""

    date_of_birth: date
    gender: Sex

    @field_validator("gender", mode="before")
    @classmethod
    def normalize_gender(cls, v: Any) -> Sex:
        """Accept stored values such as 'Male', 'F' or 'girls'."""
        return Sex.parse(v)


class GrowthMeasurementInput(BaseModel):
    """Raw measurements taken at one visit."""

    measurement_date: date
    weight_kg: float = Field(ge=0)
    height_cm: float = Field(ge=0)
    head_circumference_cm: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None


class GrowthMeasurementUpdate(BaseModel):
    """
    Partial update of a stored measurement.

    Fields left unset keep their stored value; head_circumference_cm and notes
    may be set to None explicitly to clear them.
    """

    measurement_date: Optional[date] = None
    weight_kg: Optional[float] = Field(default=None, ge=0)
    height_cm: Optional[float] = Field(default=None, ge=0)
    head_circumference_cm: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None


class GrowthAssessment(BaseModel):
    """Values stored on a growth-measurement record."""

    measurement_date: date
    age_in_days: int
    weight_kg: float
    height_cm: float
    head_circumference_cm: Optional[float] = None
    bmi: float
    weight_zscore: Optional[float] = None
    height_zscore: Optional[float] = None
    head_circumference_zscore: Optional[float] = None
    bmi_zscore: Optional[float] = None
    notes: Optional[str] = None


def compute_bmi(weight_kg: float, height_cm: float) -> float:
    """BMI in kg/m2; 0.0 when height is zero."""
    if height_cm <= 0:
        return 0.0
    height_m = height_cm / 100.0
    return weight_kg / (height_m * height_m)


def assess_growth(
    patient: PatientProfile,
    measurement: GrowthMeasurementInput,
    calculator: Optional[ZScoreCalculator] = None,
) -> GrowthAssessment:
    """
    Compute BMI and the four growth Z-scores for one visit.

    Head-circumference Z-score is only computed when head circumference was
    measured. A zero height gives BMI 0.0 and an undetermined BMI Z-score.

    Raises:
        ValueError: If the measurement date is before the date of birth.
    """
    if calculator is None:
        calculator = ZScoreCalculator(load_reference_table())

    age = age_in_days(patient.date_of_birth, measurement.measurement_date)
    if age < 0:
        raise ValueError(
            f"Measurement date {measurement.measurement_date} is before date of "
            f"birth {patient.date_of_birth}"
        )

    sex = patient.gender
    head_z = None
    if measurement.head_circumference_cm is not None:
        head_z = calculator.zscore(
            ChartType.HCFA, sex, age, measurement.head_circumference_cm
        )

    bmi = compute_bmi(measurement.weight_kg, measurement.height_cm)
    return GrowthAssessment(
        measurement_date=measurement.measurement_date,
        age_in_days=age,
        weight_kg=measurement.weight_kg,
        height_cm=measurement.height_cm,
        head_circumference_cm=measurement.head_circumference_cm,
        bmi=bmi,
        weight_zscore=calculator.zscore(ChartType.WFA, sex, age, measurement.weight_kg),
        height_zscore=calculator.zscore(ChartType.LHFA, sex, age, measurement.height_cm),
        head_circumference_zscore=head_z,
        bmi_zscore=calculator.zscore(ChartType.BFA, sex, age, bmi),
        notes=measurement.notes,
    )


def reassess_growth(
    patient: PatientProfile,
    existing: GrowthAssessment,
    update: GrowthMeasurementUpdate,
    calculator: Optional[ZScoreCalculator] = None,
) -> GrowthAssessment:
    """
    Apply a partial update to a stored measurement and recompute every derived value.

    Raises:
        ValueError: If the resulting measurement date is before the date of birth.
    """
    changes = update.model_dump(exclude_unset=True)
    merged = {
        "measurement_date": existing.measurement_date,
        "weight_kg": existing.weight_kg,
        "height_cm": existing.height_cm,
        "head_circumference_cm": existing.head_circumference_cm,
        "notes": existing.notes,
    }
    for field in ("measurement_date", "weight_kg", "height_cm"):
        if changes.get(field) is not None:
            merged[field] = changes[field]
    for field in ("head_circumference_cm", "notes"):
        if field in changes:
            merged[field] = changes[field]

    return assess_growth(patient, GrowthMeasurementInput(**merged), calculator)
