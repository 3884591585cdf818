"""
WHO growth-standard Z-scores for pediatric measurements.

Resolves age- and sex-specific LMS parameters from an immutable reference
table and standardizes weight, length/height, head circumference and BMI
measurements.
"""

from .ages import age_in_days, age_in_months
from .charts import ChartType, Sex
from .lms import LMSPoint, interpolate_lms, lms_value, lms_zscore
from .measurements import (
    GrowthAssessment,
    GrowthMeasurementInput,
    GrowthMeasurementUpdate,
    PatientProfile,
    assess_growth,
    compute_bmi,
    reassess_growth,
)
from .reference import (
    GrowthStandardTable,
    load_json,
    load_npz,
    load_reference_table,
    validate_table_integrity,
)
from .zscores import (
    ZScoreCalculator,
    ZScoreConfig,
    calculate_growth_zscores,
    calculate_zscore,
    percentile_to_zscore,
    zscore_to_percentile,
)

__all__ = [
    "ChartType",
    "GrowthAssessment",
    "GrowthMeasurementInput",
    "GrowthMeasurementUpdate",
    "GrowthStandardTable",
    "LMSPoint",
    "PatientProfile",
    "Sex",
    "ZScoreCalculator",
    "ZScoreConfig",
    "age_in_days",
    "age_in_months",
    "assess_growth",
    "calculate_growth_zscores",
    "calculate_zscore",
    "compute_bmi",
    "interpolate_lms",
    "lms_value",
    "lms_zscore",
    "load_json",
    "load_npz",
    "load_reference_table",
    "percentile_to_zscore",
    "reassess_growth",
    "validate_table_integrity",
    "zscore_to_percentile",
]
