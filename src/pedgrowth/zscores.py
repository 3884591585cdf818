"""
Z-Score Calculation for WHO Growth Standards

This module resolves age- and sex-specific LMS parameters from a
GrowthStandardTable and converts raw anthropometric measurements into
Z-scores and percentiles. Missing reference coverage is routine (head
circumference not measured, chart absent for an age range), so every
evaluation signals "no result" with None (scalar) or NaN (batch) instead of
raising.
"""

from typing import Dict, List, Optional, Sequence, Union
import logging
import math

import numpy as np
import pandas as pd
from pydantic import BaseModel, ValidationError
from scipy import stats

from .charts import ChartType, Sex, chart_key, gender_key
from .config import Z_SCORE_BOUNDS
from .lms import (
    interpolate_lms,
    interpolate_lms_arrays,
    lms_value,
    lms_zscore,
    lms_zscore_array,
)
from .reference import GrowthStandardTable, load_reference_table


class ZScoreConfig(BaseModel):
    """
    Options for a ZScoreCalculator.

    Attributes:
        validate_measurements (bool): Log a warning when a measurement is not a
            finite positive number. True by default.
        log_missing_series (bool): Log a warning when a chart/gender series is
            absent from the table. False by default, since missing coverage is
            expected for optional measurements.
    """

    validate_measurements: bool = True
    log_missing_series: bool = False


def zscore_to_percentile(z: Optional[float]) -> Optional[float]:
    """Percentile (0-100) of a Z-score under the standard normal, None passes through."""
    if z is None or not math.isfinite(z):
        return None
    return float(stats.norm.cdf(z) * 100.0)


def percentile_to_zscore(percentile: float) -> float:
    """
    Z-score at a percentile (0-100 exclusive).

    Raises:
        ValueError: If percentile is outside (0, 100).
    """
    if not 0.0 < percentile < 100.0:
        raise ValueError("Percentile must be between 0 and 100 (exclusive)")
    return float(stats.norm.ppf(percentile / 100.0))


class ZScoreCalculator:
    """
    Evaluates measurements against an immutable GrowthStandardTable.

    The table is injected once and only read afterwards, so a single
    calculator can be shared across threads.

    Usage:
        calculator = ZScoreCalculator(load_reference_table())
        z = calculator.zscore(ChartType.WFA, Sex.MALE, 15, 3.9)
    """

    def __init__(
        self,
        table: GrowthStandardTable,
        validate_measurements: bool = True,
        log_missing_series: bool = False,
    ):
        try:
            self.config = ZScoreConfig(
                validate_measurements=validate_measurements,
                log_missing_series=log_missing_series,
            )
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {e}") from e
        self.table = table

    def zscore(
        self,
        chart_type: Union[ChartType, str],
        gender: Union[Sex, str],
        age_in_days: float,
        measured_value: float,
    ) -> Optional[float]:
        """
        Z-score of a measurement at an age.

        Args:
            chart_type: Chart to evaluate against (enum or table key such as "wfa")
            gender: Sex enum, stored gender ("male"), or table key ("boys")
            age_in_days: Age at measurement; out-of-range ages use the edge row
            measured_value: kg, cm or kg/m2 depending on the chart

        Returns:
            Z-score, or None when the series is missing or empty, the resolved
            reference row is degenerate, the age is not finite, or the measurement
            is not positive
        """
        series = self.table.series(chart_type, gender)
        if series is None:
            if self.config.log_missing_series:
                logging.warning(
                    f"Reference data not found for {chart_key(chart_type)}_{gender_key(gender)}"
                )
            return None

        lms = interpolate_lms(series, age_in_days)
        if lms is None:
            return None

        if self.config.validate_measurements and not (
            math.isfinite(measured_value) and measured_value > 0
        ):
            logging.warning(
                f"Measurement {measured_value!r} for {chart_key(chart_type)} is not a "
                "positive number; z-score is undetermined"
            )
        return lms_zscore(measured_value, lms.L, lms.M, lms.S)

    def percentile(
        self,
        chart_type: Union[ChartType, str],
        gender: Union[Sex, str],
        age_in_days: float,
        measured_value: float,
    ) -> Optional[float]:
        """Percentile (0-100) of a measurement, or None when the Z-score is undetermined."""
        return zscore_to_percentile(
            self.zscore(chart_type, gender, age_in_days, measured_value)
        )

    def reference_curves(
        self,
        chart_type: Union[ChartType, str],
        gender: Union[Sex, str],
        z_values: Optional[Sequence[float]] = None,
        days: Optional[Sequence[int]] = None,
    ) -> pd.DataFrame:
        """
        Measurement values along Z-score curves for drawing a growth chart.

        Args:
            chart_type: Chart to draw
            gender: Sex enum, stored gender or table key
            z_values: Z-scores to trace (default: -3..3)
            days: Ages to evaluate (default: every reference day)

        Returns:
            DataFrame with a ``day`` column plus one column per Z-score named
            ``z<value>`` (e.g. ``z-2``, ``z0``); empty if the series is missing
        """
        z_values = list(Z_SCORE_BOUNDS if z_values is None else z_values)
        columns = ["day"] + [f"z{z:g}" for z in z_values]

        series = self.table.series(chart_type, gender)
        if not series:
            return pd.DataFrame(columns=columns)

        if days is None:
            points = list(series)
        else:
            points = [interpolate_lms(series, day) for day in days]
            points = [p._replace(day=day) for p, day in zip(points, days)]

        rows = []
        for point in points:
            row: Dict[str, float] = {"day": point.day}
            for z in z_values:
                if point.M > 0 and point.S > 0:
                    row[f"z{z:g}"] = lms_value(point.L, point.M, point.S, z)
                else:
                    row[f"z{z:g}"] = np.nan
            rows.append(row)
        return pd.DataFrame(rows, columns=columns)

    def evaluate_arrays(
        self,
        chart_type: Union[ChartType, str],
        sex: np.ndarray,
        age_days: np.ndarray,
        values: np.ndarray,
    ) -> np.ndarray:
        """
        Vectorized Z-scores for many measurements on one chart.

        Args:
            chart_type: Chart to evaluate against
            sex: Sex per row (anything Sex.parse accepts)
            age_days: Age in days per row
            values: Measurement per row

        Returns:
            float64 array of Z-scores, NaN where undetermined
        """
        age_days = np.asarray(age_days, dtype=np.float64)
        values = np.asarray(values, dtype=np.float64)
        keys = np.array([gender_key(s) for s in sex], dtype=object)
        z = np.full(age_days.shape, np.nan, dtype=np.float64)

        arrays = self.table.as_arrays()
        for key in pd.unique(keys):
            array_key = f"{chart_key(chart_type)}_{key}"
            if array_key not in arrays:
                if self.config.log_missing_series:
                    logging.warning(f"Reference data not found for {array_key}")
                continue
            mask = keys == key
            L, M, S = interpolate_lms_arrays(age_days[mask], arrays[array_key])
            z[mask] = lms_zscore_array(
                np.ascontiguousarray(values[mask]), L, M, S
            )

        if self.config.validate_measurements:
            invalid = np.isfinite(values) & (values <= 0)
            if np.any(invalid):
                logging.warning(
                    f"{int(invalid.sum())} non-positive {chart_key(chart_type)} "
                    "measurements; z-scores set to NaN"
                )
        return z

    def evaluate_frame(
        self,
        df: pd.DataFrame,
        age_col: str = "age_in_days",
        sex_col: str = "sex",
        columns: Optional[Dict[str, Union[ChartType, str]]] = None,
    ) -> pd.DataFrame:
        """
        Append Z-score columns to a DataFrame of measurements.

        Args:
            df: Measurements, one row per visit
            age_col: Column holding age in days
            sex_col: Column holding sex
            columns: Measurement column -> chart type (default: weight_kg -> wfa,
                height_cm -> lhfa, head_circumference_cm -> hcfa, bmi -> bfa;
                columns not present in ``df`` are skipped)

        Returns:
            Copy of ``df`` with a ``<chart>_z`` column per evaluated measurement

        Raises:
            ValueError: If the age or sex column is missing, or an explicitly
                requested measurement column does not exist
        """
        for col in (age_col, sex_col):
            if col not in df.columns:
                raise ValueError(f"Column '{col}' does not exist in DataFrame")

        if columns is None:
            columns = {
                col: chart
                for col, chart in DEFAULT_COLUMN_CHARTS.items()
                if col in df.columns
            }
        else:
            for col in columns:
                if col not in df.columns:
                    raise ValueError(f"Column '{col}' does not exist in DataFrame")

        result = df.copy()
        ages = pd.to_numeric(df[age_col], errors="coerce").to_numpy(dtype=np.float64)
        sex = df[sex_col].fillna("").astype(str).to_numpy()
        for col, chart in columns.items():
            values = pd.to_numeric(df[col], errors="coerce").to_numpy(dtype=np.float64)
            result[f"{chart_key(chart)}_z"] = self.evaluate_arrays(chart, sex, ages, values)
        return result


DEFAULT_COLUMN_CHARTS: Dict[str, ChartType] = {
    "weight_kg": ChartType.WFA,
    "height_cm": ChartType.LHFA,
    "head_circumference_cm": ChartType.HCFA,
    "bmi": ChartType.BFA,
}


def calculate_zscore(
    chart_type: Union[ChartType, str],
    gender: Union[Sex, str],
    age_in_days: float,
    measured_value: float,
    table: Optional[GrowthStandardTable] = None,
) -> Optional[float]:
    """
    Z-score of one measurement against the WHO growth standard.

    Uses the process-wide table from ``load_reference_table()`` unless a table
    is given.

    Returns:
        Z-score, or None when it cannot be determined
    """
    if table is None:
        table = load_reference_table()
    return ZScoreCalculator(table).zscore(chart_type, gender, age_in_days, measured_value)


def calculate_growth_zscores(
    gender: Union[Sex, str],
    age_in_days: float,
    measurements: Dict[Union[ChartType, str], Optional[float]],
    table: Optional[GrowthStandardTable] = None,
) -> Dict[str, Optional[float]]:
    """
    Z-scores for several charts at one visit.

    Charts whose measurement is None are reported as None without lookup.

    Returns:
        Dict mapping chart key to Z-score (or None)
    """
    if table is None:
        table = load_reference_table()
    calculator = ZScoreCalculator(table)
    result: Dict[str, Optional[float]] = {}
    for chart, value in measurements.items():
        key = chart_key(chart)
        result[key] = (
            None if value is None else calculator.zscore(chart, gender, age_in_days, value)
        )
    return result


__all__: List[str] = [
    "ZScoreCalculator",
    "ZScoreConfig",
    "DEFAULT_COLUMN_CHARTS",
    "calculate_zscore",
    "calculate_growth_zscores",
    "percentile_to_zscore",
    "zscore_to_percentile",
]
