"""
LMS (Lambda-Mu-Sigma) interpolation and Z-score transforms.

Implements the WHO LMS method used by the WHO Child Growth Standards. A
reference series holds one (L, M, S) triple per age in days; a measurement is
standardized against the triple interpolated at the child's exact age.

For L != 0: z = ((X/M)^L - 1) / (L * S)
For L ~= 0: z = ln(X/M) / S

References:
- Cole, T.J. (1990). "The LMS method for constructing normalized growth standards."
  European Journal of Clinical Nutrition, 44(1), 45-60.
- WHO Multicentre Growth Reference Study Group (2006). WHO Child Growth
  Standards: Methods and development.
"""

import math
from bisect import bisect_left
from typing import NamedTuple, Optional, Sequence

import numpy as np
from numba import jit

from .config import L_ZERO_THRESHOLD


class LMSPoint(NamedTuple):
    """One row of a growth-standard reference table."""

    day: int
    L: float
    M: float
    S: float


def interpolate_lms(
    series: Sequence[LMSPoint], target_day: float
) -> Optional[LMSPoint]:
    """
    Resolve the LMS triple for an exact age.

    Ages at or beyond either end of the series are pinned to the edge point
    rather than extrapolated. Ages matching a reference day return that row
    unchanged; anything in between is blended linearly per parameter.

    Args:
        series: Reference points sorted by ``day`` with no duplicates
        target_day: Age in days

    Returns:
        The resolved point, or None for an empty series or a non-finite age
    """
    if not series or not math.isfinite(target_day):
        return None

    first = series[0]
    last = series[-1]
    if target_day <= first.day:
        return first
    if target_day >= last.day:
        return last

    # first.day < target_day < last.day, so 0 < idx < len(series)
    idx = bisect_left(series, target_day, key=lambda point: point.day)
    upper = series[idx]
    if upper.day == target_day:
        return upper
    lower = series[idx - 1]

    fraction = (target_day - lower.day) / (upper.day - lower.day)
    return LMSPoint(
        day=target_day,
        L=lower.L + fraction * (upper.L - lower.L),
        M=lower.M + fraction * (upper.M - lower.M),
        S=lower.S + fraction * (upper.S - lower.S),
    )


def interpolate_lms_arrays(
    ages: np.ndarray, reference: np.ndarray
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Vectorized counterpart of :func:`interpolate_lms`.

    ``np.interp`` clamps to the edge values outside the reference range, which
    is the same boundary policy as the scalar path.

    Args:
        ages: Ages in days (NaN allowed)
        reference: Structured array with fields ``day``, ``L``, ``M``, ``S``

    Returns:
        Tuple of (L, M, S) arrays matching ``ages``; all NaN for an empty reference
    """
    ages = np.asarray(ages, dtype=np.float64)
    if reference.size == 0:
        nan = np.full(ages.shape, np.nan, dtype=np.float64)
        return nan, nan.copy(), nan.copy()

    days = reference["day"].astype(np.float64)
    L = np.interp(ages, days, reference["L"])
    M = np.interp(ages, days, reference["M"])
    S = np.interp(ages, days, reference["S"])
    return L, M, S


def lms_zscore(value: float, L: float, M: float, S: float) -> Optional[float]:
    """
    Standardize one measurement against an LMS triple.

    Returns None for a degenerate reference row (M or S not positive) and for a
    measurement that is not a finite positive number, since both would turn
    into NaN or infinity inside the transform.
    """
    if not (M > 0 and S > 0):
        return None
    if not math.isfinite(value) or value <= 0:
        return None

    ratio = value / M
    if abs(L) < L_ZERO_THRESHOLD:
        return math.log(ratio) / S
    return (ratio**L - 1) / (S * L)


@jit(nopython=True, cache=True)
def lms_zscore_array(
    X: np.ndarray, L: np.ndarray, M: np.ndarray, S: np.ndarray
) -> np.ndarray:
    """
    Calculate LMS z-scores element-wise for 1D arrays.

    Elements with a non-finite or non-positive measurement, a non-positive M or
    S, or any NaN parameter come back as NaN.

    Args:
        X: Observed values (kg, cm or kg/m2)
        L: Box-Cox power at each age
        M: Median at each age
        S: Coefficient of variation at each age

    Returns:
        Z-scores (0 at the median)
    """
    n = X.shape[0]
    z = np.empty(n, dtype=np.float64)
    for i in range(n):
        x = X[i]
        lam = L[i]
        mu = M[i]
        sigma = S[i]
        if not (
            np.isfinite(x)
            and np.isfinite(lam)
            and np.isfinite(mu)
            and np.isfinite(sigma)
            and x > 0.0
            and mu > 0.0
            and sigma > 0.0
        ):
            z[i] = np.nan
        elif abs(lam) < L_ZERO_THRESHOLD:
            z[i] = np.log(x / mu) / sigma
        else:
            z[i] = ((x / mu) ** lam - 1.0) / (sigma * lam)
    return z


def lms_value(L: float, M: float, S: float, z: float) -> float:
    """
    Measurement lying ``z`` standard deviations from the median.

    Inverse of the LMS transform: M * (1 + L*S*z)^(1/L), or M * exp(S*z) near
    L = 0. Returns NaN where the power base goes non-positive (far tails with
    large |L|).
    """
    if abs(L) < L_ZERO_THRESHOLD:
        return M * math.exp(S * z)
    base = 1 + L * S * z
    if base <= 0:
        return math.nan
    return M * base ** (1 / L)
