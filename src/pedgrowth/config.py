"""
Configuration constants for growth-standard evaluation.
"""

import os
from pathlib import Path
from typing import Optional

# Reference data resources
REFERENCE_DATA_PACKAGE = "pedgrowth.data"
REFERENCE_DATA_FILE = "growth_references.npz"
REFERENCE_DATA_ENV = "PEDGROWTH_REFERENCE_DATA"

# Data constants
DAYS_PER_YEAR = 365.25
DAYS_PER_MONTH = DAYS_PER_YEAR / 12

# LMS constants
L_ZERO_THRESHOLD = 1e-6

# Table keys per chart type
CHART_TYPES = {
    "wfa": {"label": "Weight-for-age", "unit": "kg"},
    "lhfa": {"label": "Length/height-for-age", "unit": "cm"},
    "hcfa": {"label": "Head circumference-for-age", "unit": "cm"},
    "bfa": {"label": "BMI-for-age", "unit": "kg/m2"},
}

# Table keys per sex
GENDER_KEYS = {"male": "boys", "female": "girls"}

# Curves drawn on a growth chart
Z_SCORE_BOUNDS = [-3, -2, -1, 0, 1, 2, 3]

# Structured dtype for reference arrays
LMS_DTYPE = [("day", "i8"), ("L", "f8"), ("M", "f8"), ("S", "f8")]


def reference_data_override() -> Optional[Path]:
    """Reference data path from the environment, if set."""
    value = os.environ.get(REFERENCE_DATA_ENV, "").strip()
    return Path(value) if value else None
