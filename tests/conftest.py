import pytest

from pedgrowth.reference import GrowthStandardTable, load_reference_table


@pytest.fixture
def growth_data() -> dict:
    """Small reference data set in the growthData.json shape (no hcfa chart)."""
    return {
        "wfa": {
            "boys": [
                {"day": 0, "L": 0.3, "M": 3.3, "S": 0.14},
                {"day": 30, "L": 0.2, "M": 4.5, "S": 0.13},
            ],
            "girls": [
                {"day": 0, "L": 0.38, "M": 3.2, "S": 0.14},
                {"day": 30, "L": 0.17, "M": 4.2, "S": 0.13},
            ],
        },
        "lhfa": {
            "boys": [
                {"day": 0, "L": 1.0, "M": 49.9, "S": 0.038},
                {"day": 30, "L": 1.0, "M": 54.7, "S": 0.036},
            ],
            "girls": [
                {"day": 0, "L": 1.0, "M": 49.1, "S": 0.038},
                {"day": 30, "L": 1.0, "M": 53.7, "S": 0.036},
            ],
        },
        "bfa": {
            "boys": [
                {"day": 0, "L": -0.3, "M": 13.4, "S": 0.09},
                {"day": 30, "L": 0.0, "M": 14.9, "S": 0.09},
            ],
            "girls": [
                {"day": 0, "L": -0.06, "M": 13.3, "S": 0.09},
                {"day": 30, "L": 0.0, "M": 14.6, "S": 0.09},
            ],
        },
    }


@pytest.fixture
def table(growth_data: dict) -> GrowthStandardTable:
    """Reference table built from growth_data."""
    return GrowthStandardTable.from_dict(growth_data)


@pytest.fixture
def midpoint_series() -> list:
    """Two points ten days apart for interpolation checks."""
    from pedgrowth.lms import LMSPoint

    return [LMSPoint(0, 1.0, 10.0, 0.1), LMSPoint(10, 1.0, 20.0, 0.2)]


@pytest.fixture
def clear_reference_cache():
    """Reset the process-wide reference table cache between tests."""
    load_reference_table.cache_clear()
    yield
    load_reference_table.cache_clear()
