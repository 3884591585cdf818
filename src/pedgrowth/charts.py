"""
Chart type and sex enumerations for growth-standard lookups.

Reference tables are keyed by short chart names ("wfa", "lhfa", ...) and by
gender keys ("boys", "girls"). Callers pass these enums instead of string
literals so that a misspelt key cannot silently miss a series.
"""

from enum import Enum
from typing import Union

from .config import CHART_TYPES, GENDER_KEYS


class ChartType(str, Enum):
    """Growth chart indexed by age in days."""

    WFA = "wfa"
    LHFA = "lhfa"
    HCFA = "hcfa"
    BFA = "bfa"

    @property
    def label(self) -> str:
        return CHART_TYPES[self.value]["label"]

    @property
    def unit(self) -> str:
        return CHART_TYPES[self.value]["unit"]

    @classmethod
    def parse(cls, value: Union["ChartType", str]) -> "ChartType":
        """
        Parse a chart type from an enum member or its table key.

        Raises:
            KeyError: If the value is not a known chart type.
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for member in cls:
            if member.value == key:
                return member
        raise KeyError(f"Unknown chart type '{value}'")


class Sex(str, Enum):
    """Patient sex as stored on the patient record."""

    MALE = "male"
    FEMALE = "female"

    @property
    def table_key(self) -> str:
        """Key of this sex in a growth-standard table ('boys' / 'girls')."""
        return GENDER_KEYS[self.value]

    @classmethod
    def parse(cls, value: Union["Sex", str]) -> "Sex":
        """
        Normalize a stored gender attribute.

        Accepts 'male'/'female', 'M'/'F' and the table keys 'boys'/'girls'
        in any case.

        Raises:
            ValueError: If the value cannot be mapped to a sex.
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        aliases = {
            "male": cls.MALE,
            "m": cls.MALE,
            "boys": cls.MALE,
            "boy": cls.MALE,
            "female": cls.FEMALE,
            "f": cls.FEMALE,
            "girls": cls.FEMALE,
            "girl": cls.FEMALE,
        }
        if key not in aliases:
            raise ValueError(f"Sex values must be 'male' or 'female', got '{value}'")
        return aliases[key]


def chart_key(chart_type: Union[ChartType, str]) -> str:
    """Table key for a chart type, passing unknown strings through unchanged."""
    if isinstance(chart_type, ChartType):
        return chart_type.value
    return str(chart_type).strip().lower()


def gender_key(gender: Union[Sex, str]) -> str:
    """Table key for a sex, passing unknown strings through unchanged."""
    try:
        return Sex.parse(gender).table_key
    except ValueError:
        return str(gender).strip().lower()
