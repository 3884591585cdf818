"""
Growth-standard reference tables.

A GrowthStandardTable maps chart type -> gender key -> ordered LMS series. It is
built once, validated on construction and never mutated afterwards, so any
number of evaluations may share it without locking.
"""

import functools
import json
import logging
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from .charts import ChartType, Sex, chart_key, gender_key
from .config import (
    LMS_DTYPE,
    REFERENCE_DATA_FILE,
    REFERENCE_DATA_PACKAGE,
    reference_data_override,
)
from .lms import LMSPoint

logger = logging.getLogger(__name__)

Series = Tuple[LMSPoint, ...]


def _build_series(name: str, rows: Iterable[Any]) -> Series:
    """Convert raw rows to LMS points and check ordering."""
    points = []
    for row in rows:
        if isinstance(row, LMSPoint):
            point = row
        elif isinstance(row, Mapping):
            point = LMSPoint(
                day=int(row["day"]),
                L=float(row["L"]),
                M=float(row["M"]),
                S=float(row["S"]),
            )
        else:
            day, L, M, S = row
            point = LMSPoint(day=int(day), L=float(L), M=float(M), S=float(S))
        points.append(point)

    for previous, current in zip(points, points[1:]):
        if current.day <= previous.day:
            raise ValueError(
                f"{name}: days must be strictly increasing "
                f"(day {current.day} follows day {previous.day})"
            )
    if points and points[0].day < 0:
        raise ValueError(f"{name}: negative day {points[0].day}")

    degenerate = [p.day for p in points if not p.M > 0 or not p.S > 0]
    if degenerate:
        logger.warning(
            f"{name}: {len(degenerate)} rows with non-positive M or S "
            f"(first at day {degenerate[0]}); z-scores at these ages are undetermined"
        )
    return tuple(points)


class GrowthStandardTable:
    """
    Immutable chart type -> gender -> LMS series mapping.

    Usage:
        table = GrowthStandardTable.from_dict(
            {"wfa": {"boys": [{"day": 0, "L": 0.35, "M": 3.35, "S": 0.146}]}}
        )
        series = table.series(ChartType.WFA, Sex.MALE)

    Raises:
        ValueError: If any series is unsorted, has duplicate days or negative days,
            or if two gender keys of one chart name the same series.
    """

    def __init__(self, data: Mapping[str, Mapping[str, Iterable[Any]]]) -> None:
        charts: Dict[str, Mapping[str, Series]] = {}
        for chart, genders in data.items():
            built = {}
            for gender, rows in genders.items():
                ckey, gkey = chart_key(chart), gender_key(gender)
                if gkey in built:
                    raise ValueError(
                        f"{ckey}: gender '{gender}' duplicates series {ckey}_{gkey}"
                    )
                built[gkey] = _build_series(f"{ckey}_{gkey}", rows)
            charts[chart_key(chart)] = MappingProxyType(built)
        self._charts: Mapping[str, Mapping[str, Series]] = MappingProxyType(charts)

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, Iterable[Any]]]) -> "GrowthStandardTable":
        """Build from the ``{"wfa": {"boys": [{"day", "L", "M", "S"}, ...]}}`` shape."""
        return cls(data)

    @classmethod
    def from_arrays(cls, arrays: Mapping[str, np.ndarray]) -> "GrowthStandardTable":
        """
        Build from structured arrays keyed ``<chart>_<gender>``.

        Keys starting with ``metadata_`` are ignored.
        """
        data: Dict[str, Dict[str, Any]] = {}
        for key, arr in arrays.items():
            if key.startswith("metadata_"):
                continue
            chart, sep, gender = key.rpartition("_")
            if not sep or not chart:
                raise ValueError(f"Reference array key '{key}' is not <chart>_<gender>")
            if arr.dtype.names is None or not {"day", "L", "M", "S"} <= set(arr.dtype.names):
                raise ValueError(
                    f"Reference array '{key}' must be a structured array with "
                    "fields day, L, M, S"
                )
            data.setdefault(chart, {})[gender] = zip(
                arr["day"].tolist(), arr["L"].tolist(), arr["M"].tolist(), arr["S"].tolist()
            )
        return cls(data)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> "GrowthStandardTable":
        """
        Build from a long-form DataFrame with columns chart, gender, day, L, M, S.

        Rows are sorted by day within each series before validation.
        """
        required = ["chart", "gender", "day", "L", "M", "S"]
        missing = [col for col in required if col not in df.columns]
        if missing:
            raise ValueError(f"Reference DataFrame missing columns: {missing}")

        data: Dict[str, Dict[str, Any]] = {}
        for (chart, gender), group in df.groupby(["chart", "gender"], sort=False):
            group = group.sort_values("day")
            data.setdefault(str(chart), {})[str(gender)] = zip(
                group["day"].tolist(),
                group["L"].tolist(),
                group["M"].tolist(),
                group["S"].tolist(),
            )
        return cls(data)

    def series(
        self, chart_type: Union[ChartType, str], gender: Union[Sex, str]
    ) -> Optional[Series]:
        """Reference series for a chart and gender, or None if absent."""
        genders = self._charts.get(chart_key(chart_type))
        if genders is None:
            return None
        return genders.get(gender_key(gender))

    @property
    def chart_types(self) -> Tuple[str, ...]:
        return tuple(self._charts)

    def genders(self, chart_type: Union[ChartType, str]) -> Tuple[str, ...]:
        return tuple(self._charts.get(chart_key(chart_type), {}))

    def __contains__(self, chart_type: object) -> bool:
        if not isinstance(chart_type, str):
            return False
        return chart_key(chart_type) in self._charts

    def __iter__(self) -> Iterator[Tuple[str, str, Series]]:
        for chart, genders in self._charts.items():
            for gender, series in genders.items():
                yield chart, gender, series

    def __len__(self) -> int:
        return sum(len(genders) for genders in self._charts.values())

    def __repr__(self) -> str:
        keys = [f"{chart}_{gender}" for chart, gender, _ in self]
        return f"GrowthStandardTable({keys})"

    @functools.cached_property
    def _arrays(self) -> Mapping[str, np.ndarray]:
        arrays = {}
        for chart, gender, series in self:
            arr = np.array(
                [tuple(point) for point in series], dtype=LMS_DTYPE
            )
            arr.setflags(write=False)
            arrays[f"{chart}_{gender}"] = arr
        return MappingProxyType(arrays)

    def as_arrays(self) -> Mapping[str, np.ndarray]:
        """Read-only structured arrays keyed ``<chart>_<gender>`` for batch evaluation."""
        return self._arrays

    def to_dict(self) -> Dict[str, Dict[str, list]]:
        """Plain JSON-serializable copy of the table."""
        return {
            chart: {
                gender: [point._asdict() for point in series]
                for gender, series in genders.items()
            }
            for chart, genders in self._charts.items()
        }


def load_json(path: Union[str, Path]) -> GrowthStandardTable:
    """Load a table saved in the ``growthData.json`` shape."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object keyed by chart type")
    return GrowthStandardTable.from_dict(data)


def load_npz(path: Union[str, Path]) -> GrowthStandardTable:
    """Load a table saved by ``scripts/build_reference_data.py``."""
    with np.load(path) as loaded:
        arrays = {key: loaded[key] for key in loaded.files}
    return GrowthStandardTable.from_arrays(arrays)


def _load_path(path: Path) -> GrowthStandardTable:
    if path.suffix.lower() == ".json":
        return load_json(path)
    return load_npz(path)


@functools.lru_cache(maxsize=None)
def load_reference_table(path: Optional[Union[str, Path]] = None) -> GrowthStandardTable:
    """
    Load the process-wide reference table.

    Resolution order: explicit ``path``, the ``PEDGROWTH_REFERENCE_DATA``
    environment variable, then ``growth_references.npz`` shipped inside
    ``pedgrowth.data``. Results are cached per path for the process lifetime.

    Raises:
        FileNotFoundError: If no reference data can be located.
        ValueError: If the located file is malformed.
    """
    if path is None:
        path = reference_data_override()

    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Growth reference data file not found: {path}")
        logger.info(f"Loading growth reference data from {path}")
        return _load_path(path)

    try:
        with (
            resources.files(REFERENCE_DATA_PACKAGE)
            .joinpath(REFERENCE_DATA_FILE)
            .open("rb") as f
        ):
            with np.load(f) as loaded:
                arrays = {key: loaded[key] for key in loaded.files}
    except FileNotFoundError:
        raise FileNotFoundError(
            "Growth reference data file not found. "
            "Run 'scripts/build_reference_data.py' to generate it or set "
            "PEDGROWTH_REFERENCE_DATA to an existing .npz or .json file."
        ) from None
    return GrowthStandardTable.from_arrays(arrays)


def validate_table_integrity(table: GrowthStandardTable) -> bool:
    """
    Check that every standard chart has a non-empty series for both sexes.

    Logs a warning for each problem found and never raises.

    Returns:
        True if the table covers all standard charts, False otherwise
    """
    ok = True
    for chart in ChartType:
        for sex in Sex:
            series = table.series(chart, sex)
            if series is None:
                logger.warning(f"Missing reference series {chart.value}_{sex.table_key}")
                ok = False
            elif not series:
                logger.warning(f"Empty reference series {chart.value}_{sex.table_key}")
                ok = False
    return ok
