#!/usr/bin/env python3
"""
Build the packaged growth reference data from WHO expanded tables.

Reads WHO Child Growth Standards "expanded" tables (one row per day with Day,
L, M, S columns) from a local directory and/or URLs, and saves them as a
compressed NumPy .npz file of structured arrays keyed ``<chart>_<gender>``
for use by ``pedgrowth.load_reference_table``.

Files are named ``<chart>-<gender>.<ext>``, e.g. ``wfa-boys.xlsx``,
``lhfa-girls.csv``, where chart is one of wfa, lhfa, hcfa, bfa and gender is
boys or girls. Supported extensions: .xlsx, .csv, .txt (tab separated).
"""

import argparse
import hashlib
import io
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
import requests
from requests.adapters import HTTPAdapter
from tqdm import tqdm
from urllib3.util.retry import Retry

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".xlsx", ".csv", ".txt")
GENDERS = ("boys", "girls")
HEADER_SCAN_ROWS = 10
REQUIRED_HEADERS = ("day", "l", "m", "s")

LMS_DTYPE = np.dtype([("day", "i8"), ("L", "f8"), ("M", "f8"), ("S", "f8")])

DEFAULT_OUTPUT = (
    Path(__file__).parent.parent / "src" / "pedgrowth" / "data" / "growth_references.npz"
)


def download_file(url: str, timeout: int = 30) -> bytes:
    """Download file content from URL with retries."""
    try:
        retry_strategy = Retry(
            total=3,
            status_forcelist=[429, 500, 502, 503, 504],
            backoff_factor=2,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)

        with requests.Session() as session:
            session.mount("https://", adapter)
            session.mount("http://", adapter)
            response = session.get(url, timeout=timeout, verify=True)
            response.raise_for_status()
            return response.content
    except Exception as e:
        logger.error(f"Failed to download {url}: {e}")
        raise


def compute_sha256(content: bytes) -> str:
    """Compute SHA-256 hash of content."""
    return hashlib.sha256(content).hexdigest()


def parse_name(filename: str) -> Optional[Tuple[str, str]]:
    """
    Split ``<chart>-<gender>[...].<ext>`` into (chart, gender).

    Returns None when the name does not follow the convention.
    """
    parts = Path(filename).stem.lower().split("-")
    if len(parts) < 2 or not parts[0] or parts[1] not in GENDERS:
        return None
    return parts[0], parts[1]


def read_raw(content: bytes, suffix: str) -> pd.DataFrame:
    """Read a spreadsheet without assuming where the header row is."""
    suffix = suffix.lower()
    if suffix == ".xlsx":
        return pd.read_excel(io.BytesIO(content), header=None, engine="openpyxl")
    # Title rows above the header may have fewer cells than the table
    sep = "\t" if suffix == ".txt" else ","
    text = content.decode("utf-8-sig")
    rows = [line.split(sep) for line in text.splitlines() if line.strip()]
    return pd.DataFrame(rows)


def find_header(raw: pd.DataFrame) -> Optional[Tuple[int, Dict[str, int]]]:
    """
    Locate the header row holding Day, L, M and S cells.

    Only the first HEADER_SCAN_ROWS rows are scanned; cells match
    case-insensitively after trimming.

    Returns:
        (row index, {header: column position}) or None if not found
    """
    for i in range(min(HEADER_SCAN_ROWS, len(raw))):
        cells = [str(cell).strip().lower() for cell in raw.iloc[i].tolist()]
        positions = {}
        for header in REQUIRED_HEADERS:
            if header in cells:
                positions[header] = cells.index(header)
        if len(positions) == len(REQUIRED_HEADERS):
            return i, positions
    return None


def parse_table(raw: pd.DataFrame, name: str) -> np.ndarray:
    """
    Extract Day/L/M/S rows below the header into a structured array.

    Rows with any missing or non-numeric value are dropped.

    Raises:
        ValueError: If the header is missing or days are not strictly increasing.
    """
    header = find_header(raw)
    if header is None:
        raise ValueError(f"{name}: missing headers (Day, L, M, S)")
    header_idx, positions = header

    body = raw.iloc[header_idx + 1 :]
    columns = {
        key: pd.to_numeric(body.iloc[:, pos].astype(str).str.strip(), errors="coerce")
        for key, pos in positions.items()
    }
    frame = pd.DataFrame(columns).replace([np.inf, -np.inf], np.nan).dropna()

    structured = np.zeros(len(frame), dtype=LMS_DTYPE)
    structured["day"] = frame["day"].to_numpy().astype(np.int64)
    structured["L"] = frame["l"].to_numpy(dtype=np.float64)
    structured["M"] = frame["m"].to_numpy(dtype=np.float64)
    structured["S"] = frame["s"].to_numpy(dtype=np.float64)

    validate_array(structured, name)
    return structured


def validate_array(arr: np.ndarray, array_name: str) -> None:
    """Validate parsed array for common issues."""
    if arr.size == 0:
        logger.warning(f"{array_name}: empty array")
        return

    days = arr["day"]
    if np.any(days < 0):
        raise ValueError(f"{array_name}: negative day values")
    if len(days) > 1 and not np.all(days[:-1] < days[1:]):
        raise ValueError(f"{array_name}: day not strictly increasing")

    for col in ["M", "S"]:
        if np.any(arr[col] <= 0):
            logger.warning(
                f"{array_name}: non-positive {col} values; z-scores at these ages "
                "will be undetermined"
            )


def collect_sources(
    input_dir: Optional[Path], urls: Optional[List[str]] = None
) -> List[Tuple[str, str]]:
    """
    List (name, location) pairs to process.

    Args:
        input_dir: Directory scanned for supported files
        urls: ``<chart>-<gender>=<url>`` specs; the URL's extension picks the reader

    Returns:
        Sources sorted by name, local files first
    """
    sources: List[Tuple[str, str]] = []
    if input_dir is not None:
        for path in sorted(input_dir.iterdir()):
            if path.is_file() and path.suffix.lower() in SUPPORTED_EXTENSIONS:
                sources.append((path.name, str(path)))
    for spec in urls or []:
        name, sep, url = spec.partition("=")
        if not sep or not url:
            raise ValueError(f"URL source must be <chart>-<gender>=<url>, got '{spec}'")
        suffix = Path(url.split("?")[0]).suffix.lower() or ".csv"
        sources.append((f"{name}{suffix}", url))
    return sources


def load_source(location: str) -> bytes:
    """Read a local file or download a URL."""
    if location.startswith(("http://", "https://")):
        return download_file(location)
    return Path(location).read_bytes()


def save_npz(data: Dict[str, np.ndarray], output_path: Path) -> None:
    """Save data dictionary as compressed NumPy .npz file."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    np.savez_compressed(output_path, **data)
    logger.info(f"Saved {len(data)} arrays to {output_path}")


def save_json(data: Dict[str, np.ndarray], output_path: Path) -> None:
    """Save reference arrays as ``{"wfa": {"boys": [{"day", "L", "M", "S"}]}}`` JSON."""
    nested: Dict[str, Dict[str, list]] = {}
    for key, arr in data.items():
        if key.startswith("metadata_"):
            continue
        chart, _, gender = key.rpartition("_")
        nested.setdefault(chart, {})[gender] = [
            {"day": int(day), "L": float(L), "M": float(M), "S": float(S)}
            for day, L, M, S in arr.tolist()
        ]
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(nested, indent=2), encoding="utf-8")
    logger.info(f"Saved JSON reference data to {output_path}")


def main(
    input_dir: Optional[Path] = None,
    urls: Optional[List[str]] = None,
    output_path: Path = DEFAULT_OUTPUT,
    json_path: Optional[Path] = None,
    strict_mode: bool = False,
) -> Dict[str, np.ndarray]:
    """Parse every source and write the combined reference data."""
    sources = collect_sources(input_dir, urls)
    if not sources:
        raise RuntimeError("No reference sources found")

    all_data: Dict[str, np.ndarray] = {}
    failed_sources = []

    with tqdm(total=len(sources), desc="Parsing sources") as pbar:
        for filename, location in sources:
            pbar.set_postfix({"source": filename})
            pbar.update(1)

            parsed_name = parse_name(filename)
            if parsed_name is None:
                logger.warning(
                    f"Could not determine chart type or gender from filename "
                    f"'{filename}'. Expected format: <chart>-<gender>.<ext>"
                )
                failed_sources.append(filename)
                continue
            chart, gender = parsed_name
            array_key = f"{chart}_{gender}"

            try:
                content = load_source(location)
                raw = read_raw(content, Path(filename).suffix)
                all_data[array_key] = parse_table(raw, array_key)
            except Exception as e:
                failed_sources.append(filename)
                logger.error(f"Failed to process {filename}: {e}")
                continue

            metadata = {
                "source": location,
                "hash": compute_sha256(content),
                "timestamp": str(np.datetime64("now")),
            }
            for key, value in metadata.items():
                all_data[f"metadata_{array_key}_{key}"] = np.array([value], dtype="U256")

    if strict_mode and failed_sources:
        raise RuntimeError(
            f"Strict mode failed: Unable to process sources: {', '.join(failed_sources)}"
        )

    save_npz(all_data, output_path)
    if json_path is not None:
        save_json(all_data, json_path)

    with np.load(output_path) as loaded:
        arrays = [key for key in loaded.files if not key.startswith("metadata_")]
        logger.info(f"Verification: {len(arrays)} reference arrays saved")
        for key in arrays:
            logger.info(f"  {key}: shape {loaded[key].shape}")

    return all_data


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Build growth reference data from WHO expanded LMS tables."
    )
    parser.add_argument(
        "--input-dir",
        type=Path,
        help="Directory containing <chart>-<gender>.{xlsx,csv,txt} files",
    )
    parser.add_argument(
        "--url",
        action="append",
        default=[],
        metavar="CHART-GENDER=URL",
        help="Download a table, e.g. wfa-boys=https://.../wfa-boys.xlsx (repeatable)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_OUTPUT,
        help="Output .npz path (default: packaged data file)",
    )
    parser.add_argument(
        "--json",
        type=Path,
        default=None,
        help="Also write the tables as JSON to this path",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Strict mode: fail if any source cannot be processed",
    )
    args = parser.parse_args()

    main(
        input_dir=args.input_dir,
        urls=args.url,
        output_path=args.output,
        json_path=args.json,
        strict_mode=args.strict,
    )
