"""
Download and validate the IBM Telco Customer Churn dataset.

The file is a single comma-delimited CSV with a header row:
  customerID | 16 categorical columns | tenure, MonthlyCharges, TotalCharges | Churn
"""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.request import urlretrieve

import pandas as pd

from churn_modeling.config import DATA_URL, EXPECTED_COLUMNS, RAW_DIR, TARGET, TARGET_CSV

logger = logging.getLogger(__name__)

TARGET_MAP = {"Yes": 1, "No": 0}


def download_dataset(url: str = DATA_URL, dest_dir: Path = RAW_DIR) -> Path:
    """Fetch the CSV into dest_dir unless a copy is already there."""
    dest_dir.mkdir(parents=True, exist_ok=True)
    csv_path = dest_dir / TARGET_CSV

    if csv_path.exists():
        logger.info("Dataset already exists at %s", csv_path)
        return csv_path

    logger.info("Downloading from %s ...", url)
    urlretrieve(url, csv_path)
    logger.info("Saved to %s", csv_path)
    return csv_path


def validate_schema(df: pd.DataFrame) -> pd.DataFrame:
    missing = [c for c in EXPECTED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Input file is missing required columns: {missing}")
    return df


def load_raw_data(filepath: Path | None = None) -> pd.DataFrame:
    """Load and validate the raw dataset. Auto-downloads if missing."""
    if filepath is None:
        filepath = RAW_DIR / TARGET_CSV
    filepath = Path(filepath)
    if not filepath.exists():
        if filepath.name != TARGET_CSV:
            raise FileNotFoundError(f"Input file not found: {filepath}")
        filepath = download_dataset(dest_dir=filepath.parent)

    # TotalCharges holds blanks for brand-new customers; keep it as text here
    # and let the cleaner coerce it.
    df = pd.read_csv(filepath, dtype={"TotalCharges": str})
    df = validate_schema(df)

    df[TARGET] = df[TARGET].astype(str).str.strip().map(TARGET_MAP)
    if df[TARGET].isnull().any():
        raise ValueError("Unmapped target values found")
    df[TARGET] = df[TARGET].astype(int)

    logger.info(
        "Loaded %d records | Churn rate: %.1f%%",
        len(df),
        df[TARGET].mean() * 100,
    )
    return df
