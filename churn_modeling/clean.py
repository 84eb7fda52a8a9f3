"""
Data cleaning — identifier drop, missing totals, "no service" collapse, label recoding.

Strategy:
  customerID:     dropped (identifier, no signal)
  TotalCharges:   coerced to numeric; blank rows (new customers, tenure 0) dropped.
                  The drop is logged and capped by max_missing_fraction.
  No-service:     "No internet service" / "No phone service" → "No"
  Recoding:       InternetService, Contract, PaymentMethod → short canonical tokens.
                  Unrecognised labels land in the DEFAULT_BUCKET with a warning.
  SeniorCitizen:  0/1 → No/Yes so it is treated like the other flags
  Reports:        missing values, cardinality, numeric multicollinearity
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from churn_modeling.config import (
    DEFAULT_BUCKET,
    ID_COL,
    NO_SERVICE_COLS,
    NO_SERVICE_VALUES,
    NUMERIC_FEATURES,
    RECODE_MAPS,
)

logger = logging.getLogger(__name__)


class DataQualityError(ValueError):
    """Raised when cleaning would discard more rows than the run tolerates."""


def drop_identifier(df: pd.DataFrame) -> pd.DataFrame:
    if ID_COL in df.columns:
        df = df.drop(columns=[ID_COL])
        logger.info("Dropped identifier column '%s'", ID_COL)
    return df


def drop_missing_totals(
    df: pd.DataFrame, max_missing_fraction: float = 0.05
) -> pd.DataFrame:
    """
    Coerce TotalCharges to numeric and drop rows where it is missing.

    The IBM file has 11 blank totals out of 7,043 rows. A larger share would
    point at a broken export rather than new customers, so the run stops.
    """
    if df.empty:
        return df
    df = df.copy()
    df["TotalCharges"] = pd.to_numeric(df["TotalCharges"], errors="coerce")

    mask = df["TotalCharges"].isna()
    n_missing = int(mask.sum())
    fraction = n_missing / len(df)
    if fraction > max_missing_fraction:
        raise DataQualityError(
            f"{n_missing} of {len(df)} rows ({fraction:.1%}) have no TotalCharges; "
            f"limit is {max_missing_fraction:.1%}"
        )

    if n_missing > 0:
        df = df.loc[~mask].reset_index(drop=True)
        logger.info(
            "Dropped %d rows with missing TotalCharges (%.2f%%)",
            n_missing,
            fraction * 100,
        )
    else:
        logger.info("No missing TotalCharges")
    return df


def collapse_no_service(df: pd.DataFrame) -> pd.DataFrame:
    """Fold the compound "No ... service" level into a plain binary Yes/No."""
    if df.empty:
        return df
    df = df.copy()
    for col in NO_SERVICE_COLS:
        if col not in df.columns:
            continue
        mask = df[col].isin(NO_SERVICE_VALUES)
        n = int(mask.sum())
        if n > 0:
            df.loc[mask, col] = "No"
            logger.info("Collapsed %d no-service values in '%s' → 'No'", n, col)
    return df


def recode_column(
    series: pd.Series, mapping: dict[str, str], default: str = DEFAULT_BUCKET
) -> pd.Series:
    """Map labels through mapping; anything unmapped goes to default, loudly."""
    recoded = series.map(mapping)
    unmapped = recoded.isna() & series.notna()
    if unmapped.any():
        for value, count in series[unmapped].value_counts().items():
            logger.warning(
                "Unmapped value %r in '%s' defaulted to %r (%d rows)",
                value,
                series.name,
                default,
                count,
            )
        recoded = recoded.where(~unmapped, default)
    return recoded


def recode_labels(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return df
    df = df.copy()
    for col, mapping in RECODE_MAPS.items():
        if col in df.columns:
            df[col] = recode_column(df[col], mapping)
    if "SeniorCitizen" in df.columns:
        df["SeniorCitizen"] = recode_column(
            df["SeniorCitizen"].astype(str), {"0": "No", "1": "Yes", "No": "No", "Yes": "Yes"}
        )
    logger.info("Recoded labels in %s", ", ".join([*RECODE_MAPS, "SeniorCitizen"]))
    return df


def check_missing_values(df: pd.DataFrame) -> pd.DataFrame:
    """Log missing value counts across all columns."""
    null_counts = df.isnull().sum()
    cols_with_nulls = null_counts[null_counts > 0]

    if len(cols_with_nulls) > 0:
        logger.info("Missing values (NaN) found in %d columns:", len(cols_with_nulls))
        for col, count in cols_with_nulls.items():
            logger.info("  %s: %d (%.1f%%)", col, count, count / len(df) * 100)
    else:
        logger.info("No NaN missing values found")
    return df


def check_cardinality(df: pd.DataFrame) -> pd.DataFrame:
    """Log level counts of categorical features and flag rare levels."""
    cat_cols = df.select_dtypes(include=["object", "category", "string"]).columns
    if len(cat_cols) == 0:
        return df

    logger.info("Cardinality check for %d categorical features:", len(cat_cols))
    for col in cat_cols:
        value_counts = df[col].value_counts()
        if value_counts.empty:
            continue
        min_count = value_counts.min()
        flag = ""
        if min_count < 50:
            flag = f" (rare level: '{value_counts.idxmin()}', {min_count} rows)"
        logger.info(
            "  %s: %d levels, min=%d%s", col, df[col].nunique(), min_count, flag
        )
    return df


def check_multicollinearity(df: pd.DataFrame, threshold: float = 0.8) -> pd.DataFrame:
    """
    Report numeric feature pairs with |r| > threshold.

    tenure and TotalCharges are expected here: total charges are roughly
    tenure × monthly charge. Feature selection drops TotalCharges.
    """
    available = [
        c
        for c in NUMERIC_FEATURES
        if c in df.columns and np.issubdtype(df[c].dtype, np.number)
    ]
    if len(available) < 2:
        return df

    corr_matrix = df[available].corr().abs()
    high_corr_pairs = []
    for i in range(len(available)):
        for j in range(i + 1, len(available)):
            r = corr_matrix.iloc[i, j]
            if r > threshold:
                high_corr_pairs.append((available[i], available[j], round(r, 3)))

    if high_corr_pairs:
        logger.info(
            "Multicollinearity — %d highly correlated pairs (|r| > %.1f):",
            len(high_corr_pairs),
            threshold,
        )
        for f1, f2, r in high_corr_pairs:
            logger.info("  %s ↔ %s: r=%.3f", f1, f2, r)
    else:
        logger.info("Multicollinearity — no highly correlated pairs found")
    return df


def clean_data(df: pd.DataFrame, max_missing_fraction: float = 0.05) -> pd.DataFrame:
    """
    Full cleaning pipeline:
      1. Drop the customerID identifier
      2. Coerce TotalCharges and drop rows where it is missing
      3. Collapse "No ... service" levels to "No"
      4. Recode InternetService / Contract / PaymentMethod / SeniorCitizen
      5. Report missing values, cardinality and multicollinearity
    """
    logger.info("Starting data cleaning pipeline...")
    df = drop_identifier(df)
    df = drop_missing_totals(df, max_missing_fraction=max_missing_fraction)
    df = collapse_no_service(df)
    df = recode_labels(df)
    df = check_missing_values(df)
    df = check_cardinality(df)
    df = check_multicollinearity(df)
    logger.info("Cleaning complete: %d rows, %d columns", len(df), len(df.columns))
    return df
