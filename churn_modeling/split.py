"""Stratified train/test splitting preserving the churn ratio."""

from __future__ import annotations

import logging

import pandas as pd
from sklearn.model_selection import train_test_split

from churn_modeling.config import TARGET

logger = logging.getLogger(__name__)

SEED = 1


def stratified_split(
    df: pd.DataFrame, train_fraction: float = 0.70, seed: int = SEED
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Single-stage stratified split into train/test."""
    df_train, df_test = train_test_split(
        df, train_size=train_fraction, stratify=df[TARGET], random_state=seed
    )

    for name, split in [("Train", df_train), ("Test", df_test)]:
        logger.info(
            "%s: %d records, churn rate: %.3f",
            name,
            len(split),
            split[TARGET].mean(),
        )

    return df_train, df_test
