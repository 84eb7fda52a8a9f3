"""
Class rebalancing — synthetic minority oversampling plus majority undersampling.

Sizing follows the classic perc.over / perc.under convention:
  n_synthetic  = over_pct / 100 × n_minority
  n_majority   = under_pct / 100 × n_synthetic   (capped at what exists)

so over_pct=100, under_pct=200 turns a 26% churn train set into a 50/50 one.

Mixed frames go through SMOTE-NC: numeric attributes are interpolated between
a minority row and one of its k nearest minority neighbours, categorical ones
take the most frequent level among those neighbours. Ties between levels are
broken by the sampler's seeded generator, so a fixed seed reproduces them.
"""

from __future__ import annotations

import logging

import pandas as pd
from imblearn.over_sampling import SMOTE, SMOTEN, SMOTENC
from imblearn.under_sampling import RandomUnderSampler

from churn_modeling.config import TARGET

logger = logging.getLogger(__name__)


class InsufficientMinoritySamplesError(ValueError):
    """Raised when the minority class is too small to interpolate from."""


def class_counts(y: pd.Series) -> tuple[int, int, int, int]:
    """Return (minority_label, n_minority, majority_label, n_majority)."""
    counts = y.value_counts()
    if len(counts) != 2:
        raise ValueError(f"Expected a binary target, found classes {list(counts.index)}")
    minority, majority = counts.idxmin(), counts.idxmax()
    return minority, int(counts[minority]), majority, int(counts[majority])


def _effective_neighbors(n_minority: int, k_neighbors: int) -> int:
    if n_minority < 2:
        raise InsufficientMinoritySamplesError(
            f"Insufficient minority samples: {n_minority} row(s), need at least 2"
        )
    if n_minority <= k_neighbors:
        reduced = n_minority - 1
        logger.warning(
            "Only %d minority rows for k_neighbors=%d; reducing k to %d",
            n_minority,
            k_neighbors,
            reduced,
        )
        return reduced
    return k_neighbors


def _oversampler(X: pd.DataFrame, strategy: dict, k: int, seed: int):
    cat_cols = X.select_dtypes(include=["object", "category", "string"]).columns
    if len(cat_cols) == 0:
        return SMOTE(sampling_strategy=strategy, k_neighbors=k, random_state=seed)
    if len(cat_cols) == X.shape[1]:
        return SMOTEN(sampling_strategy=strategy, k_neighbors=k, random_state=seed)
    return SMOTENC(
        categorical_features=list(cat_cols),
        sampling_strategy=strategy,
        k_neighbors=k,
        random_state=seed,
    )


def rebalance(
    train: pd.DataFrame,
    features: list[str] | None = None,
    over_pct: int = 100,
    under_pct: int = 200,
    k_neighbors: int = 5,
    seed: int = 1,
) -> pd.DataFrame:
    """
    Return a resampled copy of train. The input frame is left untouched and
    the test partition never passes through here.
    """
    if over_pct <= 0 or under_pct <= 0:
        raise ValueError(
            f"over_pct and under_pct must be positive, got {over_pct}, {under_pct}"
        )
    if features is None:
        features = [c for c in train.columns if c != TARGET]

    X = train[features].reset_index(drop=True)
    y = train[TARGET].reset_index(drop=True)

    minority, n_min, majority, n_maj = class_counts(y)
    k = _effective_neighbors(n_min, k_neighbors)

    n_synthetic = max(1, int(round(over_pct / 100 * n_min)))
    n_keep = min(n_maj, max(1, int(round(under_pct / 100 * n_synthetic))))

    sampler = _oversampler(X, {minority: n_min + n_synthetic}, k, seed)
    X_res, y_res = sampler.fit_resample(X, y)

    if n_keep < n_maj:
        under = RandomUnderSampler(sampling_strategy={majority: n_keep}, random_state=seed)
        X_res, y_res = under.fit_resample(X_res, y_res)

    resampled = pd.DataFrame(X_res, columns=features)
    resampled[TARGET] = pd.Series(y_res).to_numpy()

    before = n_min / (n_min + n_maj)
    after = (resampled[TARGET] == minority).mean()
    logger.info(
        "Rebalanced: %d → %d rows | +%d synthetic minority, %d/%d majority kept | "
        "minority share %.1f%% → %.1f%%",
        len(train),
        len(resampled),
        n_synthetic,
        n_keep,
        n_maj,
        before * 100,
        after * 100,
    )
    return resampled.reset_index(drop=True)
