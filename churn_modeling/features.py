"""
Preprocessing — scaling and encoding of the selected predictors.

Design decisions:
  - numerics → StandardScaler (needed for LogReg, QDA and the linear SVM; harmless for trees)
  - categoricals → one-hot with the first level dropped, so logistic
    coefficients read as odds relative to a reference level and QDA never
    sees a perfectly collinear dummy block
  - the preprocessor lives inside the model Pipeline, so it is fitted on the
    resampled train set and reused unchanged at prediction time
"""

from __future__ import annotations

import pandas as pd
from sklearn.base import BaseEstimator
from sklearn.compose import ColumnTransformer
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder, StandardScaler

from churn_modeling.config import NUMERIC_FEATURES, TARGET


def split_feature_types(features: list[str]) -> tuple[list[str], list[str]]:
    """Partition a feature list into (numeric, categorical), preserving order."""
    numeric = [f for f in features if f in NUMERIC_FEATURES]
    categorical = [f for f in features if f not in NUMERIC_FEATURES]
    return numeric, categorical


def build_preprocessor(features: list[str]) -> ColumnTransformer:
    """ColumnTransformer for the numeric and nominal columns in features."""
    numeric, categorical = split_feature_types(features)

    transformers = []
    if numeric:
        transformers.append(
            ("num", Pipeline([("scaler", StandardScaler())]), numeric)
        )
    if categorical:
        transformers.append(
            (
                "nom",
                Pipeline(
                    [
                        (
                            "onehot",
                            OneHotEncoder(
                                drop="first",
                                handle_unknown="ignore",
                                sparse_output=False,
                            ),
                        )
                    ]
                ),
                categorical,
            )
        )

    return ColumnTransformer(
        transformers=transformers,
        remainder="drop",
        verbose_feature_names_out=False,
    )


def build_pipeline(model: BaseEstimator, features: list[str]) -> Pipeline:
    """Full pipeline: Preprocessing → Classifier."""
    return Pipeline(
        [
            ("preprocessor", build_preprocessor(features)),
            ("classifier", model),
        ]
    )


def xy(df: pd.DataFrame, features: list[str]) -> tuple[pd.DataFrame, pd.Series]:
    """Slice a frame into the predictor matrix and the churn target."""
    return df[features], df[TARGET].astype(int)
