"""
Feature selection — chi-squared independence tests and forest importance ranking.

Two signals feed the final predictor list:

  1. Chi-squared test of each categorical attribute against Churn. Attributes
     with p > alpha are judged uninformative.
  2. A random forest fitted on every attribute (ordinal-encoded, standardised).
     Two scores per attribute: mean impurity decrease and permutation
     accuracy drop. An attribute is a candidate if it is in the top-N of
     either ranking.

Data-driven candidates = (significant categoricals ∩ importance candidates)
∪ numeric importance candidates, ordered by impurity importance, minus the
redundant attributes and anything collinear with an attribute already kept.

By default the models use the hand-curated CURATED_FEATURES; the tests above
are logged and saved so the curated list can be checked against them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
from scipy.stats import chi2_contingency
from sklearn.compose import ColumnTransformer
from sklearn.ensemble import RandomForestClassifier
from sklearn.inspection import permutation_importance
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OrdinalEncoder, StandardScaler

from churn_modeling.config import (
    CURATED_FEATURES,
    NUMERIC_FEATURES,
    REDUNDANT_FEATURES,
    TARGET,
)

logger = logging.getLogger(__name__)


@dataclass
class FeatureSelection:
    features: list[str]
    candidates: list[str]
    chi_square: pd.DataFrame
    importance: pd.DataFrame
    dropped_collinear: list[str] = field(default_factory=list)


def chi_square_tests(df: pd.DataFrame, alpha: float = 0.05) -> pd.DataFrame:
    """Chi-squared test of independence for every categorical column vs Churn."""
    cat_cols = [
        c
        for c in df.select_dtypes(include=["object", "category", "string"]).columns
        if c != TARGET
    ]

    rows = []
    for col in cat_cols:
        contingency = pd.crosstab(df[col], df[TARGET])
        if contingency.shape[0] < 2 or contingency.shape[1] < 2:
            logger.warning("Skipping chi-squared for '%s': degenerate table", col)
            continue
        chi2, p, dof, _ = chi2_contingency(contingency)
        rows.append(
            {
                "feature": col,
                "chi2": float(chi2),
                "dof": int(dof),
                "p_value": float(p),
                "significant": bool(p <= alpha),
            }
        )

    result = pd.DataFrame(
        rows, columns=["feature", "chi2", "dof", "p_value", "significant"]
    )
    result = result.sort_values("chi2", ascending=False).reset_index(drop=True)

    rejected = result.loc[~result["significant"], "feature"].tolist()
    logger.info(
        "Chi-squared: %d/%d categorical features significant at alpha=%.2f",
        int(result["significant"].sum()),
        len(result),
        alpha,
    )
    if rejected:
        logger.info("  Not significant: %s", ", ".join(rejected))
    return result


def importance_ranking(
    df: pd.DataFrame, top_n: int = 10, seed: int = 21, n_repeats: int = 5
) -> pd.DataFrame:
    """
    Fit a random forest on all attributes and rank them two ways.

    Categoricals are ordinal-encoded rather than one-hot so each attribute
    keeps a single importance score.
    """
    features = [c for c in df.columns if c != TARGET]
    numeric = [c for c in features if c in NUMERIC_FEATURES]
    categorical = [c for c in features if c not in NUMERIC_FEATURES]

    pre = ColumnTransformer(
        [
            ("num", "passthrough", numeric),
            ("ord", OrdinalEncoder(), categorical),
        ],
        verbose_feature_names_out=False,
    )
    pipe = Pipeline(
        [
            ("preprocessor", pre),
            ("scaler", StandardScaler()),
            (
                "classifier",
                RandomForestClassifier(
                    n_estimators=500, random_state=seed, n_jobs=-1
                ),
            ),
        ]
    )
    X, y = df[features], df[TARGET].astype(int)
    pipe.fit(X, y)

    # Names come back in ColumnTransformer order, not df order
    names = list(pipe.named_steps["preprocessor"].get_feature_names_out())
    gini = pd.Series(pipe.named_steps["classifier"].feature_importances_, index=names)

    perm = permutation_importance(
        pipe, X, y, scoring="accuracy", n_repeats=n_repeats, random_state=seed, n_jobs=-1
    )
    accuracy_drop = pd.Series(perm.importances_mean, index=features)

    imp = pd.DataFrame(
        {
            "feature": features,
            "impurity_importance": gini.reindex(features).to_numpy(),
            "permutation_importance": accuracy_drop.to_numpy(),
        }
    )
    imp["impurity_rank"] = (
        imp["impurity_importance"].rank(ascending=False, method="first").astype(int)
    )
    imp["permutation_rank"] = (
        imp["permutation_importance"].rank(ascending=False, method="first").astype(int)
    )
    imp["in_top_n"] = (imp["impurity_rank"] <= top_n) | (imp["permutation_rank"] <= top_n)
    imp = imp.sort_values("impurity_rank").reset_index(drop=True)

    logger.info(
        "Forest importance: top-3 (impurity) %s | top-3 (permutation) %s",
        ", ".join(imp["feature"].head(3)),
        ", ".join(imp.sort_values("permutation_rank")["feature"].head(3)),
    )
    return imp


def prune_collinear(
    df: pd.DataFrame,
    ordered: list[str],
    threshold: float = 0.8,
    redundant: list[str] | None = None,
) -> tuple[list[str], list[str]]:
    """Walk ordered, keeping a numeric attribute only if it is not collinear with one kept."""
    redundant = REDUNDANT_FEATURES if redundant is None else redundant
    kept, dropped = [], []
    for feat in ordered:
        if feat in redundant:
            dropped.append(feat)
            continue
        if feat in NUMERIC_FEATURES:
            kept_numeric = [k for k in kept if k in NUMERIC_FEATURES]
            if kept_numeric:
                r = df[kept_numeric].corrwith(df[feat]).abs()
                if (r > threshold).any():
                    logger.info(
                        "Dropping '%s': |r|=%.3f with '%s'", feat, r.max(), r.idxmax()
                    )
                    dropped.append(feat)
                    continue
        kept.append(feat)
    return kept, dropped


def select_features(
    df: pd.DataFrame,
    alpha: float = 0.05,
    top_n: int = 10,
    seed: int = 21,
    collinearity_threshold: float = 0.8,
    use_curated: bool = True,
    curated: list[str] | None = None,
) -> FeatureSelection:
    """Run both selection signals once and return the Feature Set."""
    chi = chi_square_tests(df, alpha=alpha)
    imp = importance_ranking(df, top_n=top_n, seed=seed)

    significant = set(chi.loc[chi["significant"], "feature"])
    top = imp.loc[imp["in_top_n"], "feature"].tolist()
    ordered = [f for f in top if f in NUMERIC_FEATURES or f in significant]
    candidates, dropped = prune_collinear(df, ordered, threshold=collinearity_threshold)

    logger.info("Data-driven candidates (%d): %s", len(candidates), ", ".join(candidates))
    if dropped:
        logger.info("Dropped as redundant/collinear: %s", ", ".join(dropped))

    if use_curated:
        features = list(CURATED_FEATURES if curated is None else curated)
        missing = [f for f in features if f not in df.columns]
        if missing:
            raise ValueError(f"Curated features not in data: {missing}")
        outside = [f for f in features if f not in candidates]
        if outside:
            logger.info("Curated features outside the candidates: %s", ", ".join(outside))
    else:
        features = candidates
    if not features:
        raise ValueError("Feature selection produced an empty feature set")

    logger.info("Feature Set (%d): %s", len(features), ", ".join(features))
    return FeatureSelection(
        features=features,
        candidates=candidates,
        chi_square=chi,
        importance=imp,
        dropped_collinear=dropped,
    )


def feature_set_overlap(a: list[str], b: list[str]) -> float:
    """Jaccard overlap between two feature sets."""
    sa, sb = set(a), set(b)
    if not sa and not sb:
        return 1.0
    return len(sa & sb) / len(sa | sb)


def summarize_selection(selection: FeatureSelection) -> pd.DataFrame:
    """One row per attribute combining both signals, for the metrics report."""
    merged = selection.importance.merge(
        selection.chi_square[["feature", "chi2", "p_value", "significant"]],
        on="feature",
        how="left",
    )
    merged["selected"] = merged["feature"].isin(selection.features)
    merged["candidate"] = merged["feature"].isin(selection.candidates)
    merged["p_value"] = merged["p_value"].astype(float)
    merged["significant"] = merged["significant"].astype("boolean")
    return merged.sort_values("impurity_rank").reset_index(drop=True)
