"""
Model training — 4 classifier families, 10-fold CV on ROC-AUC, optional Optuna tuning.

Models: Logistic Regression (interpretable baseline), Quadratic Discriminant
Analysis, linear SVM (Platt-calibrated for probabilities), Random Forest.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field

import numpy as np
import optuna
from sklearn.calibration import CalibratedClassifierCV
from sklearn.discriminant_analysis import QuadraticDiscriminantAnalysis
from sklearn.ensemble import RandomForestClassifier
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import LogisticRegression
from sklearn.model_selection import StratifiedKFold, cross_val_score
from sklearn.pipeline import Pipeline
from sklearn.svm import LinearSVC

from churn_modeling.features import build_pipeline

logger = logging.getLogger(__name__)

SEED = 21
N_FOLDS = 10


class ModelFitError(RuntimeError):
    """The numerical fit of a model family failed or did not converge."""

    def __init__(self, family: str, reason: str):
        super().__init__(f"{family}: {reason}")
        self.family = family
        self.reason = reason


def _linear_svm(C: float = 1.0, max_iter: int = 5000, random_state: int = SEED, cv: int = 5):
    return CalibratedClassifierCV(
        LinearSVC(C=C, max_iter=max_iter, random_state=random_state),
        method="sigmoid",
        cv=cv,
    )


MODEL_CLASSES = {
    "logistic_regression": LogisticRegression,
    "qda": QuadraticDiscriminantAnalysis,
    "linear_svm": _linear_svm,
    "random_forest": RandomForestClassifier,
}

# Fixed params that Optuna doesn't search over
FIXED_PARAMS = {
    "logistic_regression": {"max_iter": 1000},
    "qda": {},
    "linear_svm": {"max_iter": 5000},
    "random_forest": {"n_jobs": -1},
}

# Used when no tuning trials are requested
DEFAULT_PARAMS = {
    "logistic_regression": {"C": 1.0},
    "qda": {"reg_param": 0.01},
    "linear_svm": {"C": 1.0},
    "random_forest": {"n_estimators": 500, "min_samples_leaf": 1},
}

# QDA reports a rank-deficient class covariance with one of these warnings
COLLINEAR_WARNING = r"(Variables are collinear|.*not full rank)"

SEEDED = {"logistic_regression", "linear_svm", "random_forest"}


@dataclass
class TrainedModel:
    name: str
    pipeline: Pipeline
    features: list[str]
    params: dict
    cv_auc_mean: float = float("nan")
    cv_auc_std: float = float("nan")
    cv_scores: list[float] = field(default_factory=list)

    def predict(self, X):
        return self.pipeline.predict(X[self.features])

    def predict_proba(self, X):
        """Probability of the churn (positive) class."""
        return self.pipeline.predict_proba(X[self.features])[:, 1]


def _search_space(trial: optuna.Trial, name: str) -> dict:
    """Define Optuna search space per model."""
    if name == "logistic_regression":
        return {"C": trial.suggest_float("C", 1e-3, 100.0, log=True)}
    elif name == "qda":
        return {"reg_param": trial.suggest_float("reg_param", 1e-3, 0.5, log=True)}
    elif name == "linear_svm":
        return {"C": trial.suggest_float("C", 1e-3, 10.0, log=True)}
    elif name == "random_forest":
        return {
            "n_estimators": trial.suggest_int("n_estimators", 100, 600, step=100),
            "max_depth": trial.suggest_int("max_depth", 3, 18),
            "min_samples_leaf": trial.suggest_int("min_samples_leaf", 1, 15),
        }
    raise ValueError(f"Unknown model: {name}")


def make_model(name: str, params: dict | None = None, seed: int = SEED):
    if name not in MODEL_CLASSES:
        raise ValueError(f"Unknown model: {name}")
    all_params = {**FIXED_PARAMS[name], **(params or {})}
    if name in SEEDED:
        all_params.setdefault("random_state", seed)
    return MODEL_CLASSES[name](**all_params)


def make_cv(folds: int = N_FOLDS, seed: int = SEED) -> StratifiedKFold:
    return StratifiedKFold(n_splits=folds, shuffle=True, random_state=seed)


def cross_validate_model(
    name: str,
    X,
    y,
    features: list[str],
    params: dict | None = None,
    folds: int = N_FOLDS,
    seed: int = SEED,
) -> np.ndarray:
    """Per-fold ROC-AUC of a fresh pipeline for the given family."""
    pipeline = build_pipeline(make_model(name, params, seed), features)
    with warnings.catch_warnings():
        warnings.simplefilter("error", ConvergenceWarning)
        try:
            scores = cross_val_score(
                pipeline,
                X[features],
                y,
                cv=make_cv(folds, seed),
                scoring="roc_auc",
                error_score="raise",
            )
        except (ConvergenceWarning, np.linalg.LinAlgError, ValueError) as exc:
            raise ModelFitError(name, f"cross-validation failed: {exc}") from exc
    return scores


def tune_model(
    name: str,
    X,
    y,
    features: list[str],
    n_trials: int = 30,
    folds: int = N_FOLDS,
    seed: int = SEED,
) -> dict:
    """
    Run Optuna optimization for a given model.

    Returns dict with best_params, best_auc.
    """
    optuna.logging.set_verbosity(optuna.logging.WARNING)

    def objective(trial):
        params = _search_space(trial, name)
        try:
            return cross_validate_model(name, X, y, features, params, folds, seed).mean()
        except ModelFitError as exc:
            logger.info("  trial %d pruned (%s)", trial.number, exc.reason)
            raise optuna.TrialPruned() from exc

    study = optuna.create_study(
        direction="maximize",
        study_name=name,
        sampler=optuna.samplers.TPESampler(seed=seed),
    )
    study.optimize(objective, n_trials=n_trials)

    completed = [t for t in study.trials if t.state == optuna.trial.TrialState.COMPLETE]
    if not completed:
        raise ModelFitError(name, f"all {n_trials} tuning trials failed")

    logger.info(
        "%s → best CV AUC: %.4f | params: %s", name, study.best_value, study.best_params
    )
    return {"best_params": study.best_params, "best_auc": study.best_value}


def fit_strict(name: str, pipeline: Pipeline, X, y) -> Pipeline:
    """Fit, turning convergence warnings and singular fits into ModelFitError."""
    with warnings.catch_warnings():
        warnings.simplefilter("error", ConvergenceWarning)
        warnings.filterwarnings("error", message=COLLINEAR_WARNING)
        try:
            pipeline.fit(X, y)
        except ConvergenceWarning as exc:
            raise ModelFitError(name, f"did not converge ({exc})") from exc
        except Warning as exc:
            raise ModelFitError(name, f"singular design matrix ({exc})") from exc
        except np.linalg.LinAlgError as exc:
            raise ModelFitError(name, f"singular design matrix ({exc})") from exc
        except ValueError as exc:
            raise ModelFitError(name, str(exc)) from exc

    classifier = pipeline.named_steps["classifier"]
    coef = getattr(classifier, "coef_", None)
    if coef is not None and not np.all(np.isfinite(coef)):
        raise ModelFitError(name, "non-finite coefficients")
    return pipeline


def train_model(
    name: str,
    X,
    y,
    features: list[str],
    params: dict | None = None,
    folds: int = N_FOLDS,
    seed: int = SEED,
    n_trials: int = 0,
) -> TrainedModel:
    """Cross-validate (optionally tune) and fit one family on the full resampled train set."""
    if name not in MODEL_CLASSES:
        raise ValueError(f"Unknown model: {name}")
    if n_trials > 0:
        tuned = tune_model(name, X, y, features, n_trials, folds, seed)
        params = {**(params or {}), **tuned["best_params"]}
    elif params is None:
        params = dict(DEFAULT_PARAMS[name])

    scores = cross_validate_model(name, X, y, features, params, folds, seed)
    pipeline = fit_strict(
        name, build_pipeline(make_model(name, params, seed), features), X[features], y
    )

    logger.info(
        "%-20s CV AUC (%d-fold): %.4f ± %.4f", name, folds, scores.mean(), scores.std()
    )
    return TrainedModel(
        name=name,
        pipeline=pipeline,
        features=list(features),
        params=params,
        cv_auc_mean=float(scores.mean()),
        cv_auc_std=float(scores.std()),
        cv_scores=[float(s) for s in scores],
    )


def train_all(
    X,
    y,
    features: list[str],
    models: list[str] | tuple[str, ...] = tuple(MODEL_CLASSES),
    folds: int = N_FOLDS,
    seed: int = SEED,
    n_trials: int = 0,
) -> dict[str, TrainedModel]:
    """Train every requested family on the identical feature set."""
    return {
        name: train_model(name, X, y, features, folds=folds, seed=seed, n_trials=n_trials)
        for name in models
    }
