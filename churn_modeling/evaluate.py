"""
Evaluation — confusion-matrix metrics, ROC/AUC and model ranking.

Convention: churn (label 1) is the positive class for every model, and every
model is scored on the same untouched test partition, so the numbers are
directly comparable.

  precision   = TP / (TP + FP)
  recall      = TP / (TP + FN)      (sensitivity)
  specificity = TN / (TN + FP)
  F1          = 2 · precision · recall / (precision + recall)

A ratio with a zero denominator is reported as 0.0.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np
import pandas as pd
from sklearn.metrics import confusion_matrix, roc_auc_score, roc_curve

from churn_modeling.config import TARGET

logger = logging.getLogger(__name__)

POSITIVE = 1


def _ratio(num: float, den: float) -> float:
    return float(num / den) if den > 0 else 0.0


def confusion_counts(y_true, y_pred) -> dict[str, int]:
    """tp/fp/fn/tn with churn as the positive class."""
    tn, fp, fn, tp = confusion_matrix(y_true, y_pred, labels=[0, POSITIVE]).ravel()
    return {"tp": int(tp), "fp": int(fp), "fn": int(fn), "tn": int(tn)}


def metrics_from_counts(tp: int, fp: int, fn: int, tn: int) -> dict[str, float]:
    precision = _ratio(tp, tp + fp)
    recall = _ratio(tp, tp + fn)
    return {
        "accuracy": _ratio(tp + tn, tp + fp + fn + tn),
        "precision": precision,
        "recall": recall,
        "specificity": _ratio(tn, tn + fp),
        "f1": _ratio(2 * precision * recall, precision + recall),
    }


def compute_metrics(y_true, y_pred, y_prob) -> dict[str, float]:
    """Compute the classification metric suite plus ROC-AUC."""
    counts = confusion_counts(y_true, y_pred)
    metrics = metrics_from_counts(**counts)
    metrics["roc_auc"] = float(roc_auc_score(y_true, y_prob))
    return metrics


def roc_points(y_true, y_prob) -> dict[str, np.ndarray]:
    """Ordered (fpr, tpr) pairs over every distinct probability threshold."""
    fpr, tpr, thresholds = roc_curve(y_true, y_prob, pos_label=POSITIVE)
    return {"fpr": fpr, "tpr": tpr, "thresholds": thresholds}


def evaluate_model(model, test: pd.DataFrame, threshold: float = 0.5) -> dict[str, Any]:
    """
    Score one trained model on the test partition.

    Returns the Evaluation Record: metrics, raw counts and ROC points.
    """
    y_true = test[TARGET].astype(int).to_numpy()
    y_prob = model.predict_proba(test)
    y_pred = (y_prob >= threshold).astype(int)

    counts = confusion_counts(y_true, y_pred)
    record = {
        "model": model.name,
        **metrics_from_counts(**counts),
        "roc_auc": float(roc_auc_score(y_true, y_prob)),
        **counts,
        "cv_auc": model.cv_auc_mean,
        "roc": roc_points(y_true, y_prob),
        "y_prob": y_prob,
    }
    logger.info(
        "%-20s acc=%.3f  prec=%.3f  recall=%.3f  spec=%.3f  f1=%.3f  auc=%.4f",
        model.name,
        record["accuracy"],
        record["precision"],
        record["recall"],
        record["specificity"],
        record["f1"],
        record["roc_auc"],
    )
    return record


def evaluate_all(models: dict, test: pd.DataFrame, threshold: float = 0.5) -> dict:
    return {name: evaluate_model(m, test, threshold) for name, m in models.items()}


METRIC_COLUMNS = [
    "model",
    "roc_auc",
    "accuracy",
    "precision",
    "recall",
    "specificity",
    "f1",
    "cv_auc",
    "tp",
    "fp",
    "fn",
    "tn",
]


def compare_models(records: dict[str, dict]) -> pd.DataFrame:
    """Ranked comparison table: AUC first, F1 breaks ties."""
    df = pd.DataFrame(
        [{k: r[k] for k in METRIC_COLUMNS if k in r} for r in records.values()]
    )
    df = df.sort_values(["roc_auc", "f1"], ascending=False).reset_index(drop=True)
    df.insert(0, "rank", range(1, len(df) + 1))
    return df


def threshold_analysis(y_true, y_prob, thresholds=None) -> pd.DataFrame:
    """Show recall vs precision vs specificity trade-off at different thresholds."""
    if thresholds is None:
        thresholds = np.arange(0.05, 0.95, 0.05)

    rows = []
    for t in thresholds:
        y_pred = (np.asarray(y_prob) >= t).astype(int)
        counts = confusion_counts(y_true, y_pred)
        m = metrics_from_counts(**counts)
        rows.append(
            {
                "threshold": round(float(t), 2),
                "recall": round(m["recall"], 3),
                "precision": round(m["precision"], 3),
                "specificity": round(m["specificity"], 3),
                "f1": round(m["f1"], 3),
                "churners_caught": counts["tp"],
                "churners_missed": counts["fn"],
                "false_alarms": counts["fp"],
            }
        )
    return pd.DataFrame(rows)
