"""Unit tests for evaluation functions."""
from types import SimpleNamespace

import numpy as np
import pandas as pd
import pytest

from churn_modeling.evaluate import (
    compare_models,
    compute_metrics,
    confusion_counts,
    evaluate_model,
    metrics_from_counts,
    roc_points,
    threshold_analysis,
)


def test_confusion_counts_churn_is_positive():
    y = np.array([0, 0, 1, 1, 1])
    pred = np.array([0, 1, 0, 1, 1])
    assert confusion_counts(y, pred) == {"tp": 2, "fp": 1, "fn": 1, "tn": 1}


def test_metric_identities_hold_on_raw_counts():
    rng = np.random.RandomState(42)
    y = rng.choice([0, 1], 500, p=[0.74, 0.26])
    prob = np.clip(y * 0.3 + rng.uniform(0, 0.7, 500), 0, 1)
    pred = (prob >= 0.5).astype(int)

    c = confusion_counts(y, pred)
    m = compute_metrics(y, pred, prob)
    tp, fp, fn, tn = c["tp"], c["fp"], c["fn"], c["tn"]
    assert m["precision"] == tp / (tp + fp)
    assert m["recall"] == tp / (tp + fn)
    assert m["specificity"] == tn / (tn + fp)
    assert m["accuracy"] == (tp + tn) / len(y)
    p, r = m["precision"], m["recall"]
    assert m["f1"] == 2 * p * r / (p + r)


def test_metrics_return_all_keys():
    y = np.array([0, 0, 1, 1])
    pred = np.array([0, 1, 0, 1])
    prob = np.array([0.2, 0.6, 0.4, 0.8])
    m = compute_metrics(y, pred, prob)
    assert set(m.keys()) == {
        "accuracy",
        "precision",
        "recall",
        "specificity",
        "f1",
        "roc_auc",
    }


def test_zero_denominators_report_zero():
    m = metrics_from_counts(tp=0, fp=0, fn=5, tn=5)
    assert m["precision"] == 0.0
    assert m["f1"] == 0.0
    assert m["specificity"] == 1.0


def test_auc_invariant_to_monotonic_rescaling():
    rng = np.random.RandomState(7)
    y = rng.choice([0, 1], 300)
    prob = np.clip(0.4 * y + rng.uniform(0, 0.6, 300), 1e-6, 1)
    pred = (prob >= 0.5).astype(int)
    base = compute_metrics(y, pred, prob)["roc_auc"]
    assert compute_metrics(y, pred, np.log(prob))["roc_auc"] == pytest.approx(base)
    assert compute_metrics(y, pred, prob**3 * 10 - 2)["roc_auc"] == pytest.approx(base)


def test_roc_points_are_ordered():
    y = np.array([0, 0, 1, 1, 0, 1])
    prob = np.array([0.1, 0.4, 0.35, 0.8, 0.2, 0.9])
    roc = roc_points(y, prob)
    assert roc["fpr"][0] == 0.0 and roc["tpr"][0] == 0.0
    assert roc["fpr"][-1] == 1.0 and roc["tpr"][-1] == 1.0
    assert np.all(np.diff(roc["fpr"]) >= 0)
    assert np.all(np.diff(roc["tpr"]) >= 0)


def test_compare_models_ranks_by_auc_then_f1():
    records = {
        "a": {"model": "a", "roc_auc": 0.80, "f1": 0.60},
        "b": {"model": "b", "roc_auc": 0.85, "f1": 0.50},
        "c": {"model": "c", "roc_auc": 0.80, "f1": 0.70},
    }
    table = compare_models(records)
    assert list(table["model"]) == ["b", "c", "a"]
    assert list(table["rank"]) == [1, 2, 3]


def test_threshold_analysis_recall_decreases():
    rng = np.random.RandomState(3)
    y = rng.choice([0, 1], 400, p=[0.7, 0.3])
    prob = np.clip(0.35 * y + rng.uniform(0, 0.65, 400), 0, 1)
    table = threshold_analysis(y, prob)
    assert table["recall"].is_monotonic_decreasing
    assert (table["churners_caught"] + table["churners_missed"] == y.sum()).all()


def test_evaluate_model_record_from_test_partition():
    test = pd.DataFrame({"score": [0.1, 0.7, 0.3, 0.9, 0.6], "Churn": [0, 0, 1, 1, 1]})
    model = SimpleNamespace(
        name="stub", cv_auc_mean=0.8, predict_proba=lambda df: df["score"].to_numpy()
    )
    record = evaluate_model(model, test)
    assert record["model"] == "stub"
    assert (record["tp"], record["fp"], record["fn"], record["tn"]) == (2, 1, 1, 1)
    assert record["recall"] == pytest.approx(2 / 3)
    assert record["cv_auc"] == 0.8
    assert len(record["y_prob"]) == len(test)
