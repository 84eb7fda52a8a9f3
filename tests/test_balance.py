"""Unit tests for churn_modeling/balance.py"""
import logging

import pandas as pd
import pytest

from churn_modeling.balance import InsufficientMinoritySamplesError, rebalance
from churn_modeling.config import CURATED_FEATURES
from churn_modeling.split import stratified_split


@pytest.fixture
def train(clean_telco):
    return stratified_split(clean_telco, 0.7, seed=1)[0]


def test_minority_share_increases(train):
    before = train["Churn"].mean()
    resampled = rebalance(train, features=CURATED_FEATURES, seed=1)
    assert before < 0.5
    assert resampled["Churn"].mean() > before


def test_default_percentages_balance_classes(train):
    n_min = int(train["Churn"].sum())
    n_maj = len(train) - n_min
    resampled = rebalance(train, features=CURATED_FEATURES, over_pct=100, under_pct=200)
    counts = resampled["Churn"].value_counts()
    assert counts[1] == 2 * n_min
    assert counts[0] == min(n_maj, 2 * n_min)


def test_same_seed_identical_synthetic_rows(train):
    a = rebalance(train, features=CURATED_FEATURES, seed=7)
    b = rebalance(train, features=CURATED_FEATURES, seed=7)
    pd.testing.assert_frame_equal(a, b)


def test_input_untouched(train):
    before = train.copy()
    rebalance(train, features=CURATED_FEATURES, seed=1)
    pd.testing.assert_frame_equal(train, before)


def test_synthetic_categoricals_use_known_levels(train):
    resampled = rebalance(train, features=CURATED_FEATURES, seed=1)
    for col in ["Contract", "InternetService", "PaymentMethod"]:
        assert set(resampled[col]) <= set(train[col])
    assert not resampled.isnull().any().any()


def test_numeric_only_frame(train):
    resampled = rebalance(train, features=["tenure", "MonthlyCharges"], seed=1)
    assert resampled["Churn"].mean() > train["Churn"].mean()


def test_single_minority_row_raises():
    df = pd.DataFrame(
        {
            "tenure": list(range(10)),
            "MonthlyCharges": [float(x) for x in range(10)],
            "Churn": [1] + [0] * 9,
        }
    )
    with pytest.raises(InsufficientMinoritySamplesError):
        rebalance(df)


def test_small_minority_reduces_neighbors(caplog):
    df = pd.DataFrame(
        {
            "tenure": list(range(20)),
            "MonthlyCharges": [float(x) * 1.5 for x in range(20)],
            "Churn": [1, 1, 1] + [0] * 17,
        }
    )
    with caplog.at_level(logging.WARNING):
        resampled = rebalance(df, k_neighbors=5, seed=1)
    assert "reducing k to 2" in caplog.text
    assert (resampled["Churn"] == 1).sum() == 6


def test_non_positive_percentages_rejected(train):
    with pytest.raises(ValueError):
        rebalance(train, over_pct=0)
