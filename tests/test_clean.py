"""Unit tests for churn_modeling/clean.py"""
import logging

import pandas as pd
import pytest

from churn_modeling.clean import (
    DataQualityError,
    clean_data,
    collapse_no_service,
    drop_missing_totals,
    recode_column,
    recode_labels,
)
from churn_modeling.config import CATEGORICAL_FEATURES, NO_SERVICE_COLS, NUMERIC_FEATURES


def test_identifier_dropped(clean_telco):
    assert "customerID" not in clean_telco.columns


def test_blank_totals_dropped(raw_loaded, clean_telco):
    assert len(clean_telco) == len(raw_loaded) - 3
    assert clean_telco["TotalCharges"].dtype.kind == "f"


def test_no_missing_values_after_cleaning(clean_telco):
    used = CATEGORICAL_FEATURES + NUMERIC_FEATURES + ["Churn"]
    assert not clean_telco[used].isnull().any().any()


def test_no_service_collapsed(clean_telco):
    for col in NO_SERVICE_COLS:
        assert set(clean_telco[col].unique()) <= {"Yes", "No"}


def test_canonical_tokens(clean_telco):
    assert set(clean_telco["Contract"]) <= {"Monthly", "OneYear", "TwoYear"}
    assert set(clean_telco["InternetService"]) <= {"DSL", "Fiber", "None"}
    assert set(clean_telco["PaymentMethod"]) <= {
        "ECheck",
        "MailedCheck",
        "BankTransfer",
        "CreditCard",
    }
    assert set(clean_telco["SeniorCitizen"]) <= {"Yes", "No"}


def test_unmapped_value_defaults_with_warning(caplog):
    s = pd.Series(["One year", "Three year"], name="Contract")
    with caplog.at_level(logging.WARNING):
        out = recode_column(s, {"One year": "OneYear"})
    assert list(out) == ["OneYear", "Other"]
    assert "Three year" in caplog.text
    assert "defaulted to 'Other'" in caplog.text


def test_too_many_missing_totals_raises():
    df = pd.DataFrame({"TotalCharges": [" ", " ", "10.0", "20.0"]})
    with pytest.raises(DataQualityError):
        drop_missing_totals(df, max_missing_fraction=0.05)


def test_missing_fraction_limit_is_configurable():
    df = pd.DataFrame({"TotalCharges": [" ", "5.0", "10.0", "20.0"]})
    result = drop_missing_totals(df, max_missing_fraction=0.5)
    assert len(result) == 3


def test_clean_does_not_mutate_input(raw_loaded):
    before = raw_loaded.copy()
    clean_data(raw_loaded)
    pd.testing.assert_frame_equal(raw_loaded, before)


def test_empty_dataframe():
    empty = pd.DataFrame(columns=["MultipleLines", "Contract", "TotalCharges"])
    assert collapse_no_service(empty).empty
    assert recode_labels(empty).empty
    assert drop_missing_totals(empty).empty
