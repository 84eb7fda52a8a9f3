"""Unit tests for churn_modeling/ingest.py"""
import pytest

from churn_modeling.config import TARGET_CSV
from churn_modeling.ingest import download_dataset, load_raw_data


def test_load_maps_target(telco_csv):
    df = load_raw_data(telco_csv)
    assert set(df["Churn"].unique()) <= {0, 1}
    assert df["Churn"].dtype.kind == "i"


def test_total_charges_kept_as_text(telco_csv):
    df = load_raw_data(telco_csv)
    assert (df["TotalCharges"] == " ").sum() == 3


def test_missing_column_raises(tmp_path, raw_telco):
    path = tmp_path / "broken.csv"
    raw_telco.drop(columns=["Contract"]).to_csv(path, index=False)
    with pytest.raises(ValueError, match="Contract"):
        load_raw_data(path)


def test_unmapped_target_raises(tmp_path, raw_telco):
    df = raw_telco.copy()
    df.loc[0, "Churn"] = "Maybe"
    path = tmp_path / "bad_target.csv"
    df.to_csv(path, index=False)
    with pytest.raises(ValueError, match="Unmapped target"):
        load_raw_data(path)


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_raw_data(tmp_path / "nope.csv")


def test_cached_dataset_not_downloaded(tmp_path, raw_telco, monkeypatch):
    raw_telco.to_csv(tmp_path / TARGET_CSV, index=False)

    def fail(*args, **kwargs):
        raise AssertionError("network used")

    monkeypatch.setattr("churn_modeling.ingest.urlretrieve", fail)
    assert download_dataset(dest_dir=tmp_path) == tmp_path / TARGET_CSV


def test_download_writes_into_dest_dir(tmp_path, monkeypatch):
    calls = []
    monkeypatch.setattr(
        "churn_modeling.ingest.urlretrieve", lambda url, path: calls.append((url, path))
    )
    path = download_dataset("http://example.invalid/telco.csv", tmp_path / "raw")
    assert calls == [("http://example.invalid/telco.csv", tmp_path / "raw" / TARGET_CSV)]
    assert path.parent.is_dir()
