"""
Shared test fixtures — synthetic data so tests never depend on real CSV files.
"""

import numpy as np
import pandas as pd
import pytest


def make_raw_telco(n: int = 400, seed: int = 42, n_blank_totals: int = 3) -> pd.DataFrame:
    """Raw-schema Telco frame with churn driven by contract, tenure and fiber."""
    rng = np.random.RandomState(seed)
    contract = rng.choice(["Month-to-month", "One year", "Two year"], n, p=[0.55, 0.25, 0.2])
    internet = rng.choice(["DSL", "Fiber optic", "No"], n, p=[0.35, 0.45, 0.2])
    tenure = rng.randint(1, 73, n)
    monthly = np.where(
        internet == "No", rng.uniform(18, 30, n), rng.uniform(40, 118, n)
    ).round(2)
    total = (tenure * monthly * rng.uniform(0.95, 1.05, n)).round(2)

    def service(p_yes):
        vals = rng.choice(["Yes", "No"], n, p=[p_yes, 1 - p_yes]).astype(object)
        vals[internet == "No"] = "No internet service"
        return vals

    phone = rng.choice(["Yes", "No"], n, p=[0.9, 0.1])
    multiple = rng.choice(["Yes", "No"], n).astype(object)
    multiple[phone == "No"] = "No phone service"

    logit = (
        -1.0
        + 1.6 * (contract == "Month-to-month")
        - 1.2 * (contract == "Two year")
        + 0.8 * (internet == "Fiber optic")
        - 0.04 * tenure
        + rng.normal(0, 0.5, n)
    )
    churn = np.where(rng.uniform(size=n) < 1 / (1 + np.exp(-logit)), "Yes", "No")

    df = pd.DataFrame(
        {
            "customerID": [f"{i:04d}-ABCDE" for i in range(n)],
            "gender": rng.choice(["Male", "Female"], n),
            "SeniorCitizen": rng.choice([0, 1], n, p=[0.84, 0.16]),
            "Partner": rng.choice(["Yes", "No"], n),
            "Dependents": rng.choice(["Yes", "No"], n, p=[0.3, 0.7]),
            "tenure": tenure,
            "PhoneService": phone,
            "MultipleLines": multiple,
            "InternetService": internet,
            "OnlineSecurity": service(0.3),
            "OnlineBackup": service(0.35),
            "DeviceProtection": service(0.35),
            "TechSupport": service(0.3),
            "StreamingTV": service(0.4),
            "StreamingMovies": service(0.4),
            "Contract": contract,
            "PaperlessBilling": rng.choice(["Yes", "No"], n, p=[0.6, 0.4]),
            "PaymentMethod": rng.choice(
                [
                    "Electronic check",
                    "Mailed check",
                    "Bank transfer (automatic)",
                    "Credit card (automatic)",
                ],
                n,
            ),
            "MonthlyCharges": monthly,
            "TotalCharges": total.astype(str),
            "Churn": churn,
        }
    )
    df.loc[: n_blank_totals - 1, "TotalCharges"] = " "
    return df


@pytest.fixture
def raw_telco():
    """Raw frame as read from CSV, target still Yes/No."""
    return make_raw_telco()


@pytest.fixture
def raw_loaded(raw_telco):
    """Raw frame after ingest: target mapped to 1/0."""
    df = raw_telco.copy()
    df["Churn"] = df["Churn"].map({"Yes": 1, "No": 0})
    return df


@pytest.fixture
def clean_telco(raw_loaded):
    from churn_modeling.clean import clean_data

    return clean_data(raw_loaded)


@pytest.fixture
def telco_csv(tmp_path, raw_telco):
    path = tmp_path / "telco.csv"
    raw_telco.to_csv(path, index=False)
    return path
