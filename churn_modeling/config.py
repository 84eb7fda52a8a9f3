"""
Pipeline configuration — schema, recode tables, curated features, run parameters.

Every value that used to be hard-coded in the notebook lives here so that
a run can be reproduced (or varied) from the command line.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
RAW_DIR = Path("data/raw")
FIG_DIR = ROOT / "reports" / "figures"
MET_DIR = ROOT / "reports" / "metrics"

DATA_URL = (
    "https://raw.githubusercontent.com/Rizal-A/EDA-Telco_Customer_Churn/"
    "main/WA_Fn-UseC_-Telco-Customer-Churn.csv"
)
TARGET_CSV = "WA_Fn-UseC_-Telco-Customer-Churn.csv"

ID_COL = "customerID"
TARGET = "Churn"

CATEGORICAL_FEATURES = [
    "gender",
    "SeniorCitizen",
    "Partner",
    "Dependents",
    "PhoneService",
    "MultipleLines",
    "InternetService",
    "OnlineSecurity",
    "OnlineBackup",
    "DeviceProtection",
    "TechSupport",
    "StreamingTV",
    "StreamingMovies",
    "Contract",
    "PaperlessBilling",
    "PaymentMethod",
]

NUMERIC_FEATURES = ["tenure", "MonthlyCharges", "TotalCharges"]

EXPECTED_COLUMNS = [ID_COL, *CATEGORICAL_FEATURES, *NUMERIC_FEATURES, TARGET]

# Service columns whose "No ... service" level collapses to plain "No"
NO_SERVICE_COLS = [
    "MultipleLines",
    "OnlineSecurity",
    "OnlineBackup",
    "DeviceProtection",
    "TechSupport",
    "StreamingTV",
    "StreamingMovies",
]
NO_SERVICE_VALUES = ["No internet service", "No phone service"]

DEFAULT_BUCKET = "Other"

RECODE_MAPS = {
    "InternetService": {"DSL": "DSL", "Fiber optic": "Fiber", "No": "None"},
    "Contract": {
        "Month-to-month": "Monthly",
        "One year": "OneYear",
        "Two year": "TwoYear",
    },
    "PaymentMethod": {
        "Electronic check": "ECheck",
        "Mailed check": "MailedCheck",
        "Bank transfer (automatic)": "BankTransfer",
        "Credit card (automatic)": "CreditCard",
    },
}

# Hand-curated predictor list used by every model. Chi-squared and forest
# importance inform it; TotalCharges is left out as collinear with tenure.
CURATED_FEATURES = [
    "tenure",
    "MonthlyCharges",
    "Contract",
    "InternetService",
    "PaymentMethod",
    "PaperlessBilling",
    "OnlineSecurity",
    "TechSupport",
    "SeniorCitizen",
]

REDUNDANT_FEATURES = ["TotalCharges"]

MODEL_FAMILIES = ["logistic_regression", "qda", "linear_svm", "random_forest"]


@dataclass(frozen=True)
class PipelineConfig:
    """Run parameters for one end-to-end analysis."""

    data_path: Path | None = None
    train_fraction: float = 0.7
    split_seed: int = 1
    cv_seed: int = 21
    over_pct: int = 100
    under_pct: int = 200
    k_neighbors: int = 5
    cv_folds: int = 10
    alpha: float = 0.05
    top_n: int = 10
    collinearity_threshold: float = 0.8
    max_missing_fraction: float = 0.05
    n_trials: int = 0
    selection_scope: str = "full"
    use_curated_features: bool = True
    models: tuple[str, ...] = tuple(MODEL_FAMILIES)
    fig_dir: Path = FIG_DIR
    met_dir: Path = MET_DIR

    def __post_init__(self):
        if not 0.0 < self.train_fraction < 1.0:
            raise ValueError(
                f"train_fraction must be in (0, 1), got {self.train_fraction}"
            )
        if self.selection_scope not in ("full", "train"):
            raise ValueError(
                f"selection_scope must be 'full' or 'train', got {self.selection_scope!r}"
            )
        if self.cv_folds < 2:
            raise ValueError(f"cv_folds must be >= 2, got {self.cv_folds}")
        unknown = set(self.models) - set(MODEL_FAMILIES)
        if unknown:
            raise ValueError(f"Unknown model families: {sorted(unknown)}")

    def with_overrides(self, **overrides) -> "PipelineConfig":
        return replace(self, **overrides)
