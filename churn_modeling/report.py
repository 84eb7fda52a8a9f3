"""
Reporting — ranked model comparison, logistic odds ratios, evaluation figures.

Odds ratios are taken from the logistic-regression pipeline. Numeric inputs
are standardised inside the pipeline, so their coefficients are divided by
the scaler's standard deviation to express the odds change per original unit
(per month of tenure, per dollar of monthly charge). Dummy coefficients are
relative to the dropped reference level.
"""

from __future__ import annotations

import logging
from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

logger = logging.getLogger(__name__)

# What each encoded predictor compares; direction and size are filled in
INTERPRETATIONS = {
    "tenure": "Each additional month as a customer gives {change} odds of churning.",
    "MonthlyCharges": "Each extra dollar of monthly charge gives {change} odds of churning.",
    "TotalCharges": "Each extra dollar billed to date gives {change} odds of churning.",
    "Contract_OneYear": "A one-year contract, versus month-to-month, gives {change} odds of churning.",
    "Contract_TwoYear": "A two-year contract, versus month-to-month, gives {change} odds of churning.",
    "InternetService_Fiber": "Fiber internet, versus DSL, gives {change} odds of churning.",
    "InternetService_None": "Having no internet service, versus DSL, gives {change} odds of churning.",
    "PaymentMethod_CreditCard": "Paying by automatic credit card, versus bank transfer, gives {change} odds of churning.",
    "PaymentMethod_ECheck": "Paying by electronic check, versus bank transfer, gives {change} odds of churning.",
    "PaymentMethod_MailedCheck": "Paying by mailed check, versus bank transfer, gives {change} odds of churning.",
    "PaperlessBilling_Yes": "Paperless billing gives {change} odds of churning.",
    "OnlineSecurity_Yes": "Subscribing to online security gives {change} odds of churning.",
    "TechSupport_Yes": "Subscribing to tech support gives {change} odds of churning.",
    "SeniorCitizen_Yes": "Senior citizens have {change} odds of churning.",
}
GENERIC_INTERPRETATION = "A one-unit increase in {feature} gives {change} odds of churning."


def describe_change(odds_ratio: float) -> str:
    pct = (odds_ratio - 1.0) * 100
    if abs(pct) < 0.05:
        return "unchanged"
    direction = "higher" if pct > 0 else "lower"
    return f"{abs(pct):.1f}% {direction} (OR={odds_ratio:.3f})"


def interpret(feature: str, odds_ratio: float) -> str:
    template = INTERPRETATIONS.get(feature, GENERIC_INTERPRETATION)
    return template.format(feature=feature, change=describe_change(odds_ratio))


def odds_ratio_table(trained) -> pd.DataFrame:
    """Coefficient, odds ratio and interpretation per encoded predictor."""
    pipeline = trained.pipeline
    classifier = pipeline.named_steps["classifier"]
    if not hasattr(classifier, "coef_"):
        raise ValueError(f"{trained.name} has no coefficients to report")

    preprocessor = pipeline.named_steps["preprocessor"]
    names = list(preprocessor.get_feature_names_out())
    coef = np.asarray(classifier.coef_).ravel()

    unit_coef = coef.copy()
    if "num" in preprocessor.named_transformers_:
        scaler = preprocessor.named_transformers_["num"].named_steps["scaler"]
        for col, scale in zip(scaler.feature_names_in_, scaler.scale_):
            unit_coef[names.index(col)] = coef[names.index(col)] / scale

    table = pd.DataFrame(
        {
            "predictor": names,
            "coefficient": coef,
            "unit_coefficient": unit_coef,
            "odds_ratio": np.exp(unit_coef),
        }
    )
    table["pct_change_odds"] = (table["odds_ratio"] - 1.0) * 100
    table["interpretation"] = [
        interpret(f, o) for f, o in zip(table["predictor"], table["odds_ratio"])
    ]
    table = table.reindex(
        table["unit_coefficient"].abs().sort_values(ascending=False).index
    ).reset_index(drop=True)

    intercept = float(np.asarray(classifier.intercept_).ravel()[0])
    logger.info("Odds ratios (%s, intercept=%.3f):", trained.name, intercept)
    for _, row in table.iterrows():
        logger.info("  %-28s OR=%7.3f  %s", row["predictor"], row["odds_ratio"], row["interpretation"])
    return table


def comparison_report(comparison: pd.DataFrame) -> str:
    cols = [
        "rank",
        "model",
        "roc_auc",
        "accuracy",
        "precision",
        "recall",
        "specificity",
        "f1",
        "cv_auc",
    ]
    cols = [c for c in cols if c in comparison.columns]
    text = comparison[cols].to_string(index=False, float_format=lambda v: f"{v:.4f}")
    best = comparison.iloc[0]
    return (
        f"{text}\n\nBest model: {best['model']} "
        f"(test AUC={best['roc_auc']:.4f}, F1={best['f1']:.4f})"
    )


def plot_roc_curves(records: dict, path: Path) -> Path:
    fig, ax = plt.subplots(figsize=(8, 7))
    for i, (name, r) in enumerate(records.items()):
        roc = r["roc"]
        ax.plot(
            roc["fpr"],
            roc["tpr"],
            linewidth=2,
            label=f"{name} (AUC={r['roc_auc']:.3f})",
            color=plt.cm.tab10(i),
        )
    ax.plot([0, 1], [0, 1], "k--", alpha=0.4)
    ax.set_xlabel("False positive rate")
    ax.set_ylabel("True positive rate")
    ax.set_title("ROC curves — test set", fontsize=14, fontweight="bold")
    ax.legend(fontsize=9, loc="lower right")
    ax.grid(alpha=0.3)
    fig.tight_layout()
    fig.savefig(path, bbox_inches="tight")
    plt.close(fig)
    logger.info("  saved %s", Path(path).name)
    return path


def plot_confusion_matrices(records: dict, path: Path) -> Path:
    n_models = len(records)
    ncols = min(2, n_models)
    nrows = (n_models + ncols - 1) // ncols
    fig, axes = plt.subplots(nrows, ncols, figsize=(6 * ncols, 5 * nrows))
    axes = np.array(axes).flatten()
    for ax, (name, r) in zip(axes, records.items()):
        cm = np.array([[r["tn"], r["fp"]], [r["fn"], r["tp"]]])
        sns.heatmap(
            cm,
            annot=True,
            fmt="d",
            cmap="Blues",
            ax=ax,
            xticklabels=["Stayed", "Churned"],
            yticklabels=["Stayed", "Churned"],
        )
        ax.set_xlabel("Predicted")
        ax.set_ylabel("Actual")
        ax.set_title(name, fontsize=11, fontweight="bold")
    for ax in axes[n_models:]:
        ax.set_visible(False)
    fig.suptitle("Confusion matrices — test set", fontsize=14, fontweight="bold")
    fig.tight_layout()
    fig.savefig(path, bbox_inches="tight")
    plt.close(fig)
    logger.info("  saved %s", Path(path).name)
    return path


def write_reports(
    met_dir: Path,
    comparison: pd.DataFrame,
    odds_ratios: pd.DataFrame | None = None,
    selection: pd.DataFrame | None = None,
    chi_square: pd.DataFrame | None = None,
    thresholds: pd.DataFrame | None = None,
) -> list[Path]:
    """Write the report tables as CSV and return their paths."""
    met_dir = Path(met_dir)
    met_dir.mkdir(parents=True, exist_ok=True)
    tables = {
        "model_comparison.csv": comparison,
        "odds_ratios.csv": odds_ratios,
        "feature_selection.csv": selection,
        "chi_square.csv": chi_square,
        "threshold_analysis.csv": thresholds,
    }
    written = []
    for filename, table in tables.items():
        if table is None:
            continue
        path = met_dir / filename
        table.to_csv(path, index=False)
        written.append(path)
    logger.info("Wrote %d report tables to %s", len(written), met_dir)
    return written
