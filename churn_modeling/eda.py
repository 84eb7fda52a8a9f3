"""
Descriptive statistics and the fixed EDA chart battery.

Purely presentational: every function reads the cleaned dataset and either
returns a summary table or writes one PNG. Nothing here feeds later stages.
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

from churn_modeling.config import NUMERIC_FEATURES, TARGET

logger = logging.getLogger(__name__)

CHURN_LABELS = {0: "Stayed", 1: "Churned"}
CHURN_COLORS = ["#27ae60", "#e74c3c"]
DEMOGRAPHIC_COLS = ["gender", "SeniorCitizen", "Partner", "Dependents"]
SERVICE_MIX_COLS = ["Contract", "InternetService", "PaymentMethod"]


def churn_summary(df: pd.DataFrame, by: str) -> pd.DataFrame:
    """Customers, churners and churn rate per level of one column."""
    out = df.groupby(by)[TARGET].agg(customers="count", churned="sum")
    out["churn_rate"] = out["churned"] / out["customers"]
    return out.sort_values("churn_rate", ascending=False)


def numeric_summary(df: pd.DataFrame) -> pd.DataFrame:
    """describe() of the numeric columns, split by churn."""
    cols = [c for c in NUMERIC_FEATURES if c in df.columns]
    summary = df.groupby(TARGET)[cols].describe().T
    return summary.rename(columns=CHURN_LABELS)


def _save(fig, path: Path) -> Path:
    fig.tight_layout()
    fig.savefig(path, bbox_inches="tight")
    plt.close(fig)
    logger.info("  saved %s", path.name)
    return path


def _label_bars(ax, fmt="{:.0f}"):
    for container in ax.containers:
        ax.bar_label(container, fmt=fmt, fontsize=9, fontweight="bold", padding=2)


def plot_target_distribution(df: pd.DataFrame, path: Path) -> Path:
    counts = df[TARGET].value_counts().reindex([0, 1], fill_value=0)
    pct = counts / counts.sum() * 100
    fig, ax = plt.subplots(figsize=(7, 5))
    bars = ax.bar(
        [f"{CHURN_LABELS[k]}\n({pct[k]:.0f}%)" for k in counts.index],
        counts.values,
        color=CHURN_COLORS,
        edgecolor="black",
    )
    ax.bar_label(bars, labels=[f"{v:,}" for v in counts.values], fontweight="bold")
    ax.set_ylabel("Customers")
    ax.set_title("How many customers churned?", fontsize=14, fontweight="bold")
    return _save(fig, path)


def plot_numeric_by_churn(df: pd.DataFrame, col: str, path: Path) -> Path:
    """Histogram + boxplot of one numeric column split by churn."""
    fig, axes = plt.subplots(1, 2, figsize=(13, 5))
    for label, color in zip([0, 1], CHURN_COLORS):
        df.loc[df[TARGET] == label, col].hist(
            bins=30,
            ax=axes[0],
            alpha=0.55,
            color=color,
            label=CHURN_LABELS[label],
            edgecolor="black",
            density=True,
        )
    axes[0].set_xlabel(col)
    axes[0].legend()
    axes[0].set_title(f"{col} distribution", fontsize=12, fontweight="bold")
    sns.boxplot(
        data=df.assign(_churn=df[TARGET].map(CHURN_LABELS)),
        x="_churn",
        y=col,
        hue="_churn",
        palette=dict(zip(CHURN_LABELS.values(), CHURN_COLORS)),
        legend=False,
        ax=axes[1],
    )
    axes[1].set_xlabel("")
    axes[1].set_title(f"{col} by churn", fontsize=12, fontweight="bold")
    return _save(fig, path)


def plot_grouped_churn(df: pd.DataFrame, cols: list[str], path: Path, title: str) -> Path:
    """One panel per column: customer counts by level and churn, with churn-rate labels."""
    cols = [c for c in cols if c in df.columns]
    ncols = min(2, len(cols))
    nrows = (len(cols) + ncols - 1) // ncols
    fig, axes = plt.subplots(nrows, ncols, figsize=(7 * ncols, 4.5 * nrows))
    axes = np.array(axes).flatten()
    for ax, col in zip(axes, cols):
        table = pd.crosstab(df[col], df[TARGET]).reindex(columns=[0, 1], fill_value=0)
        table.columns = [CHURN_LABELS[c] for c in table.columns]
        table.plot(kind="bar", ax=ax, color=CHURN_COLORS, edgecolor="black", rot=0)
        _label_bars(ax)
        rates = churn_summary(df, col)["churn_rate"].reindex(table.index)
        ax.set_xticks(range(len(table.index)))
        ax.set_xticklabels(
            [f"{lvl}\n({rate:.0%} churn)" for lvl, rate in rates.items()], fontsize=9
        )
        ax.set_xlabel("")
        ax.set_title(col, fontsize=12, fontweight="bold")
    for ax in axes[len(cols):]:
        ax.set_visible(False)
    fig.suptitle(title, fontsize=14, fontweight="bold")
    return _save(fig, path)


def plot_pairwise(df: pd.DataFrame, path: Path) -> Path:
    cols = [c for c in NUMERIC_FEATURES if c in df.columns]
    data = df[cols + [TARGET]].assign(churn=df[TARGET].map(CHURN_LABELS))
    grid = sns.pairplot(
        data.drop(columns=[TARGET]),
        hue="churn",
        palette=dict(zip(CHURN_LABELS.values(), CHURN_COLORS)),
        corner=True,
        plot_kws={"alpha": 0.4, "s": 12},
    )
    grid.figure.suptitle("Pairwise distributions", fontsize=14, fontweight="bold", y=1.02)
    grid.savefig(path, bbox_inches="tight")
    plt.close(grid.figure)
    logger.info("  saved %s", path.name)
    return path


def plot_correlation(df: pd.DataFrame, path: Path) -> Path:
    cols = [c for c in NUMERIC_FEATURES if c in df.columns] + [TARGET]
    corr = df[cols].corr()
    fig, ax = plt.subplots(figsize=(7, 6))
    mask = np.triu(np.ones_like(corr, dtype=bool), k=1)
    sns.heatmap(
        corr,
        mask=mask,
        annot=True,
        fmt=".2f",
        cmap="RdBu_r",
        center=0,
        square=True,
        linewidths=0.5,
        ax=ax,
    )
    ax.set_title("Numeric correlations", fontsize=14, fontweight="bold")
    return _save(fig, path)


def run_eda(df: pd.DataFrame, fig_dir: Path) -> list[Path]:
    """Render the full chart battery and log the headline tables."""
    fig_dir = Path(fig_dir)
    fig_dir.mkdir(parents=True, exist_ok=True)
    sns.set_theme(style="whitegrid", palette="muted")

    for col in SERVICE_MIX_COLS:
        if col in df.columns:
            table = churn_summary(df, col)
            logger.info(
                "Churn by %s: %s",
                col,
                ", ".join(f"{k}={v:.1%}" for k, v in table["churn_rate"].items()),
            )

    logger.info("Numeric summary by churn:\n%s", numeric_summary(df).round(2).to_string())

    paths = [
        plot_target_distribution(df, fig_dir / "01_target_distribution.png"),
        plot_numeric_by_churn(df, "tenure", fig_dir / "02_tenure.png"),
        plot_numeric_by_churn(df, "MonthlyCharges", fig_dir / "03_monthly_charges.png"),
        plot_numeric_by_churn(df, "TotalCharges", fig_dir / "04_total_charges.png"),
        plot_grouped_churn(
            df, SERVICE_MIX_COLS, fig_dir / "05_contract_service_mix.png",
            "Contract and service mix",
        ),
        plot_grouped_churn(
            df, DEMOGRAPHIC_COLS, fig_dir / "06_demographics.png", "Demographics"
        ),
        plot_pairwise(df, fig_dir / "07_pairwise.png"),
        plot_correlation(df, fig_dir / "08_correlation_matrix.png"),
    ]
    logger.info("EDA complete — %d figures in %s", len(paths), fig_dir)
    return paths
