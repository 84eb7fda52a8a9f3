"""
End-to-end churn analysis.

  load → clean → EDA → split → select features → rebalance train
       → train 4 families (10-fold CV) → evaluate on test → report

Each stage takes frames and returns new ones; nothing is shared between
stages except what run_analysis passes along explicitly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

from churn_modeling.balance import rebalance
from churn_modeling.clean import clean_data
from churn_modeling.config import TARGET, PipelineConfig
from churn_modeling.eda import run_eda
from churn_modeling.evaluate import compare_models, evaluate_all, threshold_analysis
from churn_modeling.features import xy
from churn_modeling.ingest import load_raw_data
from churn_modeling.report import (
    comparison_report,
    odds_ratio_table,
    plot_confusion_matrices,
    plot_roc_curves,
    write_reports,
)
from churn_modeling.selection import (
    FeatureSelection,
    feature_set_overlap,
    select_features,
    summarize_selection,
)
from churn_modeling.split import stratified_split
from churn_modeling.train import TrainedModel, train_all

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    data: pd.DataFrame
    train: pd.DataFrame
    test: pd.DataFrame
    resampled: pd.DataFrame
    selection: FeatureSelection
    models: dict[str, TrainedModel]
    records: dict[str, dict]
    comparison: pd.DataFrame
    odds_ratios: pd.DataFrame | None = None
    artifacts: list[Path] = field(default_factory=list)

    @property
    def best_model(self) -> str:
        return self.comparison.iloc[0]["model"]


def prepare_data(config: PipelineConfig, raw: pd.DataFrame | None = None) -> pd.DataFrame:
    if raw is None:
        raw = load_raw_data(config.data_path)
    return clean_data(raw, max_missing_fraction=config.max_missing_fraction)


def run_selection(
    df: pd.DataFrame, train: pd.DataFrame, config: PipelineConfig
) -> FeatureSelection:
    """
    Feature selection on the full dataset (the original analysis, which lets
    test rows influence the choice) or on the train partition only.
    """
    source = df if config.selection_scope == "full" else train
    logger.info(
        "Feature selection on %s data (%d rows)", config.selection_scope, len(source)
    )
    selection = select_features(
        source,
        alpha=config.alpha,
        top_n=config.top_n,
        seed=config.cv_seed,
        collinearity_threshold=config.collinearity_threshold,
        use_curated=config.use_curated_features,
    )
    logger.info(
        "Feature Set vs data-driven candidates overlap: %.2f",
        feature_set_overlap(selection.features, selection.candidates),
    )
    return selection


def run_analysis(
    config: PipelineConfig | None = None,
    raw: pd.DataFrame | None = None,
    render: bool = True,
) -> AnalysisResult:
    """Run every stage once. render=False skips figures and CSVs."""
    config = config or PipelineConfig()

    df = prepare_data(config, raw)
    artifacts: list[Path] = []
    if render:
        artifacts += run_eda(df, config.fig_dir)

    train, test = stratified_split(df, config.train_fraction, config.split_seed)
    selection = run_selection(df, train, config)
    features = selection.features

    resampled = rebalance(
        train,
        features=features,
        over_pct=config.over_pct,
        under_pct=config.under_pct,
        k_neighbors=config.k_neighbors,
        seed=config.split_seed,
    )

    X_res, y_res = xy(resampled, features)
    models = train_all(
        X_res,
        y_res,
        features,
        models=config.models,
        folds=config.cv_folds,
        seed=config.cv_seed,
        n_trials=config.n_trials,
    )

    records = evaluate_all(models, test)
    comparison = compare_models(records)
    logger.info("Model comparison:\n%s", comparison_report(comparison))

    odds = None
    if "logistic_regression" in models:
        odds = odds_ratio_table(models["logistic_regression"])

    if render:
        best = records[comparison.iloc[0]["model"]]
        artifacts.append(plot_roc_curves(records, Path(config.fig_dir) / "09_roc_curves.png"))
        artifacts.append(
            plot_confusion_matrices(records, Path(config.fig_dir) / "10_confusion_matrices.png")
        )
        artifacts += write_reports(
            config.met_dir,
            comparison,
            odds_ratios=odds,
            selection=summarize_selection(selection),
            chi_square=selection.chi_square,
            thresholds=threshold_analysis(test[TARGET].to_numpy(), best["y_prob"]),
        )

    return AnalysisResult(
        data=df,
        train=train,
        test=test,
        resampled=resampled,
        selection=selection,
        models=models,
        records=records,
        comparison=comparison,
        odds_ratios=odds,
        artifacts=artifacts,
    )
