#!/usr/bin/env python3
"""
TELCO CHURN PIPELINE
====================
Clean → EDA → Split → Feature selection → SMOTE rebalancing
      → LogReg · QDA · Linear SVM · Random Forest (10-fold CV) → Test evaluation

Usage:  python scripts/run_pipeline.py
        python scripts/run_pipeline.py --data data/raw/WA_Fn-UseC_-Telco-Customer-Churn.csv
        python scripts/run_pipeline.py --n-trials 20 --selection-scope train
        python scripts/run_pipeline.py --skip-eda --cv-folds 5
"""
from __future__ import annotations

import warnings

warnings.filterwarnings("ignore", category=FutureWarning)

import argparse, logging, time, sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from churn_modeling.config import MODEL_FAMILIES, PipelineConfig
from churn_modeling.pipeline import run_analysis
from churn_modeling.report import comparison_report


# ═══════════════════════════════════════════════════════════════════════════════
# LOGGING
# ═══════════════════════════════════════════════════════════════════════════════
class PrettyFormatter(logging.Formatter):
    GREY = "\033[90m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    BOLD = "\033[1m"
    RESET = "\033[0m"
    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: RED + BOLD,
    }

    def format(self, record):
        color = self.LEVEL_COLORS.get(record.levelno, self.GREY)
        ts = self.formatTime(record, "%H:%M:%S")
        return f"{self.GREY}{ts}{self.RESET} {color}│{self.RESET} {record.getMessage()}"


def setup_logging(verbose: bool = False) -> logging.Logger:
    handler = logging.StreamHandler()
    handler.setFormatter(PrettyFormatter())
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, handlers=[handler])
    for noisy in ("matplotlib", "PIL"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    return logging.getLogger("pipeline")


log = logging.getLogger("pipeline")


def banner(title):
    w = 65
    log.info("")
    log.info(f"\033[1m\033[96m{'═' * w}\033[0m")
    log.info(f"\033[1m\033[96m  {title}\033[0m")
    log.info(f"\033[1m\033[96m{'═' * w}\033[0m")


def parse_args(argv=None) -> argparse.Namespace:
    defaults = PipelineConfig()
    parser = argparse.ArgumentParser(description="Telco churn analysis pipeline")
    parser.add_argument("--data", type=Path, default=None, help="Path to the Telco CSV")
    parser.add_argument("--train-fraction", type=float, default=defaults.train_fraction)
    parser.add_argument("--split-seed", type=int, default=defaults.split_seed)
    parser.add_argument("--cv-seed", type=int, default=defaults.cv_seed)
    parser.add_argument("--over-pct", type=int, default=defaults.over_pct)
    parser.add_argument("--under-pct", type=int, default=defaults.under_pct)
    parser.add_argument("--k-neighbors", type=int, default=defaults.k_neighbors)
    parser.add_argument("--cv-folds", type=int, default=defaults.cv_folds)
    parser.add_argument("--alpha", type=float, default=defaults.alpha)
    parser.add_argument("--top-n", type=int, default=defaults.top_n)
    parser.add_argument(
        "--max-missing-fraction", type=float, default=defaults.max_missing_fraction
    )
    parser.add_argument("--n-trials", type=int, default=defaults.n_trials)
    parser.add_argument(
        "--selection-scope",
        choices=["full", "train"],
        default=defaults.selection_scope,
        help="Run feature selection on the full dataset (original) or train only",
    )
    parser.add_argument(
        "--data-driven-features",
        action="store_true",
        help="Use the selector's candidates instead of the curated feature list",
    )
    parser.add_argument(
        "--models", nargs="+", choices=MODEL_FAMILIES, default=list(MODEL_FAMILIES)
    )
    parser.add_argument("--skip-eda", action="store_true", help="Skip figures and CSVs")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> PipelineConfig:
    return PipelineConfig(
        data_path=args.data,
        train_fraction=args.train_fraction,
        split_seed=args.split_seed,
        cv_seed=args.cv_seed,
        over_pct=args.over_pct,
        under_pct=args.under_pct,
        k_neighbors=args.k_neighbors,
        cv_folds=args.cv_folds,
        alpha=args.alpha,
        top_n=args.top_n,
        max_missing_fraction=args.max_missing_fraction,
        n_trials=args.n_trials,
        selection_scope=args.selection_scope,
        use_curated_features=not args.data_driven_features,
        models=tuple(args.models),
    )


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.verbose)
    config = config_from_args(args)
    start = time.time()

    banner("TELCO CHURN PIPELINE")
    log.info(
        f"  Split: {config.train_fraction:.0%} (seed {config.split_seed})  |  "
        f"SMOTE: over={config.over_pct}% under={config.under_pct}% k={config.k_neighbors}  |  "
        f"CV: {config.cv_folds}-fold (seed {config.cv_seed})  |  "
        f"Trials: {config.n_trials}  |  Selection: {config.selection_scope}"
    )

    result = run_analysis(config, render=not args.skip_eda)

    elapsed = time.time() - start
    banner(f"COMPLETE in {elapsed / 60:.1f} minutes")
    log.info(
        f"  Clean: {len(result.data):,}  |  Train: {len(result.train):,}  "
        f"Resampled: {len(result.resampled):,}  Test: {len(result.test):,}"
    )
    log.info(f"  Features: {', '.join(result.selection.features)}")
    log.info(f"  Artifacts: {len(result.artifacts)} files")

    print("\n" + "=" * 65)
    print("RESULTS SUMMARY")
    print("=" * 65)
    print(comparison_report(result.comparison))
    if result.odds_ratios is not None:
        print("\nOdds ratios (logistic regression):")
        for _, row in result.odds_ratios.iterrows():
            print(f"  {row['predictor']:<28s} {row['odds_ratio']:>7.3f}  {row['interpretation']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
