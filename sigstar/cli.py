"""Command-line entry point for running analyses on long-form CSV tables."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Dict

import pandas as pd

from .analysis import (
    POSTHOC_METHODS,
    TEST_TYPES,
    comparison_table,
    describe_groups,
    gatekeeper_table,
    growth_comparison_table,
    growth_data_from_frame,
    growth_summary_table,
    log_rank_table,
    posthoc_table,
    risk_table_frame,
    rm_anova_table,
    run_growth_analysis,
    run_group_comparison,
    run_survival_analysis,
    samples_from_frame,
    subjects_from_frame,
    survival_curve_table,
    survival_summary_table,
)
from .output import save_tables
from .reporting import format_test_result
from .schema import INPUT
from .stats.errors import StatsEngineError
from .stats.posthoc import CORRECTION_METHODS
from .stats.repeated import COMPARE_MODES, GrowthPostHocOptions
from .stats.significance import DEFAULT_ALPHA

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def _print_tables(tables: Dict[str, pd.DataFrame]) -> None:
    for name, table in tables.items():
        print(f"\n{name}:")
        if table.empty:
            print("  (no rows)")
        else:
            print(table.to_string(index=False))


def _emit(tables: Dict[str, pd.DataFrame], output_dir) -> None:
    _print_tables(tables)
    if output_dir:
        save_tables(tables, output_dir)


def _run_compare(args: argparse.Namespace) -> int:
    frame = pd.read_csv(args.data)
    samples, labels = samples_from_frame(frame, args.group_col, args.value_col)
    logger.info("Loaded %d groups from %s", len(labels), args.data)

    outcome = run_group_comparison(
        samples,
        labels,
        test=args.test,
        posthoc=args.posthoc,
        control=args.control,
        alpha=args.alpha,
    )
    logger.info("%s: %s", outcome.test_name, format_test_result(outcome.result))

    tables = {
        "descriptive_statistics": describe_groups(samples, labels),
        "test_result": comparison_table(outcome),
    }
    if outcome.posthoc:
        tables["posthoc_comparisons"] = posthoc_table(outcome.posthoc)
    _emit(tables, args.output)
    return 0


def _run_growth(args: argparse.Namespace) -> int:
    frame = pd.read_csv(args.data)
    growth = growth_data_from_frame(
        frame, args.group_col, args.subject_col, args.time_col, args.value_col
    )
    logger.info(
        "Loaded %d subjects in %d groups over %d timepoints from %s",
        len(growth.subjects),
        len(growth.groups),
        len(growth.timepoints),
        args.data,
    )
    options = GrowthPostHocOptions(
        correction=args.correction,
        compare_mode=args.compare_mode,
        control_group=args.control,
    )
    outcome = run_growth_analysis(growth, options)

    tables = {"growth_summary": growth_summary_table(growth)}
    if outcome.anova is not None:
        tables["rm_anova"] = rm_anova_table(outcome.anova)
    if outcome.gatekeepers:
        tables["timepoint_anova"] = gatekeeper_table(outcome.gatekeepers)
    tables["growth_comparisons"] = growth_comparison_table(outcome.comparisons)
    _emit(tables, args.output)
    return 0


def _run_survival(args: argparse.Namespace) -> int:
    frame = pd.read_csv(args.data)
    subjects = subjects_from_frame(frame, args.group_col, args.time_col, args.event_col)
    logger.info("Loaded %d survival subjects from %s", len(subjects), args.data)

    outcome = run_survival_analysis(subjects, args.risk_times)
    tables = {
        "survival_summary": survival_summary_table(outcome),
        "survival_curves": survival_curve_table(outcome.curves),
        "risk_table": risk_table_frame(outcome.risk_table),
    }
    if outcome.log_rank is not None:
        tables["log_rank"] = log_rank_table(outcome.log_rank)
    _emit(tables, args.output)
    return 0


def _build_arg_parser() -> argparse.ArgumentParser:
    """Build command-line parser for module execution."""
    parser = argparse.ArgumentParser(
        prog="sigstar",
        description="Hypothesis tests, growth-curve and survival statistics for CSV data.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity (default: INFO).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    compare = sub.add_parser("compare", help="Compare groups with a hypothesis test.")
    compare.add_argument("data", help="Long-form CSV with one row per observation.")
    compare.add_argument("--test", required=True, choices=TEST_TYPES, help="Test to run.")
    compare.add_argument(
        "--posthoc",
        default=None,
        choices=tuple(POSTHOC_METHODS),
        help="Post-hoc procedure after a significant ANOVA/Kruskal-Wallis (default: bonferroni).",
    )
    compare.add_argument("--control", default=None, help="Control group label for Dunnett.")
    compare.add_argument(
        "--alpha",
        type=float,
        default=DEFAULT_ALPHA,
        help=f"Omnibus significance level gating post-hoc tests (default: {DEFAULT_ALPHA}).",
    )
    compare.add_argument("--group-col", default=INPUT.group, help="Group label column.")
    compare.add_argument("--value-col", default=INPUT.value, help="Value column.")
    compare.add_argument("--output", default=None, help="Directory for CSV outputs.")
    compare.set_defaults(handler=_run_compare)

    growth = sub.add_parser("growth", help="Repeated-measures analysis of growth curves.")
    growth.add_argument("data", help="Long-form CSV with one row per subject and timepoint.")
    growth.add_argument(
        "--correction",
        default="holm",
        choices=CORRECTION_METHODS,
        help="Multiple-comparison correction (default: holm).",
    )
    growth.add_argument(
        "--compare-mode",
        default="all",
        choices=COMPARE_MODES,
        help="Compare all pairs or each group against the control (default: all).",
    )
    growth.add_argument("--control", default=None, help="Control group label.")
    growth.add_argument("--group-col", default=INPUT.group, help="Group label column.")
    growth.add_argument("--subject-col", default=INPUT.subject, help="Subject id column.")
    growth.add_argument("--time-col", default=INPUT.time, help="Timepoint column.")
    growth.add_argument("--value-col", default=INPUT.value, help="Value column.")
    growth.add_argument("--output", default=None, help="Directory for CSV outputs.")
    growth.set_defaults(handler=_run_growth)

    survival = sub.add_parser("survival", help="Kaplan-Meier curves and log-rank test.")
    survival.add_argument("data", help="CSV with one row per subject.")
    survival.add_argument("--group-col", default=INPUT.group, help="Group label column.")
    survival.add_argument("--time-col", default=INPUT.time, help="Survival time column.")
    survival.add_argument(
        "--event-col", default=INPUT.event, help="Event column (1=event, 0=censored)."
    )
    survival.add_argument(
        "--risk-times",
        type=float,
        nargs="+",
        default=None,
        help="Times for the at-risk table (default: 5 evenly spaced times).",
    )
    survival.add_argument("--output", default=None, help="Directory for CSV outputs.")
    survival.set_defaults(handler=_run_survival)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint; returns 1 when the statistics engine rejects the input."""
    parser = _build_arg_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    try:
        return args.handler(args)
    except StatsEngineError as exc:
        logger.error("Analysis failed: %s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
