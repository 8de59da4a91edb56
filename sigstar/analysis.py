"""Run group comparisons, growth-curve and survival analyses on tabular data.

The engine in :mod:`sigstar.stats` computes whatever it is asked to compute.
This module holds the caller policies around it:

- missing and non-numeric values are dropped before a sample reaches a test
  (whole rows for paired tests), and groups left empty are skipped;
- one-way ANOVA or Friedman on exactly two groups falls back to Welch's
  t-test or the Wilcoxon signed-rank test;
- post-hoc comparisons only run after a significant omnibus test;
- survival subjects are split by group label and the log-rank test only runs
  when there are at least two groups.

Results are returned as frozen outcome records, and the ``*_table`` helpers
turn them into DataFrames with the column names of :mod:`sigstar.schema`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .reporting import format_p_value
from .schema import COLUMNS, INPUT
from .stats.descriptive import quartiles
from .stats.errors import InsufficientDataError, InvalidParameterError, UnequalSampleSizeError
from .stats.omnibus import friedman_test, kruskal_wallis, one_way_anova
from .stats.posthoc import (
    bonferroni_posthoc,
    dunnett_posthoc,
    friedman_posthoc,
    holm_bonferroni_posthoc,
    tukey_hsd_posthoc,
)
from .stats.repeated import (
    GrowthData,
    GrowthPostHocOptions,
    growth_post_hoc,
    timepoint_anova,
    two_way_repeated_measures_anova,
)
from .stats.results import (
    AnovaResult,
    FriedmanResult,
    GrowthComparison,
    HypothesisResult,
    KruskalWallisResult,
    LogRankResult,
    PostHocComparison,
    RepeatedMeasuresResult,
    RiskTableEntry,
    SurvivalStep,
    TimepointOmnibus,
    TTestResult,
)
from .stats.significance import DEFAULT_ALPHA, significance_label
from .stats.survival import (
    Subject,
    at_risk_table,
    compute_km,
    compute_median,
    group_subjects,
    log_rank_test,
)
from .stats.two_sample import mann_whitney_u, t_test, wilcoxon_signed_rank

logger = logging.getLogger(__name__)

TWO_SAMPLE_TESTS: Dict[str, Tuple[str, Callable]] = {
    "t-test-unpaired": ("Unpaired t-test (Welch's)", lambda a, b: t_test(a, b, paired=False)),
    "t-test-paired": ("Paired t-test", lambda a, b: t_test(a, b, paired=True)),
    "mann-whitney": ("Mann-Whitney U test", mann_whitney_u),
    "wilcoxon": ("Wilcoxon signed-rank test", wilcoxon_signed_rank),
}
OMNIBUS_TESTS: Dict[str, Tuple[str, Callable]] = {
    "one-way-anova": ("One-way ANOVA", one_way_anova),
    "kruskal-wallis": ("Kruskal-Wallis test", kruskal_wallis),
    "friedman": ("Friedman test", friedman_test),
}
TEST_TYPES = tuple(TWO_SAMPLE_TESTS) + tuple(OMNIBUS_TESTS)

TWO_GROUP_FALLBACK = {
    "one-way-anova": "t-test-unpaired",
    "friedman": "wilcoxon",
}

POSTHOC_METHODS: Dict[str, Callable] = {
    "tukey": tukey_hsd_posthoc,
    "bonferroni": bonferroni_posthoc,
    "holm": holm_bonferroni_posthoc,
    "dunnett": dunnett_posthoc,
}
DEFAULT_POSTHOC = "bonferroni"

# Tests whose groups are matched row by row.
PAIRED_TESTS = ("t-test-paired", "wilcoxon", "friedman")

RISK_TABLE_POINTS = 5


def _require_columns(frame: pd.DataFrame, columns: Sequence[str]) -> None:
    missing = set(columns) - set(frame.columns)
    if missing:
        raise InvalidParameterError(
            f"Input data is missing required columns: {sorted(missing)}. "
            f"Available columns: {list(frame.columns)}"
        )


def _as_numeric(values: Sequence) -> np.ndarray:
    numeric = pd.to_numeric(pd.Series(list(values), dtype=object), errors="coerce")
    return numeric.to_numpy(dtype=float)


def clean_sample(values: Sequence) -> np.ndarray:
    """Coerce values to float and drop missing, non-numeric and infinite entries."""
    arr = _as_numeric(values)
    return arr[np.isfinite(arr)]


def complete_blocks(
    groups: Sequence[Tuple[str, np.ndarray]]
) -> List[Tuple[str, np.ndarray]]:
    """Keep only the rows where every matched group has a value.

    Args:
        groups (Sequence[tuple[str, numpy.ndarray]]): ``(label, values)`` per
            group, with missing values still in place as NaN.

    Returns:
        list[tuple[str, numpy.ndarray]]: The same groups restricted to complete
        rows, so position ``i`` still refers to the same subject in each group.

    Raises:
        UnequalSampleSizeError: If the groups have different raw lengths.
    """
    sizes = [arr.size for _, arr in groups]
    if len(set(sizes)) != 1:
        raise UnequalSampleSizeError(
            f"Paired tests require groups of equal length, got {sizes}."
        )
    keep = np.all(np.isfinite(np.vstack([arr for _, arr in groups])), axis=0)
    if not bool(keep.all()):
        logger.warning("Dropping %d incomplete rows from paired groups", int((~keep).sum()))
    return [(label, arr[keep]) for label, arr in groups]


# ===== GROUP COMPARISONS =====


@dataclass(frozen=True)
class ComparisonOutcome:
    """Result of :func:`run_group_comparison`.

    Attributes:
        test: Key of the test that actually ran (after any two-group fallback).
        test_name: Human-readable test name.
        labels: Labels of the groups that entered the test.
        result: Engine result record.
        posthoc: Pairwise comparisons; empty when none were run.
        posthoc_method: Name of the post-hoc procedure, if one ran.
        note: Explanation of a fallback, empty otherwise.
    """

    test: str
    test_name: str
    labels: Tuple[str, ...]
    result: HypothesisResult
    posthoc: Tuple[PostHocComparison, ...] = ()
    posthoc_method: Optional[str] = None
    note: str = ""


def samples_from_frame(
    frame: pd.DataFrame,
    group_col: str = INPUT.group,
    value_col: str = INPUT.value,
) -> Tuple[List[np.ndarray], List[str]]:
    """Split a long-form table into one sample per group.

    Groups keep their first-seen order, and rows keep their file order within
    a group, which is how paired tests match observations.

    Raises:
        InvalidParameterError: If a required column is missing.
    """
    _require_columns(frame, [group_col, value_col])
    labels = [str(g) for g in pd.unique(frame[group_col].astype(str))]
    keys = frame[group_col].astype(str)
    values = pd.to_numeric(frame[value_col], errors="coerce")
    samples = [values[keys == label].to_numpy(dtype=float) for label in labels]
    return samples, labels


def _control_index(labels: Sequence[str], control: Optional[str]) -> int:
    if control is None:
        return 0
    if control not in labels:
        raise InvalidParameterError(f"Control group {control!r} is not one of {list(labels)}.")
    return list(labels).index(control)


def run_group_comparison(
    samples: Sequence[Sequence[float]],
    labels: Optional[Sequence[str]] = None,
    test: str = "t-test-unpaired",
    posthoc: Optional[str] = None,
    control: Optional[str] = None,
    alpha: float = DEFAULT_ALPHA,
) -> ComparisonOutcome:
    """Run one hypothesis test over groups and, if warranted, a post-hoc batch.

    Args:
        samples (Sequence[Sequence[float]]): Raw values per group. Missing and
            non-numeric entries are dropped; for paired tests (paired t,
            Wilcoxon, Friedman) the whole row is dropped instead, so rows stay
            matched across groups.
        labels (Sequence[str], optional): Group labels; default ``Group i``.
        test (str): One of :data:`TEST_TYPES`. Two-sample tests compare the
            first two groups that have data.
        posthoc (str, optional): ``tukey``, ``bonferroni``, ``holm`` or
            ``dunnett`` for ANOVA/Kruskal-Wallis; defaults to Bonferroni.
            Friedman always uses Wilcoxon + Bonferroni.
        control (str, optional): Control label for Dunnett; defaults to the
            first group.
        alpha (float): Omnibus significance level that gates the post-hoc
            batch. Post-hoc stars always use the 0.05 convention.

    Returns:
        ComparisonOutcome: The test that ran, its result and any post-hoc
        comparisons.

    Raises:
        InvalidParameterError: Unknown test or post-hoc method, label count
            mismatch, unknown control or ``alpha`` outside ``(0, 1)``.
        InsufficientDataError: Fewer than two groups with data, or any error
            raised by the engine for the chosen test.
        UnequalSampleSizeError: Paired groups of different raw lengths.
    """
    if test not in TEST_TYPES:
        raise InvalidParameterError(f"test must be one of {TEST_TYPES}, got {test!r}")
    if posthoc is not None and posthoc not in POSTHOC_METHODS:
        raise InvalidParameterError(
            f"posthoc must be one of {tuple(POSTHOC_METHODS)}, got {posthoc!r}"
        )
    if not 0.0 < alpha < 1.0:
        raise InvalidParameterError(f"alpha must be in (0, 1), got {alpha}")
    if labels is None:
        labels = [f"Group {i + 1}" for i in range(len(samples))]
    if len(labels) != len(samples):
        raise InvalidParameterError(f"Expected {len(samples)} labels, got {len(labels)}.")

    paired = test in PAIRED_TESTS
    filled = []
    for label, values in zip(labels, samples):
        raw = _as_numeric(values)
        if not np.isfinite(raw).any():
            logger.warning("Skipping group %s: no numeric values", label)
            continue
        # paired groups keep NaN placeholders so rows stay aligned
        filled.append((str(label), raw if paired else raw[np.isfinite(raw)]))
    if len(filled) < 2:
        raise InsufficientDataError(
            f"At least 2 groups with data are required, got {len(filled)}."
        )

    note = ""
    if test in TWO_GROUP_FALLBACK and len(filled) == 2:
        fallback = TWO_GROUP_FALLBACK[test]
        note = f"{OMNIBUS_TESTS[test][0]} with 2 groups falls back to {TWO_SAMPLE_TESTS[fallback][0]}"
        logger.info(note)
        test = fallback

    if test in TWO_SAMPLE_TESTS and len(filled) > 2:
        logger.info(
            "Two-sample test compares the first two groups: %s vs %s",
            filled[0][0],
            filled[1][0],
        )
        filled = filled[:2]
    if paired:
        filled = complete_blocks(filled)

    if test in TWO_SAMPLE_TESTS:
        if posthoc is not None:
            logger.warning("Post-hoc %s ignored for two-sample test %s", posthoc, test)
        (label_a, a), (label_b, b) = filled
        name, func = TWO_SAMPLE_TESTS[test]
        return ComparisonOutcome(
            test=test, test_name=name, labels=(label_a, label_b), result=func(a, b), note=note
        )

    name, func = OMNIBUS_TESTS[test]
    group_labels = [label for label, _ in filled]
    values = [arr for _, arr in filled]
    result = func(values)
    if not result.p_value < alpha:
        logger.info(
            "%s not significant (p = %s); post-hoc not needed",
            name,
            format_p_value(result.p_value),
        )
        return ComparisonOutcome(
            test=test, test_name=name, labels=tuple(group_labels), result=result, note=note
        )

    if test == "friedman":
        if posthoc is not None:
            logger.warning("Friedman uses Wilcoxon + Bonferroni post-hoc; ignoring %s", posthoc)
        comparisons = friedman_posthoc(values, group_labels)
    elif (posthoc or DEFAULT_POSTHOC) == "dunnett":
        comparisons = dunnett_posthoc(
            values, group_labels, control_index=_control_index(group_labels, control)
        )
    else:
        comparisons = POSTHOC_METHODS[posthoc or DEFAULT_POSTHOC](values, group_labels)

    method = comparisons[0].method if comparisons else None
    logger.info("%s significant; ran %d %s comparisons", name, len(comparisons), method)
    return ComparisonOutcome(
        test=test,
        test_name=name,
        labels=tuple(group_labels),
        result=result,
        posthoc=tuple(comparisons),
        posthoc_method=method,
        note=note,
    )


def describe_groups(
    samples: Sequence[Sequence[float]], labels: Optional[Sequence[str]] = None
) -> pd.DataFrame:
    """Per-group n, mean, median, SD, SEM and box-plot quartiles.

    SD and SEM are NaN for groups with a single value; every statistic is NaN
    for groups with no numeric values.
    """
    if labels is None:
        labels = [f"Group {i + 1}" for i in range(len(samples))]
    rows = []
    for label, values in zip(labels, samples):
        vals = clean_sample(values)
        n = int(vals.size)
        row = {COLUMNS.group: str(label), COLUMNS.n: n}
        if n:
            q1, q2, q3 = quartiles(vals)
            sd = float(np.std(vals, ddof=1)) if n > 1 else np.nan
            row.update(
                {
                    COLUMNS.mean: float(np.mean(vals)),
                    COLUMNS.median: q2,
                    COLUMNS.sd: sd,
                    COLUMNS.sem: sd / np.sqrt(n) if n > 1 else np.nan,
                    COLUMNS.q1: q1,
                    COLUMNS.q3: q3,
                }
            )
        rows.append(row)
    columns = [
        COLUMNS.group,
        COLUMNS.n,
        COLUMNS.mean,
        COLUMNS.median,
        COLUMNS.sd,
        COLUMNS.sem,
        COLUMNS.q1,
        COLUMNS.q3,
    ]
    return pd.DataFrame(rows, columns=columns)


def _degrees_of_freedom(result: HypothesisResult) -> Tuple[float, float]:
    if isinstance(result, TTestResult):
        return result.df, np.nan
    if isinstance(result, AnovaResult):
        return float(result.df_between), float(result.df_within)
    if isinstance(result, (KruskalWallisResult, FriedmanResult)):
        return float(result.df), np.nan
    return np.nan, np.nan


def comparison_table(outcome: ComparisonOutcome) -> pd.DataFrame:
    """One-row summary of the test in ``outcome``."""
    df, df_within = _degrees_of_freedom(outcome.result)
    test_name = outcome.test_name
    if outcome.posthoc_method:
        test_name = f"{test_name} + {outcome.posthoc_method}"
    return pd.DataFrame(
        [
            {
                COLUMNS.test: test_name,
                COLUMNS.group: ", ".join(outcome.labels),
                COLUMNS.statistic_name: outcome.result.statistic_name,
                COLUMNS.statistic: float(outcome.result.statistic),
                COLUMNS.df: df,
                COLUMNS.df_within: df_within,
                COLUMNS.p_value: float(outcome.result.p_value),
                COLUMNS.significance: outcome.result.significance_label,
                COLUMNS.note: outcome.note,
            }
        ]
    )


def posthoc_table(comparisons: Sequence[PostHocComparison]) -> pd.DataFrame:
    columns = [
        COLUMNS.group1,
        COLUMNS.group2,
        COLUMNS.raw_p,
        COLUMNS.corrected_p,
        COLUMNS.significant,
        COLUMNS.significance,
        COLUMNS.method,
    ]
    rows = [
        {
            COLUMNS.group1: c.group1_label,
            COLUMNS.group2: c.group2_label,
            COLUMNS.raw_p: c.raw_p,
            COLUMNS.corrected_p: c.corrected_p,
            COLUMNS.significant: c.significant,
            COLUMNS.significance: c.significance_label,
            COLUMNS.method: c.method,
        }
        for c in comparisons
    ]
    return pd.DataFrame(rows, columns=columns)


# ===== GROWTH CURVES =====


@dataclass(frozen=True)
class GrowthOutcome:
    """Result of :func:`run_growth_analysis`.

    ``anova`` is ``None`` when the repeated-measures ANOVA could not be
    computed (for example when no group has a subject with complete data);
    the gatekept post-hoc comparisons do not depend on it.
    """

    anova: Optional[RepeatedMeasuresResult]
    gatekeepers: Tuple[TimepointOmnibus, ...]
    comparisons: Tuple[GrowthComparison, ...]


def growth_data_from_frame(
    frame: pd.DataFrame,
    group_col: str = INPUT.group,
    subject_col: str = INPUT.subject,
    time_col: str = INPUT.time,
    value_col: str = INPUT.value,
) -> GrowthData:
    """Build :class:`GrowthData` from one row per subject and timepoint.

    Timepoints are sorted ascending; a subject without a row at some timepoint
    gets a missing value there.

    Raises:
        InvalidParameterError: Missing columns, non-numeric times, a subject
            listed under more than one group, or duplicate subject/time rows.
    """
    _require_columns(frame, [group_col, subject_col, time_col, value_col])
    df = frame[[group_col, subject_col, time_col, value_col]].copy()
    df[group_col] = df[group_col].astype(str)
    df[subject_col] = df[subject_col].astype(str)
    df[time_col] = pd.to_numeric(df[time_col], errors="coerce")
    df[value_col] = pd.to_numeric(df[value_col], errors="coerce")

    if df[time_col].isna().any():
        n_missing = int(df[time_col].isna().sum())
        raise InvalidParameterError(f"Found {n_missing} rows with missing/non-numeric time.")
    groups_per_subject = df.groupby(subject_col, sort=False)[group_col].nunique()
    shared = groups_per_subject[groups_per_subject > 1]
    if not shared.empty:
        raise InvalidParameterError(
            f"Subjects belong to more than one group: {list(shared.index[:5])}."
        )
    if df.duplicated([subject_col, time_col]).any():
        raise InvalidParameterError("Found duplicate rows for the same subject and time.")

    wide = df.pivot(index=subject_col, columns=time_col, values=value_col).sort_index(axis=1)
    subjects = {
        str(sid): [None if np.isnan(v) else float(v) for v in row]
        for sid, row in zip(wide.index, wide.to_numpy(dtype=float))
    }
    groups = [str(g) for g in pd.unique(df[group_col])]
    group_map = {
        g: [str(s) for s in pd.unique(df.loc[df[group_col] == g, subject_col])] for g in groups
    }
    return GrowthData(
        timepoints=[float(t) for t in wide.columns],
        groups=groups,
        subjects=subjects,
        group_map=group_map,
    )


def run_growth_analysis(
    growth: GrowthData, options: Optional[GrowthPostHocOptions] = None
) -> GrowthOutcome:
    """Repeated-measures ANOVA plus gatekept per-timepoint comparisons."""
    try:
        anova = two_way_repeated_measures_anova(growth)
    except InsufficientDataError as exc:
        logger.warning("Repeated-measures ANOVA skipped: %s", exc)
        anova = None
    else:
        logger.info(
            "RM ANOVA: group p = %s, time p = %s, interaction p = %s (%d subjects)",
            format_p_value(anova.group.p_value),
            format_p_value(anova.time.p_value),
            format_p_value(anova.interaction.p_value),
            anova.n_subjects,
        )

    gatekeepers = tuple(timepoint_anova(growth)) if len(growth.groups) > 2 else ()
    comparisons = tuple(growth_post_hoc(growth, options))
    logger.info("Growth post-hoc produced %d comparisons", len(comparisons))
    return GrowthOutcome(anova=anova, gatekeepers=gatekeepers, comparisons=comparisons)


def growth_summary_table(growth: GrowthData) -> pd.DataFrame:
    """Mean, SD and SEM of each group at each timepoint over non-missing values."""
    rows = []
    for group in growth.groups:
        for ti, t in enumerate(growth.timepoints):
            vals = growth.values_at(group, ti)
            n = int(vals.size)
            sd = float(np.std(vals, ddof=1)) if n > 1 else np.nan
            rows.append(
                {
                    COLUMNS.group: str(group),
                    COLUMNS.timepoint: float(t),
                    COLUMNS.n: n,
                    COLUMNS.mean: float(np.mean(vals)) if n else np.nan,
                    COLUMNS.sd: sd,
                    COLUMNS.sem: sd / np.sqrt(n) if n > 1 else np.nan,
                }
            )
    return pd.DataFrame(rows)


def rm_anova_table(result: RepeatedMeasuresResult) -> pd.DataFrame:
    rows = []
    for name, effect in (
        ("Group", result.group),
        ("Time", result.time),
        ("Group x Time", result.interaction),
    ):
        rows.append(
            {
                COLUMNS.effect: name,
                COLUMNS.ss: effect.ss,
                COLUMNS.df1: effect.df1,
                COLUMNS.df2: effect.df2,
                COLUMNS.f: effect.f,
                COLUMNS.p_value: effect.p_value,
                COLUMNS.significance: effect.significance_label,
            }
        )
    return pd.DataFrame(rows)


def gatekeeper_table(gatekeepers: Sequence[TimepointOmnibus]) -> pd.DataFrame:
    columns = [COLUMNS.timepoint, COLUMNS.f, COLUMNS.p_value, COLUMNS.significant, COLUMNS.tested]
    rows = [
        {
            COLUMNS.timepoint: g.timepoint,
            COLUMNS.f: np.nan if g.f is None else g.f,
            COLUMNS.p_value: np.nan if g.p_value is None else g.p_value,
            COLUMNS.significant: g.significant,
            COLUMNS.tested: g.tested,
        }
        for g in gatekeepers
    ]
    return pd.DataFrame(rows, columns=columns)


def growth_comparison_table(comparisons: Sequence[GrowthComparison]) -> pd.DataFrame:
    columns = [
        COLUMNS.timepoint,
        COLUMNS.group1,
        COLUMNS.group2,
        COLUMNS.raw_p,
        COLUMNS.corrected_p,
        COLUMNS.significant,
        COLUMNS.significance,
    ]
    rows = [
        {
            COLUMNS.timepoint: c.timepoint,
            COLUMNS.group1: c.group1,
            COLUMNS.group2: c.group2,
            COLUMNS.raw_p: c.raw_p,
            COLUMNS.corrected_p: c.corrected_p,
            COLUMNS.significant: c.significant,
            COLUMNS.significance: c.significance_label,
        }
        for c in comparisons
    ]
    return pd.DataFrame(rows, columns=columns)


# ===== SURVIVAL =====


@dataclass(frozen=True)
class SurvivalOutcome:
    """Result of :func:`run_survival_analysis`; dictionaries are keyed by group label."""

    curves: Dict[str, List[SurvivalStep]]
    medians: Dict[str, Optional[float]]
    risk_table: Dict[str, List[RiskTableEntry]]
    log_rank: Optional[LogRankResult]


def subjects_from_frame(
    frame: pd.DataFrame,
    group_col: str = INPUT.group,
    time_col: str = INPUT.time,
    event_col: str = INPUT.event,
) -> List[Subject]:
    """Build survival subjects from one row per subject.

    Rows with a missing time or event are dropped with a warning.

    Raises:
        InvalidParameterError: Missing columns, or an event value other than
            0 or 1.
    """
    _require_columns(frame, [group_col, time_col, event_col])
    times = pd.to_numeric(frame[time_col], errors="coerce")
    events = pd.to_numeric(frame[event_col], errors="coerce")
    keep = times.notna() & events.notna()
    if not bool(keep.all()):
        logger.warning("Dropping %d rows with missing time or event", int((~keep).sum()))
    times, events, groups = times[keep], events[keep], frame.loc[keep, group_col].astype(str)

    bad = ~events.isin([0, 1])
    if bool(bad.any()):
        raise InvalidParameterError(
            f"Event values must be 0 or 1, found {sorted(set(events[bad].tolist()))[:5]}."
        )
    return [
        Subject(time=float(t), event=int(e), group=g)
        for t, e, g in zip(times.to_numpy(dtype=float), events.to_numpy(dtype=float), groups)
    ]


def default_risk_times(subjects: Sequence[Subject], count: int = RISK_TABLE_POINTS) -> List[float]:
    """Evenly spaced times from 0 to the last observed time."""
    if not subjects:
        return []
    t_max = max(s.time for s in subjects)
    if t_max <= 0:
        return [0.0]
    return [float(t) for t in np.linspace(0.0, t_max, count)]


def run_survival_analysis(
    subjects: Sequence[Subject], risk_times: Optional[Sequence[float]] = None
) -> SurvivalOutcome:
    """Kaplan-Meier curves, medians and at-risk counts per group, plus log-rank.

    Raises:
        InsufficientDataError: If ``subjects`` is empty.
    """
    grouped = group_subjects(subjects)
    if not grouped:
        raise InsufficientDataError("Survival analysis needs at least one subject.")
    curves = {label: compute_km(subs) for label, subs in grouped.items()}
    medians = {label: compute_median(curve) for label, curve in curves.items()}
    if risk_times is None:
        risk_times = default_risk_times(subjects)
    risk = at_risk_table(grouped, risk_times)

    log_rank = None
    if len(grouped) >= 2:
        log_rank = log_rank_test(grouped)
        logger.info(
            "Log-rank: chi2 = %.2f, df = %d, p = %s",
            log_rank.chi2,
            log_rank.df,
            format_p_value(log_rank.p_value),
        )
    else:
        logger.info("Only one group; log-rank test not run")
    return SurvivalOutcome(curves=curves, medians=medians, risk_table=risk, log_rank=log_rank)


def survival_curve_table(curves: Mapping[str, Sequence[SurvivalStep]]) -> pd.DataFrame:
    rows = [
        {
            COLUMNS.group: label,
            COLUMNS.time: step.time,
            COLUMNS.survival: step.survival,
            COLUMNS.n_risk: step.n_risk,
            COLUMNS.n_event: step.n_event,
            COLUMNS.n_censor: step.n_censor,
            COLUMNS.ci_lower: step.ci_lower,
            COLUMNS.ci_upper: step.ci_upper,
        }
        for label, curve in curves.items()
        for step in curve
    ]
    return pd.DataFrame(rows)


def survival_summary_table(outcome: SurvivalOutcome) -> pd.DataFrame:
    """Per-group subject count, event count, median survival and log-rank O/E."""
    rows = []
    for label, curve in outcome.curves.items():
        median = outcome.medians[label]
        row = {
            COLUMNS.group: label,
            COLUMNS.n: curve[0].n_risk,
            COLUMNS.n_event: sum(step.n_event for step in curve),
            COLUMNS.median_survival: np.nan if median is None else median,
        }
        if outcome.log_rank is not None:
            row[COLUMNS.observed] = outcome.log_rank.observed[label]
            row[COLUMNS.expected] = outcome.log_rank.expected[label]
        rows.append(row)
    return pd.DataFrame(rows)


def risk_table_frame(risk: Mapping[str, Sequence[RiskTableEntry]]) -> pd.DataFrame:
    rows = [
        {COLUMNS.group: label, COLUMNS.time: entry.time, COLUMNS.n_risk: entry.n_risk}
        for label, entries in risk.items()
        for entry in entries
    ]
    return pd.DataFrame(rows, columns=[COLUMNS.group, COLUMNS.time, COLUMNS.n_risk])


def log_rank_table(result: LogRankResult) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                COLUMNS.test: "Log-rank",
                COLUMNS.statistic_name: "χ²",
                COLUMNS.statistic: result.chi2,
                COLUMNS.df: result.df,
                COLUMNS.p_value: result.p_value,
                COLUMNS.significance: significance_label(result.p_value),
            }
        ]
    )
