"""Define standardized column names for input tables and result DataFrames."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class InputColumns:
    """Default column names of long-form input tables.

    Attributes:
        group: Group label of each observation or subject.
        value: Measured value (group comparisons and growth curves).
        time: Survival time, or measurement time for growth curves.
        event: Survival outcome, 1 for an observed event and 0 for censored.
        subject: Subject identifier for repeated measurements.
    """

    group: str = "group"
    value: str = "value"
    time: str = "time"
    event: str = "event"
    subject: str = "subject"


@dataclass(frozen=True)
class ResultColumns:
    """Container for standardized column labels.

    These column names are used in all result DataFrames built by
    :mod:`sigstar.analysis`, so that exported tables line up across analyses.

    Attributes:
        p_value: Two-sided p-value of an omnibus or two-sample test.
        raw_p: Unadjusted p-value of one pairwise comparison.
        corrected_p: Multiplicity-adjusted p-value of one pairwise comparison.
            Significance stars are always derived from this column.
        survival: Kaplan-Meier survival probability after the step at ``time``.
    """

    group: str = "Group"
    n: str = "n"
    mean: str = "Mean"
    median: str = "Median"
    sd: str = "SD"
    sem: str = "SEM"
    q1: str = "Q1"
    q3: str = "Q3"

    test: str = "Test"
    note: str = "Note"
    statistic_name: str = "Statistic"
    statistic: str = "Statistic Value"
    df: str = "df"
    df_within: str = "df (within)"
    p_value: str = "p"
    significance: str = "Significance"

    group1: str = "Group 1"
    group2: str = "Group 2"
    raw_p: str = "Raw p"
    corrected_p: str = "Corrected p"
    significant: str = "Significant"
    method: str = "Method"

    effect: str = "Effect"
    f: str = "F"
    df1: str = "df1"
    df2: str = "df2"
    ss: str = "SS"
    timepoint: str = "Timepoint"
    tested: str = "Tested"

    time: str = "Time"
    survival: str = "Survival"
    n_risk: str = "At Risk"
    n_event: str = "Events"
    n_censor: str = "Censored"
    ci_lower: str = "CI Lower"
    ci_upper: str = "CI Upper"
    median_survival: str = "Median Survival"
    observed: str = "Observed Events"
    expected: str = "Expected Events"


INPUT = InputColumns()
COLUMNS = ResultColumns()
