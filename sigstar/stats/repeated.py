"""Two-way repeated-measures ANOVA and gatekept per-timepoint comparisons.

Data layout (:class:`GrowthData`): each subject has one value per timepoint
and belongs to exactly one group. Group is the between-subjects factor, Time
the within-subjects factor.

Design Principle:
    ``growth_post_hoc`` is a two-stage procedure. With more than two groups a
    one-way ANOVA at each timepoint acts as gatekeeper, and pairwise tests are
    only run at timepoints where it is significant. The correction is then
    applied once across every pairwise p-value from every timepoint.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations
from typing import List, Mapping, Optional, Sequence

import numpy as np

from .errors import InsufficientDataError, InvalidParameterError, UnequalSampleSizeError
from .distributions import f_sf
from .omnibus import one_way_anova
from .posthoc import CORRECTION_METHODS, adjust_p_values
from .results import GrowthComparison, RepeatedMeasuresResult, RMEffect, TimepointOmnibus
from .significance import DEFAULT_ALPHA, significance_label
from .two_sample import welch_t_test

COMPARE_MODES = ("all", "control")


@dataclass(frozen=True)
class GrowthData:
    """Subjects measured repeatedly over time, split into groups.

    Attributes:
        timepoints: Ordered measurement times.
        groups: Ordered group labels.
        subjects: Subject id -> one value per timepoint; ``None`` or NaN marks
            a missing measurement.
        group_map: Group label -> subject ids in that group.
    """

    timepoints: Sequence[float]
    groups: Sequence[str]
    subjects: Mapping[str, Sequence[Optional[float]]]
    group_map: Mapping[str, Sequence[str]]

    def subject_values(self, subject_id: str) -> np.ndarray:
        if subject_id not in self.subjects:
            raise InvalidParameterError(f"Unknown subject id {subject_id!r}.")
        raw = self.subjects[subject_id]
        vals = np.array([np.nan if v is None else v for v in raw], dtype=float)
        if vals.size != len(self.timepoints):
            raise UnequalSampleSizeError(
                f"Subject {subject_id!r} has {vals.size} values for "
                f"{len(self.timepoints)} timepoints."
            )
        return vals

    def values_at(self, group: str, time_index: int) -> np.ndarray:
        """Non-missing values of ``group`` at one timepoint."""
        vals = [self.subject_values(sid)[time_index] for sid in self.group_map.get(group, [])]
        arr = np.asarray(vals, dtype=float)
        return arr[np.isfinite(arr)]

    def complete_subjects(self, group: str) -> np.ndarray:
        """Matrix (subjects x timepoints) of subjects with no missing values."""
        rows = [self.subject_values(sid) for sid in self.group_map.get(group, [])]
        rows = [r for r in rows if np.all(np.isfinite(r))]
        if not rows:
            return np.empty((0, len(self.timepoints)))
        return np.vstack(rows)


@dataclass(frozen=True)
class GrowthPostHocOptions:
    """Options for :func:`growth_post_hoc`.

    Attributes:
        correction: ``holm``, ``bonferroni``, ``sidak`` or ``none``.
        compare_mode: ``all`` pairs or each group vs ``control``.
        control_group: Control label; defaults to the first group.
    """

    correction: str = "holm"
    compare_mode: str = "all"
    control_group: Optional[str] = None

    def __post_init__(self):
        if self.correction not in CORRECTION_METHODS:
            raise InvalidParameterError(
                f"correction must be one of {CORRECTION_METHODS}, got {self.correction!r}"
            )
        if self.compare_mode not in COMPARE_MODES:
            raise InvalidParameterError(
                f"compare_mode must be one of {COMPARE_MODES}, got {self.compare_mode!r}"
            )


def _effect(ss: float, df1: int, ms_denominator: float, df2: int) -> RMEffect:
    f_stat = (ss / df1) / ms_denominator
    return RMEffect(f=f_stat, df1=df1, df2=df2, p_value=f_sf(f_stat, df1, df2), ss=ss)


def two_way_repeated_measures_anova(growth: GrowthData) -> RepeatedMeasuresResult:
    """Group x Time split-plot ANOVA.

    Group is tested against subjects-within-groups; Time and the Group x Time
    interaction are tested against the within-subject residual.

    Args:
        growth (GrowthData): Balanced repeated measurements. Subjects with a
            missing value at any timepoint are excluded.

    Returns:
        RepeatedMeasuresResult: The three F-tests plus ``ss_subjects``,
        ``ss_error`` and the number of subjects used.

    Raises:
        InsufficientDataError: Fewer than 2 groups or 2 timepoints, a group
            without complete subjects, no subject-level degrees of freedom, or
            zero error variance.
        UnequalSampleSizeError: A subject's value count differs from the
            number of timepoints.
    """
    a = len(growth.groups)
    b = len(growth.timepoints)
    if a < 2:
        raise InsufficientDataError(f"RM ANOVA needs at least 2 groups, got {a}.")
    if b < 2:
        raise InsufficientDataError(f"RM ANOVA needs at least 2 timepoints, got {b}.")

    data = [growth.complete_subjects(g) for g in growth.groups]
    for label, block in zip(growth.groups, data):
        if block.shape[0] == 0:
            raise InsufficientDataError(f"Group {label!r} has no subjects with complete data.")
    n_per_group = np.array([block.shape[0] for block in data])
    n_subjects = int(n_per_group.sum())
    if n_subjects - a < 1:
        raise InsufficientDataError(
            f"RM ANOVA needs more subjects than groups, got {n_subjects} for {a} groups."
        )

    stacked = np.vstack(data)
    grand_mean = float(stacked.mean())
    time_means = stacked.mean(axis=0)
    group_means = np.array([block.mean() for block in data])

    ss_group = float(np.sum(n_per_group * b * (group_means - grand_mean) ** 2))
    ss_time = float(n_subjects * np.sum((time_means - grand_mean) ** 2))
    ss_subjects = 0.0
    ss_interaction = 0.0
    ss_error = 0.0
    for block, gm, n_g in zip(data, group_means, n_per_group):
        subject_means = block.mean(axis=1)
        cell_means = block.mean(axis=0)
        ss_subjects += float(b * np.sum((subject_means - gm) ** 2))
        ss_interaction += float(n_g * np.sum((cell_means - gm - time_means + grand_mean) ** 2))
        resid = block - cell_means[None, :] - subject_means[:, None] + gm
        ss_error += float(np.sum(resid**2))

    df_group = a - 1
    df_subjects = n_subjects - a
    df_time = b - 1
    df_interaction = (a - 1) * (b - 1)
    df_error = (n_subjects - a) * (b - 1)

    ms_subjects = ss_subjects / df_subjects
    ms_error = ss_error / df_error
    if ms_subjects <= 0 or ms_error <= 0:
        raise InsufficientDataError("RM ANOVA is undefined with zero subject or error variance.")

    return RepeatedMeasuresResult(
        group=_effect(ss_group, df_group, ms_subjects, df_subjects),
        time=_effect(ss_time, df_time, ms_error, df_error),
        interaction=_effect(ss_interaction, df_interaction, ms_error, df_error),
        ss_subjects=ss_subjects,
        ss_error=ss_error,
        n_subjects=n_subjects,
    )


def timepoint_anova(growth: GrowthData) -> List[TimepointOmnibus]:
    """One-way ANOVA across groups at each timepoint.

    Only groups with at least two observations at a timepoint take part. A
    timepoint with fewer than two such groups, or where the ANOVA is undefined
    (no within-group variance), is reported with ``tested=False``.
    """
    out = []
    for ti, t in enumerate(growth.timepoints):
        valid = [v for v in (growth.values_at(g, ti) for g in growth.groups) if v.size >= 2]
        if len(valid) < 2:
            out.append(TimepointOmnibus(float(t), None, None, False, tested=False))
            continue
        try:
            res = one_way_anova(valid)
        except InsufficientDataError:
            out.append(TimepointOmnibus(float(t), None, None, False, tested=False))
            continue
        out.append(TimepointOmnibus(float(t), res.f, res.p_value, res.p_value < DEFAULT_ALPHA))
    return out


def growth_post_hoc(
    growth: GrowthData, options: Optional[GrowthPostHocOptions] = None
) -> List[GrowthComparison]:
    """Gatekept pairwise comparisons at every timepoint.

    Args:
        growth (GrowthData): Repeated measurements per group.
        options (GrowthPostHocOptions, optional): Correction method,
            comparison scope and control group.

    Returns:
        list[GrowthComparison]: One record per pairwise Welch t-test that was
        run, ordered by timepoint then pair. ``corrected_p`` is corrected over
        the whole list.

    Raises:
        InsufficientDataError: If fewer than two groups are given.
        InvalidParameterError: If the control group is not one of the groups.

    Note:
        With exactly two groups there is no gatekeeper. Pairs where either
        group has fewer than two observations at a timepoint, or where both
        groups are constant, are not tested.
    """
    opts = options if options is not None else GrowthPostHocOptions()
    groups = [str(g) for g in growth.groups]
    if len(groups) < 2:
        raise InsufficientDataError(f"Growth post-hoc needs at least 2 groups, got {len(groups)}.")
    control = groups[0] if opts.control_group is None else str(opts.control_group)
    if control not in groups:
        raise InvalidParameterError(f"Control group {control!r} is not one of {groups}.")

    if opts.compare_mode == "control":
        pairs = [(control, g) for g in groups if g != control]
    else:
        pairs = list(combinations(groups, 2))

    gates = timepoint_anova(growth) if len(groups) > 2 else None

    raw = []
    for ti, t in enumerate(growth.timepoints):
        if gates is not None and not (gates[ti].tested and gates[ti].significant):
            continue
        for g1, g2 in pairs:
            v1 = growth.values_at(g1, ti)
            v2 = growth.values_at(g2, ti)
            if v1.size < 2 or v2.size < 2:
                continue
            if np.ptp(v1) == 0 and np.ptp(v2) == 0:
                continue
            raw.append((float(t), g1, g2, welch_t_test(v1, v2).p_value))

    corrected = adjust_p_values([r[3] for r in raw], opts.correction)
    return [
        GrowthComparison(
            timepoint=t,
            group1=g1,
            group2=g2,
            raw_p=p,
            corrected_p=float(c),
            significant=bool(c < DEFAULT_ALPHA),
            significance_label=significance_label(float(c)),
        )
        for (t, g1, g2, p), c in zip(raw, corrected)
    ]
