"""Pairwise post-hoc procedures with multiple-comparison correction.

These are meant to run after a significant omnibus test (p < 0.05). That
gatekeeping is the caller's job; the functions here always compute.

Every procedure returns a list of :class:`PostHocComparison`. All-pairs
procedures list the unique unordered pairs ``(i, j)`` with ``i < j`` in input
order; Dunnett lists control-vs-group comparisons in input order.
"""

from __future__ import annotations

import math
from itertools import combinations
from typing import List, Optional, Sequence

import numpy as np

from .distributions import dunnett_p_values, student_t_two_sided_p, studentized_range_sf
from .errors import InvalidParameterError, UnequalSampleSizeError
from .omnibus import as_groups, pooled_within_variance
from .results import PostHocComparison
from .significance import DEFAULT_ALPHA, significance_label
from .two_sample import welch_t_test, wilcoxon_signed_rank

CORRECTION_METHODS = ("holm", "bonferroni", "sidak", "none")


def adjust_p_values(p_values: Sequence[float], method: str = "holm") -> np.ndarray:
    """Correct a family of p-values for multiple comparisons.

    Args:
        p_values (Sequence[float]): Raw p-values of one comparison family.
        method (str): ``"holm"`` (step-down Holm-Bonferroni), ``"bonferroni"``,
            ``"sidak"`` or ``"none"``.

    Returns:
        numpy.ndarray: Corrected p-values in the input order, capped at 1.

    Raises:
        InvalidParameterError: If ``method`` is not recognised.

    Note:
        Holm multiplies the i-th smallest p-value (0-based) by ``m - i`` and
        takes a running maximum so the corrected values never decrease with
        the raw ones.
    """
    if method not in CORRECTION_METHODS:
        raise InvalidParameterError(
            f"Correction must be one of {CORRECTION_METHODS}, got {method!r}."
        )
    p = np.asarray(p_values, dtype=float)
    m = p.size
    if m == 0 or method == "none":
        return p.copy()
    if method == "bonferroni":
        return np.minimum(p * m, 1.0)
    if method == "sidak":
        return np.minimum(1.0 - (1.0 - p) ** m, 1.0)

    order = np.argsort(p, kind="mergesort")
    stepped = p[order] * (m - np.arange(m))
    stepped = np.minimum(np.maximum.accumulate(stepped), 1.0)
    out = np.empty(m)
    out[order] = stepped
    return out


def _resolve_labels(labels: Optional[Sequence[str]], k: int) -> List[str]:
    if labels is None:
        return [f"Group {i + 1}" for i in range(k)]
    if len(labels) != k:
        raise InvalidParameterError(f"Expected {k} labels, got {len(labels)}.")
    return [str(label) for label in labels]


def _build(pairs, labels, raw, corrected, method) -> List[PostHocComparison]:
    return [
        PostHocComparison(
            group1_index=i,
            group2_index=j,
            group1_label=labels[i],
            group2_label=labels[j],
            raw_p=float(r),
            corrected_p=float(c),
            significant=bool(c < DEFAULT_ALPHA),
            significance_label=significance_label(float(c)),
            method=method,
        )
        for (i, j), r, c in zip(pairs, raw, corrected)
    ]


def _corrected_welch(samples, labels, method: str, name: str) -> List[PostHocComparison]:
    groups = as_groups(samples)
    labels = _resolve_labels(labels, len(groups))
    pairs = list(combinations(range(len(groups)), 2))
    raw = [welch_t_test(groups[i], groups[j]).p_value for i, j in pairs]
    return _build(pairs, labels, raw, adjust_p_values(raw, method), name)


def bonferroni_posthoc(
    samples: Sequence[Sequence[float]], labels: Optional[Sequence[str]] = None
) -> List[PostHocComparison]:
    """Pairwise Welch t-tests, p multiplied by ``C = k(k-1)/2`` and capped at 1."""
    return _corrected_welch(samples, labels, "bonferroni", "Bonferroni")


def holm_bonferroni_posthoc(
    samples: Sequence[Sequence[float]], labels: Optional[Sequence[str]] = None
) -> List[PostHocComparison]:
    """Pairwise Welch t-tests with the Holm step-down correction."""
    return _corrected_welch(samples, labels, "holm", "Holm-Bonferroni")


def tukey_hsd_posthoc(
    samples: Sequence[Sequence[float]], labels: Optional[Sequence[str]] = None
) -> List[PostHocComparison]:
    """Tukey's honestly significant difference (Tukey-Kramer for unequal n).

    For each pair, ``q = |m_i - m_j| / sqrt(MS_w / 2 * (1/n_i + 1/n_j))`` is
    referred to the studentized range distribution with ``k`` means and
    ``N - k`` degrees of freedom. ``raw_p`` is the unadjusted pooled-variance
    t-test p-value of the same difference.
    """
    groups = as_groups(samples)
    k = len(groups)
    labels = _resolve_labels(labels, k)
    ms_within, df_within = pooled_within_variance(groups)

    pairs = list(combinations(range(k), 2))
    raw, corrected = [], []
    for i, j in pairs:
        diff = float(groups[i].mean() - groups[j].mean())
        se = math.sqrt(ms_within * (1.0 / groups[i].size + 1.0 / groups[j].size))
        t_stat = diff / se
        raw.append(student_t_two_sided_p(t_stat, df_within))
        corrected.append(studentized_range_sf(abs(t_stat) * math.sqrt(2.0), k, df_within))
    return _build(pairs, labels, raw, corrected, "Tukey HSD")


def dunnett_posthoc(
    samples: Sequence[Sequence[float]],
    labels: Optional[Sequence[str]] = None,
    control_index: int = 0,
) -> List[PostHocComparison]:
    """Dunnett's many-to-one comparisons against a control group.

    Produces ``k - 1`` comparisons (control, other) rather than all pairs.
    Corrected p-values come from the Dunnett (multivariate t) distribution;
    ``raw_p`` is the unadjusted pooled-variance t-test p-value.

    Raises:
        InvalidParameterError: If ``control_index`` is not a valid group index.
    """
    groups = as_groups(samples)
    k = len(groups)
    labels = _resolve_labels(labels, k)
    if isinstance(control_index, bool) or not isinstance(control_index, (int, np.integer)):
        raise InvalidParameterError(f"control_index must be an integer, got {control_index!r}.")
    if not 0 <= control_index < k:
        raise InvalidParameterError(
            f"control_index {control_index} is out of range for {k} groups."
        )
    c = int(control_index)
    ms_within, df_within = pooled_within_variance(groups)

    others = [i for i in range(k) if i != c]
    pairs = [(c, i) for i in others]
    raw = []
    for i in others:
        se = math.sqrt(ms_within * (1.0 / groups[c].size + 1.0 / groups[i].size))
        raw.append(student_t_two_sided_p(float(groups[c].mean() - groups[i].mean()) / se, df_within))
    corrected = dunnett_p_values(groups[c], [groups[i] for i in others])
    return _build(pairs, labels, raw, corrected, "Dunnett")


def friedman_posthoc(
    samples: Sequence[Sequence[float]], labels: Optional[Sequence[str]] = None
) -> List[PostHocComparison]:
    """Pairwise Wilcoxon signed-rank tests, Bonferroni-corrected by ``k(k-1)/2``."""
    groups = as_groups(samples)
    sizes = [g.size for g in groups]
    if len(set(sizes)) != 1:
        raise UnequalSampleSizeError(
            f"Friedman post-hoc requires equal group sizes, got {sizes}."
        )
    labels = _resolve_labels(labels, len(groups))
    pairs = list(combinations(range(len(groups)), 2))
    raw = [wilcoxon_signed_rank(groups[i], groups[j]).p_value for i, j in pairs]
    return _build(pairs, labels, raw, adjust_p_values(raw, "bonferroni"), "Wilcoxon + Bonferroni")
