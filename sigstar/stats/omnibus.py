"""Omnibus tests across k groups: one-way ANOVA, Kruskal-Wallis and Friedman.

With exactly two groups these functions still compute their statistic. Falling
back to the matching two-sample test is left to the caller
(:func:`sigstar.analysis.run_group_comparison`).
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np

from .descriptive import as_sample, midranks, tie_sum
from .distributions import chi2_sf, f_sf
from .errors import InsufficientDataError, UnequalSampleSizeError
from .results import AnovaResult, FriedmanResult, KruskalWallisResult


def as_groups(samples: Sequence[Sequence[float]], min_groups: int = 2) -> List[np.ndarray]:
    """Validate a list of samples; every group must be non-empty and finite."""
    if len(samples) < min_groups:
        raise InsufficientDataError(
            f"At least {min_groups} groups are required, got {len(samples)}."
        )
    return [as_sample(s, f"group {i + 1}") for i, s in enumerate(samples)]


def pooled_within_variance(groups: Sequence[np.ndarray]) -> Tuple[float, int]:
    """Return ``(MS_within, df_within)`` pooled across groups.

    Raises:
        InsufficientDataError: If ``df_within`` is not positive or the pooled
            variance is zero.
    """
    n_total = sum(g.size for g in groups)
    df_within = n_total - len(groups)
    if df_within <= 0:
        raise InsufficientDataError(
            f"Within-group degrees of freedom must be positive, got {df_within}."
        )
    ss_within = float(sum(np.sum((g - g.mean()) ** 2) for g in groups))
    ms_within = ss_within / df_within
    if ms_within <= 0:
        raise InsufficientDataError("Within-group variance is zero.")
    return ms_within, df_within


def one_way_anova(samples: Sequence[Sequence[float]]) -> AnovaResult:
    """Classic between/within sum-of-squares one-way ANOVA.

    Single-observation groups are allowed as long as the total within-group
    degrees of freedom ``N - k`` stay positive.

    Args:
        samples (Sequence[Sequence[float]]): One sample per group (k >= 2).

    Returns:
        AnovaResult: ``F = MS_between / MS_within`` with ``(k - 1, N - k)``
        degrees of freedom.

    Raises:
        InsufficientDataError: Fewer than two groups, ``N - k <= 0`` or zero
            within-group variance.
    """
    groups = as_groups(samples)
    ms_within, df_within = pooled_within_variance(groups)
    grand_mean = float(np.mean(np.concatenate(groups)))
    ss_between = float(sum(g.size * (g.mean() - grand_mean) ** 2 for g in groups))
    df_between = len(groups) - 1
    f_stat = (ss_between / df_between) / ms_within
    return AnovaResult(
        f=f_stat,
        df_between=df_between,
        df_within=df_within,
        p_value=f_sf(f_stat, df_between, df_within),
    )


def kruskal_wallis(samples: Sequence[Sequence[float]]) -> KruskalWallisResult:
    """Kruskal-Wallis H test with the standard tie correction."""
    groups = as_groups(samples)
    combined = np.concatenate(groups)
    n = combined.size
    ranks = midranks(combined)

    h = 0.0
    start = 0
    for g in groups:
        r_sum = float(ranks[start:start + g.size].sum())
        h += r_sum**2 / g.size
        start += g.size
    h = 12.0 / (n * (n + 1)) * h - 3.0 * (n + 1)

    correction = 1.0 - tie_sum(combined) / (n**3 - n)
    if correction <= 0:
        raise InsufficientDataError("Kruskal-Wallis is undefined when all observations are tied.")
    h = max(h / correction, 0.0)
    df = len(groups) - 1
    return KruskalWallisResult(h=h, df=df, p_value=chi2_sf(h, df))


def friedman_test(samples: Sequence[Sequence[float]]) -> FriedmanResult:
    """Friedman rank test for k matched groups.

    ``samples[j][i]`` is the observation of block (subject) ``i`` under
    condition ``j``. Values are ranked within each block (midranks for ties)
    and the statistic is divided by the usual tie-correction factor.

    Raises:
        UnequalSampleSizeError: If the groups differ in length.
        InsufficientDataError: Fewer than two groups, fewer than two blocks, or
            every block completely tied.
    """
    groups = as_groups(samples)
    sizes = [g.size for g in groups]
    if len(set(sizes)) != 1:
        raise UnequalSampleSizeError(
            f"Friedman test requires equal group sizes, got {sizes}."
        )
    n = sizes[0]
    if n < 2:
        raise InsufficientDataError(f"Friedman test needs at least 2 observations per group, got {n}.")
    k = len(groups)

    table = np.column_stack(groups)
    ranks = np.vstack([midranks(row) for row in table])
    ties = sum(tie_sum(row) for row in table)
    rank_sums = ranks.sum(axis=0)

    q = 12.0 / (n * k * (k + 1)) * float(np.sum(rank_sums**2)) - 3.0 * n * (k + 1)
    correction = 1.0 - ties / (n * k * (k * k - 1))
    if correction <= 0:
        raise InsufficientDataError("Friedman test is undefined when every block is fully tied.")
    q = max(q / correction, 0.0)
    df = k - 1
    return FriedmanResult(q=q, df=df, n=n, p_value=chi2_sf(q, df))
