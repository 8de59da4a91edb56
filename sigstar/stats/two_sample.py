"""Two-sample hypothesis tests: Welch/paired t, Mann-Whitney U, Wilcoxon signed-rank.

Rank-based p-values:
- Mann-Whitney U uses the exact permutation distribution when both samples
  have fewer than :data:`MWU_EXACT_MAX` observations and there are no ties,
  otherwise the normal approximation with tie-corrected variance and a 0.5
  continuity correction.
- Wilcoxon signed-rank uses the exact distribution for at most
  :data:`WILCOXON_EXACT_MAX` non-zero differences without ties, otherwise the
  same normal approximation scheme.
"""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Sequence

import numpy as np

from .descriptive import as_sample, midranks, tie_sum
from .distributions import normal_two_sided_p, student_t_two_sided_p
from .errors import InsufficientDataError, UnequalSampleSizeError
from .results import MannWhitneyResult, TTestResult, WilcoxonResult

MWU_EXACT_MAX = 20
WILCOXON_EXACT_MAX = 25


def _paired_arrays(a: Sequence[float], b: Sequence[float]) -> tuple[np.ndarray, np.ndarray]:
    x = as_sample(a, "sample A")
    y = as_sample(b, "sample B")
    if x.size != y.size:
        raise UnequalSampleSizeError(
            f"Paired test requires equal sample sizes, got {x.size} and {y.size}."
        )
    return x, y


def welch_t_test(a: Sequence[float], b: Sequence[float]) -> TTestResult:
    """Unpaired t-test without the equal-variance assumption.

    Args:
        a (Sequence[float]): First sample, at least two observations.
        b (Sequence[float]): Second sample, at least two observations.

    Returns:
        TTestResult: ``t = (mean_a - mean_b) / sqrt(v_a/n_a + v_b/n_b)`` with
        Welch-Satterthwaite degrees of freedom and a two-sided p-value.

    Raises:
        InsufficientDataError: If either sample has fewer than two observations
            or both samples have zero variance.
    """
    x = as_sample(a, "sample A", min_size=2)
    y = as_sample(b, "sample B", min_size=2)
    n1, n2 = x.size, y.size
    se1 = float(np.var(x, ddof=1)) / n1
    se2 = float(np.var(y, ddof=1)) / n2
    se_sq = se1 + se2
    if se_sq <= 0:
        raise InsufficientDataError("Welch t-test is undefined when both samples have zero variance.")

    t_stat = (float(np.mean(x)) - float(np.mean(y))) / math.sqrt(se_sq)
    df = se_sq**2 / (se1**2 / (n1 - 1) + se2**2 / (n2 - 1))
    return TTestResult(t=t_stat, df=float(df), p_value=student_t_two_sided_p(t_stat, df), paired=False)


def paired_t_test(a: Sequence[float], b: Sequence[float]) -> TTestResult:
    """Student t-test on the paired differences ``a - b`` (df = n - 1)."""
    x, y = _paired_arrays(a, b)
    d = x - y
    n = d.size
    if n < 2:
        raise InsufficientDataError(f"Paired t-test needs at least 2 pairs, got {n}.")
    sd = float(np.std(d, ddof=1))
    if sd == 0:
        raise InsufficientDataError("Paired t-test is undefined when all differences are equal.")
    t_stat = float(np.mean(d)) / (sd / math.sqrt(n))
    df = n - 1
    return TTestResult(t=t_stat, df=float(df), p_value=student_t_two_sided_p(t_stat, df), paired=True)


def t_test(a: Sequence[float], b: Sequence[float], paired: bool = False) -> TTestResult:
    """Dispatch to :func:`paired_t_test` or :func:`welch_t_test`."""
    if paired:
        return paired_t_test(a, b)
    return welch_t_test(a, b)


@lru_cache(maxsize=None)
def _u_distribution(n1: int, n2: int) -> np.ndarray:
    # counts[u] = number of orderings with U == u; c(m, n) = c(m-1, n) << n + c(m, n-1)
    if n1 == 0 or n2 == 0:
        counts = np.ones(1)
    else:
        counts = np.zeros(n1 * n2 + 1)
        left = _u_distribution(n1 - 1, n2)
        right = _u_distribution(n1, n2 - 1)
        counts[n2:n2 + left.size] += left
        counts[:right.size] += right
    counts.flags.writeable = False
    return counts


@lru_cache(maxsize=None)
def _signed_rank_distribution(n: int) -> np.ndarray:
    counts = np.zeros(n * (n + 1) // 2 + 1)
    counts[0] = 1.0
    for i in range(1, n + 1):
        counts[i:] = counts[i:] + counts[:-i]
    counts.flags.writeable = False
    return counts


def _lower_tail_two_sided(counts: np.ndarray, statistic: float) -> float:
    k = int(round(statistic))
    return float(min(1.0, 2.0 * counts[: k + 1].sum() / counts.sum()))


def mann_whitney_u(a: Sequence[float], b: Sequence[float]) -> MannWhitneyResult:
    """Mann-Whitney U test on two independent samples.

    Returns:
        MannWhitneyResult: ``u = min(U_a, U_b)``, two-sided p-value, the
        continuity-corrected ``z`` for the normal method and which method was
        used. When every observation is tied the result is ``p = 1``.
    """
    x = as_sample(a, "sample A")
    y = as_sample(b, "sample B")
    n1, n2 = x.size, y.size
    n = n1 + n2
    combined = np.concatenate([x, y])
    ranks = midranks(combined)

    r1 = float(ranks[:n1].sum())
    u1 = r1 - n1 * (n1 + 1) / 2.0
    u = min(u1, n1 * n2 - u1)

    ties = tie_sum(combined)
    if ties == float(n**3 - n):
        return MannWhitneyResult(u=u, p_value=1.0, z=0.0, method="normal")

    if ties == 0 and n1 < MWU_EXACT_MAX and n2 < MWU_EXACT_MAX:
        p = _lower_tail_two_sided(_u_distribution(n1, n2), u)
        return MannWhitneyResult(u=u, p_value=p, z=None, method="exact")

    mu = n1 * n2 / 2.0
    sigma = math.sqrt(n1 * n2 / 12.0 * ((n + 1) - ties / (n * (n - 1))))
    z = max(0.0, abs(u - mu) - 0.5) / sigma
    return MannWhitneyResult(u=u, p_value=normal_two_sided_p(z), z=z, method="normal")


def wilcoxon_signed_rank(a: Sequence[float], b: Sequence[float]) -> WilcoxonResult:
    """Wilcoxon signed-rank test on paired samples.

    Zero differences are dropped before ranking. ``w`` is the smaller of the
    positive and negative rank sums. If no non-zero differences remain the
    samples are identical and the result is ``w = 0``, ``p = 1``.

    Raises:
        UnequalSampleSizeError: If the samples differ in length.
    """
    x, y = _paired_arrays(a, b)
    d = x - y
    d = d[d != 0]
    n = int(d.size)
    if n == 0:
        return WilcoxonResult(w=0.0, p_value=1.0, n=0, z=None, method="exact")

    abs_d = np.abs(d)
    ranks = midranks(abs_d)
    w_plus = float(ranks[d > 0].sum())
    w_minus = float(ranks[d < 0].sum())
    w = min(w_plus, w_minus)

    ties = tie_sum(abs_d)
    if ties == 0 and n <= WILCOXON_EXACT_MAX:
        p = _lower_tail_two_sided(_signed_rank_distribution(n), w)
        return WilcoxonResult(w=w, p_value=p, n=n, z=None, method="exact")

    mu = n * (n + 1) / 4.0
    sigma = math.sqrt(n * (n + 1) * (2 * n + 1) / 24.0 - ties / 48.0)
    z = max(0.0, abs(w - mu) - 0.5) / sigma
    return WilcoxonResult(w=w, p_value=normal_two_sided_p(z), n=n, z=z, method="normal")
