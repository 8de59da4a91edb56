"""Provide correlation and straight-line regression utilities.

This module supports:
- Pearson and Spearman correlation with t-distribution p-values,
- ordinary least-squares fits with slope/intercept standard errors, and
- pointwise confidence or prediction bands evaluated from a stored fit.
"""

from __future__ import annotations

import math
from typing import Dict, Sequence, Tuple

import numpy as np

from .descriptive import as_sample, midranks
from .distributions import student_t_critical, student_t_two_sided_p
from .errors import InsufficientDataError, InvalidParameterError, UnequalSampleSizeError
from .results import CorrelationResult, RegressionResult, SpearmanResult

MIN_POINTS = 3


def _paired_xy(x: Sequence[float], y: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    x_arr = as_sample(x, "x")
    y_arr = as_sample(y, "y")
    if x_arr.size != y_arr.size:
        raise UnequalSampleSizeError(
            f"x and y must have the same length, got {x_arr.size} and {y_arr.size}."
        )
    if x_arr.size < MIN_POINTS:
        raise InsufficientDataError(
            f"At least {MIN_POINTS} paired observations are required, got {x_arr.size}."
        )
    return x_arr, y_arr


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> CorrelationResult:
    """Pearson product-moment correlation.

    Args:
        x (Sequence[float]): First variable.
        y (Sequence[float]): Second variable, paired with ``x``.

    Returns:
        CorrelationResult: ``r``, two-sided p-value from
        ``t = r * sqrt(df / (1 - r^2))`` with ``df = n - 2``, and ``n``.

    Raises:
        UnequalSampleSizeError: If ``x`` and ``y`` differ in length.
        InsufficientDataError: If ``n < 3`` or either variable is constant.

    Note:
        A perfect correlation (``|r| = 1``) has an infinite t statistic and a
        p-value of 0.
    """
    x_arr, y_arr = _paired_xy(x, y)
    n = int(x_arr.size)
    dx = x_arr - x_arr.mean()
    dy = y_arr - y_arr.mean()
    ss_xx = float(np.sum(dx**2))
    ss_yy = float(np.sum(dy**2))
    if ss_xx <= 0 or ss_yy <= 0:
        raise InsufficientDataError("Correlation is undefined for a constant variable.")

    r = float(np.clip(np.sum(dx * dy) / math.sqrt(ss_xx * ss_yy), -1.0, 1.0))
    df = n - 2
    denom = 1.0 - r * r
    t_stat = math.copysign(math.inf, r) if denom <= 0 else r * math.sqrt(df / denom)
    return CorrelationResult(r=r, p_value=student_t_two_sided_p(t_stat, df), n=n, t=t_stat, df=df)


def spearman_correlation(x: Sequence[float], y: Sequence[float]) -> SpearmanResult:
    """Spearman rank correlation: Pearson ``r`` on midranks, same df convention."""
    x_arr, y_arr = _paired_xy(x, y)
    res = pearson_correlation(midranks(x_arr), midranks(y_arr))
    return SpearmanResult(rho=res.r, p_value=res.p_value, n=res.n)


def linear_regression(x: Sequence[float], y: Sequence[float]) -> RegressionResult:
    """Fit an ordinary least-squares straight line.

    Args:
        x (Sequence[float]): Independent variable.
        y (Sequence[float]): Dependent variable, paired with ``x``.

    Returns:
        RegressionResult: Slope, intercept, ``r_squared``, residual standard
        error ``sqrt(SSE / (n - 2))``, standard errors of slope and intercept,
        two-sided p-value for the slope, ``df = n - 2``, ``mean_x``,
        ``ss_xx = sum((x - mean_x)^2)`` and ``n``.

    Raises:
        UnequalSampleSizeError: If ``x`` and ``y`` differ in length.
        InsufficientDataError: If there are fewer than three points or either
            variable has no variance.

    Note:
        ``mean_x`` and ``ss_xx`` are returned so that band widths can be
        evaluated later by :func:`confidence_band` without refitting.
    """
    x_arr, y_arr = _paired_xy(x, y)
    n = int(x_arr.size)
    xbar = float(np.mean(x_arr))
    ybar = float(np.mean(y_arr))
    ssxx = float(np.sum((x_arr - xbar) ** 2))
    if ssxx <= 0:
        raise InsufficientDataError("Insufficient x variance for regression.")
    sst = float(np.sum((y_arr - ybar) ** 2))
    if sst <= 0:
        raise InsufficientDataError("Insufficient y variance for regression.")

    m = float(np.sum((x_arr - xbar) * (y_arr - ybar))) / ssxx
    b = ybar - m * xbar
    resid = y_arr - (m * x_arr + b)
    sse = float(np.sum(resid**2))
    r2 = 1.0 - sse / sst

    dof = n - 2
    residual_se = math.sqrt(sse / dof)
    se_m = residual_se / math.sqrt(ssxx)
    se_b = residual_se * math.sqrt(1.0 / n + xbar**2 / ssxx)
    t_m = m / se_m if se_m > 0 else math.copysign(math.inf, m)

    return RegressionResult(
        slope=m,
        intercept=b,
        r_squared=r2,
        residual_se=residual_se,
        slope_se=se_m,
        intercept_se=se_b,
        slope_p=student_t_two_sided_p(t_m, dof),
        df=dof,
        mean_x=xbar,
        ss_xx=ssxx,
        n=n,
    )


def confidence_band(
    fit: RegressionResult,
    x: Sequence[float],
    level: float = 0.95,
    kind: str = "mean",
) -> Dict[str, np.ndarray]:
    """Evaluate a pointwise band around a fitted line.

    Args:
        fit (RegressionResult): Output of :func:`linear_regression`.
        x (Sequence[float]): Points at which to evaluate the band.
        level (float): Confidence level in ``(0, 1)``. Defaults to ``0.95``.
        kind (str): ``"mean"`` for the confidence band of the fitted mean,
            ``se(x) = residual_se * sqrt(1/n + (x - mean_x)^2 / ss_xx)``, or
            ``"prediction"`` for a single new observation (adds 1 under the
            square root).

    Returns:
        dict[str, numpy.ndarray]: ``x``, ``fit``, ``lower`` and ``upper``.

    Raises:
        InvalidParameterError: If ``level`` or ``kind`` is invalid.
    """
    if not 0.0 < level < 1.0:
        raise InvalidParameterError(f"level must be in (0, 1), got {level}.")
    if kind not in ("mean", "prediction"):
        raise InvalidParameterError(f"kind must be 'mean' or 'prediction', got {kind!r}.")

    x_arr = np.asarray(x, dtype=float)
    extra = 1.0 if kind == "prediction" else 0.0
    se = fit.residual_se * np.sqrt(extra + 1.0 / fit.n + (x_arr - fit.mean_x) ** 2 / fit.ss_xx)
    margin = student_t_critical(level, fit.df) * se
    yhat = fit.slope * x_arr + fit.intercept
    return {"x": x_arr, "fit": yhat, "lower": yhat - margin, "upper": yhat + margin}
