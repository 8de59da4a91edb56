"""Descriptive statistics and rank helpers shared by the engine.

Every function validates its input through :func:`as_sample`, so empty or
non-finite samples fail before any arithmetic happens.
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np

from .errors import InsufficientDataError, InvalidParameterError


def as_sample(values: Sequence[float], name: str = "sample", min_size: int = 1) -> np.ndarray:
    """Convert ``values`` to a validated 1-D float array.

    Args:
        values (Sequence[float]): Observations. Missing values must already be
            removed by the caller.
        name (str): Label used in error messages.
        min_size (int): Minimum number of observations required.

    Returns:
        numpy.ndarray: Float copy of the observations.

    Raises:
        InsufficientDataError: If the sample is empty or shorter than
            ``min_size``.
        InvalidParameterError: If the sample is not one-dimensional or holds
            NaN/inf values.
    """
    arr = np.array(values, dtype=float)
    if arr.ndim != 1:
        raise InvalidParameterError(f"{name} must be one-dimensional, got shape {arr.shape}.")
    if arr.size == 0:
        raise InsufficientDataError(f"{name} is empty.")
    if not np.all(np.isfinite(arr)):
        raise InvalidParameterError(f"{name} contains non-finite values.")
    if arr.size < min_size:
        raise InsufficientDataError(
            f"{name} needs at least {min_size} observations, got {arr.size}."
        )
    return arr


def mean(values: Sequence[float]) -> float:
    return float(np.mean(as_sample(values)))


def median(values: Sequence[float]) -> float:
    return float(np.median(as_sample(values)))


def standard_deviation(values: Sequence[float]) -> float:
    """Sample standard deviation (``n - 1`` denominator); needs ``n >= 2``."""
    arr = as_sample(values, min_size=2)
    return float(np.std(arr, ddof=1))


def standard_error_of_mean(values: Sequence[float]) -> float:
    """Standard error of the mean, ``sd / sqrt(n)``."""
    arr = as_sample(values, min_size=2)
    return standard_deviation(arr) / math.sqrt(arr.size)


def quantile(values: Sequence[float], p: float) -> float:
    """Return the ``p``-quantile by linear interpolation between order statistics.

    Raises:
        InvalidParameterError: If ``p`` lies outside ``[0, 1]``.
    """
    if not 0.0 <= p <= 1.0:
        raise InvalidParameterError(f"Quantile probability must be in [0, 1], got {p}.")
    return float(np.quantile(as_sample(values), p))


def quartiles(values: Sequence[float]) -> Tuple[float, float, float]:
    """Return ``(q1, median, q3)`` using the median-of-halves rule.

    For odd ``n`` the median itself is excluded from both halves. This is the
    hinge convention used by the box-plot layer, which differs slightly from
    :func:`quantile` interpolation.
    """
    arr = np.sort(as_sample(values))
    n = arr.size
    q2 = float(np.median(arr))
    if n == 1:
        return q2, q2, q2
    mid = n // 2
    lower = arr[:mid]
    upper = arr[mid:] if n % 2 == 0 else arr[mid + 1:]
    return float(np.median(lower)), q2, float(np.median(upper))


def midranks(values: Sequence[float]) -> np.ndarray:
    """Rank observations from 1, giving tied values the average of their ranks."""
    arr = as_sample(values)
    _, inverse, counts = np.unique(arr, return_inverse=True, return_counts=True)
    upper = np.cumsum(counts)
    avg = upper - (counts - 1) / 2.0
    return avg[np.ravel(inverse)]


def tie_sum(values: Sequence[float]) -> float:
    """Return ``sum(t**3 - t)`` over groups of tied values."""
    _, counts = np.unique(np.asarray(values, dtype=float), return_counts=True)
    counts = counts.astype(float)
    return float(np.sum(counts**3 - counts))
