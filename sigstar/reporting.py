"""Format p-values and test results for tables and console summaries.

This module is used after numerical analysis to keep p-value presentation
consistent between printed summaries and exported CSV artifacts.
"""

from __future__ import annotations

import math
from typing import Iterable

import numpy as np
import pandas as pd

from .stats.results import (
    AnovaResult,
    FriedmanResult,
    KruskalWallisResult,
    MannWhitneyResult,
    TTestResult,
    WilcoxonResult,
)
from .stats.significance import significance_label

__all__ = [
    "add_formatted_p_columns",
    "format_p_value",
    "format_test_result",
    "significance_label",
]

SCIENTIFIC_BELOW = 0.001


def format_p_value(p_value: float) -> str:
    """Format a p-value for display.

    Args:
        p_value (float): Probability in ``[0, 1]``.

    Returns:
        str: Scientific notation with two decimals below 0.001
        (``"1.23e-04"``), otherwise four fixed decimals (``"0.0312"``).

    Raises:
        ValueError: If ``p_value`` is not a finite number.
    """
    p = float(p_value)
    if not math.isfinite(p):
        raise ValueError(f"p-value must be finite, got {p_value!r}")
    if p < SCIENTIFIC_BELOW:
        return f"{p:.2e}"
    return f"{p:.4f}"


def add_formatted_p_columns(
    df: pd.DataFrame,
    p_columns: Iterable[str],
    suffix: str = " (reported)",
) -> pd.DataFrame:
    """Add reporting-ready string columns for p-value columns.

    Args:
        df (pandas.DataFrame): Input numeric table.
        p_columns (Iterable[str]): Names of the p-value columns to format.
        suffix (str, optional): Suffix appended to generated reporting columns.
            Defaults to ``" (reported)"``.

    Returns:
        pandas.DataFrame: Copy of ``df`` with formatted string columns added.
        Missing p-values are reported as empty strings.

    Raises:
        KeyError: If a requested column is absent.

    Note:
        Original numeric columns are preserved for downstream computation.
    """
    out = df.copy()
    for col in p_columns:
        if col not in out.columns:
            raise KeyError(f"Missing p-value column '{col}' for reporting format.")
        values = pd.to_numeric(out[col], errors="coerce")
        out[f"{col}{suffix}"] = [
            format_p_value(v) if np.isfinite(v) else "" for v in values.to_numpy(dtype=float)
        ]
    return out


def format_test_result(result) -> str:
    """One-line summary of a hypothesis test, e.g. ``t = -5.0000, df = 8.00, p = 0.0011 **``."""
    parts = [f"{result.statistic_name} = {result.statistic:.4f}"]
    if isinstance(result, TTestResult):
        parts.append(f"df = {result.df:.2f}")
    elif isinstance(result, AnovaResult):
        parts.append(f"df = ({result.df_between}, {result.df_within})")
    elif isinstance(result, (KruskalWallisResult, FriedmanResult)):
        parts.append(f"df = {result.df}")
    elif isinstance(result, (MannWhitneyResult, WilcoxonResult)):
        parts.append(f"method = {result.method}")
    parts.append(f"p = {format_p_value(result.p_value)} {result.significance_label}")
    return ", ".join(parts)
