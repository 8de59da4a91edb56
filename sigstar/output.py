"""Write analysis result tables to reproducible CSV files.

This module is the output boundary between in-memory analysis and exported
tabular artifacts. p-value columns get a formatted ``(reported)`` companion
column; the numeric columns are written unchanged.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Mapping

import pandas as pd

from .reporting import add_formatted_p_columns
from .schema import COLUMNS

logger = logging.getLogger(__name__)

P_VALUE_COLUMNS = (COLUMNS.p_value, COLUMNS.raw_p, COLUMNS.corrected_p)


def save_tables(tables: Mapping[str, pd.DataFrame], output_dir: str = "output") -> Dict[str, str]:
    """Save result tables as ``<name>.csv`` files.

    Args:
        tables (Mapping[str, pandas.DataFrame]): Table name to DataFrame, as
            built by the ``*_table`` helpers of :mod:`sigstar.analysis`.
        output_dir (str): Directory where CSV outputs are written. Created if
            missing.

    Returns:
        dict[str, str]: Table name to the path written.
    """
    os.makedirs(output_dir, exist_ok=True)
    paths = {}
    for name, table in tables.items():
        path = os.path.join(output_dir, f"{name}.csv")
        p_cols = [c for c in P_VALUE_COLUMNS if c in table.columns]
        add_formatted_p_columns(table, p_cols).to_csv(path, index=False)
        logger.info("Saved %s to %s", name, path)
        paths[name] = path
    return paths
