"""
A Python package for the statistics behind scientific charts.

Runs hypothesis tests with significance stars, post-hoc comparisons,
correlation and regression, repeated-measures growth-curve analysis and
Kaplan-Meier survival analysis.

Modules:
    - stats: Pure numerical engine (tests, post-hoc, regression, survival).
    - analysis: Caller policies around the engine and result DataFrames.
    - reporting: p-value and test-result formatting.
    - output: Writes result tables to CSV.
    - cli: Command-line entry point.
"""

__version__ = "1.0.0"

from .analysis import (
    describe_groups,
    run_group_comparison,
    run_growth_analysis,
    run_survival_analysis,
)
from .reporting import format_p_value, significance_label
from .stats.errors import (
    InsufficientDataError,
    InvalidParameterError,
    StatsEngineError,
    UnequalSampleSizeError,
)
