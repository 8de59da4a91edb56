"""
Statistical engine for sigstar.

This subpackage provides the hypothesis tests, post-hoc procedures,
regression, repeated-measures and survival routines behind the charts. All
functions take plain numeric sequences and return immutable result records;
none of them perform I/O or logging.

Modules:
    descriptive:
        Sample validation, mean, median, standard deviation, SEM, quantiles,
        box-plot quartiles and midranks.

    two_sample:
        Welch and paired t-tests, Mann-Whitney U, Wilcoxon signed-rank.

    omnibus:
        One-way ANOVA, Kruskal-Wallis and Friedman tests across k groups.

    posthoc:
        Tukey HSD, Bonferroni, Holm-Bonferroni, Dunnett and Friedman
        post-hoc batches, plus the shared p-value adjustment.

    regression:
        Pearson and Spearman correlation, least-squares lines and
        confidence/prediction bands.

    repeated:
        Two-way (Group x Time) repeated-measures ANOVA and the gatekept
        per-timepoint post-hoc procedure for growth curves.

    survival:
        Kaplan-Meier curves with Greenwood confidence limits, median survival,
        at-risk tables and the log-rank test.

    distributions:
        Tail probabilities on top of scipy.stats, with a Wilson-Hilferty
        chi-square fallback when scipy is not installed.

Design Principle:
    This subpackage has no dependencies on the reporting or CLI modules.
    Errors are raised as subclasses of :class:`StatsEngineError`, itself a
    ``ValueError``.
"""

from .descriptive import (
    mean,
    median,
    midranks,
    quantile,
    quartiles,
    standard_deviation,
    standard_error_of_mean,
)
from .errors import (
    InsufficientDataError,
    InvalidParameterError,
    StatsEngineError,
    UnequalSampleSizeError,
)
from .omnibus import friedman_test, kruskal_wallis, one_way_anova
from .posthoc import (
    adjust_p_values,
    bonferroni_posthoc,
    dunnett_posthoc,
    friedman_posthoc,
    holm_bonferroni_posthoc,
    tukey_hsd_posthoc,
)
from .regression import (
    confidence_band,
    linear_regression,
    pearson_correlation,
    spearman_correlation,
)
from .repeated import (
    GrowthData,
    GrowthPostHocOptions,
    growth_post_hoc,
    timepoint_anova,
    two_way_repeated_measures_anova,
)
from .significance import DEFAULT_ALPHA, is_significant, significance_label
from .survival import (
    Subject,
    at_risk_table,
    compute_km,
    compute_median,
    group_subjects,
    log_rank_test,
)
from .two_sample import mann_whitney_u, paired_t_test, t_test, welch_t_test, wilcoxon_signed_rank

__all__ = [
    "mean",
    "median",
    "midranks",
    "quantile",
    "quartiles",
    "standard_deviation",
    "standard_error_of_mean",
    "InsufficientDataError",
    "InvalidParameterError",
    "StatsEngineError",
    "UnequalSampleSizeError",
    "friedman_test",
    "kruskal_wallis",
    "one_way_anova",
    "adjust_p_values",
    "bonferroni_posthoc",
    "dunnett_posthoc",
    "friedman_posthoc",
    "holm_bonferroni_posthoc",
    "tukey_hsd_posthoc",
    "confidence_band",
    "linear_regression",
    "pearson_correlation",
    "spearman_correlation",
    "GrowthData",
    "GrowthPostHocOptions",
    "growth_post_hoc",
    "timepoint_anova",
    "two_way_repeated_measures_anova",
    "DEFAULT_ALPHA",
    "is_significant",
    "significance_label",
    "Subject",
    "at_risk_table",
    "compute_km",
    "compute_median",
    "group_subjects",
    "log_rank_test",
    "mann_whitney_u",
    "paired_t_test",
    "t_test",
    "welch_t_test",
    "wilcoxon_signed_rank",
]
