"""Immutable result records returned by the engine.

Each hypothesis-test family has its own record type with its statistic under
its conventional name (``t``, ``u``, ``w``, ``f``, ``h``, ``q``). Callers that
handle several families can match on the type, or read the generic
``statistic`` and ``statistic_name`` attributes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Dict, Optional, Union

from .significance import DEFAULT_ALPHA, significance_label


class _PValueMixin:
    p_value: float

    @property
    def significance_label(self) -> str:
        return significance_label(self.p_value)

    @property
    def significant(self) -> bool:
        return self.p_value < DEFAULT_ALPHA


@dataclass(frozen=True)
class TTestResult(_PValueMixin):
    """Welch (unpaired) or paired Student t-test."""

    statistic_name: ClassVar[str] = "t"

    t: float
    df: float
    p_value: float
    paired: bool = False

    @property
    def statistic(self) -> float:
        return self.t


@dataclass(frozen=True)
class MannWhitneyResult(_PValueMixin):
    """Mann-Whitney U test; ``method`` is ``"exact"`` or ``"normal"``."""

    statistic_name: ClassVar[str] = "U"

    u: float
    p_value: float
    z: Optional[float] = None
    method: str = "normal"

    @property
    def statistic(self) -> float:
        return self.u


@dataclass(frozen=True)
class WilcoxonResult(_PValueMixin):
    """Wilcoxon signed-rank test; ``n`` counts the non-zero differences."""

    statistic_name: ClassVar[str] = "W"

    w: float
    p_value: float
    n: int
    z: Optional[float] = None
    method: str = "normal"

    @property
    def statistic(self) -> float:
        return self.w


@dataclass(frozen=True)
class AnovaResult(_PValueMixin):
    statistic_name: ClassVar[str] = "F"

    f: float
    df_between: int
    df_within: int
    p_value: float

    @property
    def statistic(self) -> float:
        return self.f


@dataclass(frozen=True)
class KruskalWallisResult(_PValueMixin):
    statistic_name: ClassVar[str] = "H"

    h: float
    df: int
    p_value: float

    @property
    def statistic(self) -> float:
        return self.h


@dataclass(frozen=True)
class FriedmanResult(_PValueMixin):
    """Friedman test; ``n`` is the number of blocks (matched subjects)."""

    statistic_name: ClassVar[str] = "χ²"

    q: float
    df: int
    n: int
    p_value: float

    @property
    def statistic(self) -> float:
        return self.q


HypothesisResult = Union[
    TTestResult,
    MannWhitneyResult,
    WilcoxonResult,
    AnovaResult,
    KruskalWallisResult,
    FriedmanResult,
]


@dataclass(frozen=True)
class PostHocComparison:
    """One pairwise comparison from a post-hoc batch."""

    group1_index: int
    group2_index: int
    group1_label: str
    group2_label: str
    raw_p: float
    corrected_p: float
    significant: bool
    significance_label: str
    method: str = ""


@dataclass(frozen=True)
class CorrelationResult(_PValueMixin):
    """Pearson product-moment correlation."""

    r: float
    p_value: float
    n: int
    t: float
    df: int


@dataclass(frozen=True)
class SpearmanResult(_PValueMixin):
    rho: float
    p_value: float
    n: int


@dataclass(frozen=True)
class RegressionResult:
    """Ordinary least-squares fit of ``y = slope * x + intercept``.

    ``mean_x`` and ``ss_xx`` are kept so that callers can evaluate pointwise
    confidence bands without refitting (see
    :func:`sigstar.stats.regression.confidence_band`).
    """

    slope: float
    intercept: float
    r_squared: float
    residual_se: float
    slope_se: float
    intercept_se: float
    slope_p: float
    df: int
    mean_x: float
    ss_xx: float
    n: int

    def predict(self, x: float) -> float:
        return self.slope * x + self.intercept


@dataclass(frozen=True)
class RMEffect(_PValueMixin):
    """One F-test of a repeated-measures ANOVA table."""

    f: float
    df1: int
    df2: int
    p_value: float
    ss: float


@dataclass(frozen=True)
class RepeatedMeasuresResult:
    """Two-way (Group x Time) repeated-measures ANOVA.

    ``ss_subjects`` (subjects within groups) and ``ss_error`` complete the
    decomposition of the total sum of squares together with the three effects.
    """

    group: RMEffect
    time: RMEffect
    interaction: RMEffect
    ss_subjects: float
    ss_error: float
    n_subjects: int


@dataclass(frozen=True)
class TimepointOmnibus:
    """Per-timepoint one-way ANOVA gatekeeper; ``tested`` is False when skipped."""

    timepoint: float
    f: Optional[float]
    p_value: Optional[float]
    significant: bool
    tested: bool = True


@dataclass(frozen=True)
class GrowthComparison:
    timepoint: float
    group1: str
    group2: str
    raw_p: float
    corrected_p: float
    significant: bool
    significance_label: str


@dataclass(frozen=True)
class SurvivalStep:
    """One step of a Kaplan-Meier curve."""

    time: float
    survival: float
    n_risk: int
    n_event: int
    n_censor: int
    ci_lower: float
    ci_upper: float


@dataclass(frozen=True)
class RiskTableEntry:
    time: float
    n_risk: int


@dataclass(frozen=True)
class LogRankResult(_PValueMixin):
    """Log-rank test across two or more survival groups."""

    chi2: float
    p_value: float
    df: int
    observed: Dict[str, float]
    expected: Dict[str, float]
