"""Kaplan-Meier estimation, median survival, at-risk counts and the log-rank test.

Subjects are ``(time, event)`` records: ``event=1`` means the outcome occurred
at ``time``, ``event=0`` means the subject was censored there.

Key Features:
    - Curves start with a synthetic ``(0, 1.0)`` anchor step.
    - One step per distinct time. Censor-only times produce a step with
      unchanged survival and confidence limits so censor ticks can be drawn.
    - 95% pointwise limits ``S +/- 1.96 * S * sqrt(G)`` where ``G`` is the
      Greenwood sum, clamped to ``[0, 1]``.
"""

from __future__ import annotations

import math
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .distributions import chi2_sf
from .errors import InsufficientDataError, InvalidParameterError
from .results import LogRankResult, RiskTableEntry, SurvivalStep

KM_CONFIDENCE_Z = 1.96
MEDIAN_SURVIVAL = 0.5


@dataclass(frozen=True)
class Subject:
    """One survival observation. ``group`` is only used by :func:`group_subjects`."""

    time: float
    event: int
    group: Optional[str] = None

    def __post_init__(self):
        if not math.isfinite(self.time) or self.time < 0:
            raise InvalidParameterError(f"Survival time must be finite and >= 0, got {self.time!r}.")
        if self.event not in (0, 1):
            raise InvalidParameterError(f"Event must be 0 or 1, got {self.event!r}.")


def _tally(subjects: Sequence[Subject]) -> "OrderedDict[float, List[int]]":
    table: "OrderedDict[float, List[int]]" = OrderedDict()
    for s in sorted(subjects, key=lambda s: s.time):
        counts = table.setdefault(float(s.time), [0, 0])
        counts[0 if s.event == 1 else 1] += 1
    return table


def compute_km(subjects: Sequence[Subject]) -> List[SurvivalStep]:
    """Kaplan-Meier product-limit curve for one group.

    Args:
        subjects (Sequence[Subject]): Observations of a single group.

    Returns:
        list[SurvivalStep]: The time-0 anchor followed by one step per
        distinct observed time, in ascending time order.

    Raises:
        InsufficientDataError: If ``subjects`` is empty.
    """
    if len(subjects) == 0:
        raise InsufficientDataError("Kaplan-Meier needs at least one subject.")

    n_risk = len(subjects)
    survival = 1.0
    greenwood = 0.0
    curve = [SurvivalStep(0.0, 1.0, n_risk, 0, 0, 1.0, 1.0)]

    for t, (d, c) in _tally(subjects).items():
        if d > 0:
            survival *= 1.0 - d / n_risk
            if n_risk > d:
                greenwood += d / (n_risk * (n_risk - d))
            se = survival * math.sqrt(greenwood)
            curve.append(
                SurvivalStep(
                    time=t,
                    survival=survival,
                    n_risk=n_risk,
                    n_event=d,
                    n_censor=c,
                    ci_lower=max(0.0, survival - KM_CONFIDENCE_Z * se),
                    ci_upper=min(1.0, survival + KM_CONFIDENCE_Z * se),
                )
            )
        else:
            prev = curve[-1]
            curve.append(SurvivalStep(t, survival, n_risk, 0, c, prev.ci_lower, prev.ci_upper))
        n_risk -= d + c
    return curve


def compute_median(curve: Sequence[SurvivalStep]) -> Optional[float]:
    """Time of the first step (after the anchor) with survival <= 0.5, else ``None``."""
    for step in curve[1:]:
        if step.survival <= MEDIAN_SURVIVAL:
            return step.time
    return None


def group_subjects(subjects: Iterable[Subject]) -> Dict[str, List[Subject]]:
    """Split subjects by ``group`` label, keeping first-seen group order.

    Raises:
        InvalidParameterError: If a subject has no group label.
    """
    grouped: Dict[str, List[Subject]] = {}
    for s in subjects:
        if s.group is None:
            raise InvalidParameterError(
                f"Subject at time {s.time} has no group label; label every subject to group them."
            )
        grouped.setdefault(str(s.group), []).append(s)
    return grouped


def at_risk_table(
    grouped: Mapping[str, Sequence[Subject]], timepoints: Sequence[float]
) -> Dict[str, List[RiskTableEntry]]:
    """Number of subjects still under observation (``time >= t``) per group."""
    return {
        label: [RiskTableEntry(float(t), sum(1 for s in subs if s.time >= t)) for t in timepoints]
        for label, subs in grouped.items()
    }


def log_rank_test(grouped: Mapping[str, Sequence[Subject]]) -> LogRankResult:
    """Log-rank (Mantel-Cox) test across two or more groups.

    At each distinct event time pooled over groups, a group's expected event
    count is its share of the subjects at risk times the total number of
    events. ``chi2 = sum((O - E)^2 / E)`` over groups with ``E > 0`` and
    ``df = k - 1``.

    Args:
        grouped (Mapping[str, Sequence[Subject]]): Subjects per group label.

    Returns:
        LogRankResult: Statistic, p-value and per-group observed and expected
        event counts. With no events at all, ``chi2 = 0`` and ``p = 1``.

    Raises:
        InsufficientDataError: Fewer than two groups, or an empty group.

    Note:
        The p-value comes from :func:`sigstar.stats.distributions.chi2_sf`,
        which falls back to the Wilson-Hilferty approximation (with a
        ``RuntimeWarning``) when scipy is unavailable.
    """
    labels = [str(label) for label in grouped]
    if len(labels) < 2:
        raise InsufficientDataError(f"Log-rank test needs at least 2 groups, got {len(labels)}.")
    for label, subs in grouped.items():
        if len(subs) == 0:
            raise InsufficientDataError(f"Group {label!r} has no subjects.")

    groups = [list(subs) for subs in grouped.values()]
    observed = dict.fromkeys(labels, 0.0)
    expected = dict.fromkeys(labels, 0.0)
    df = len(labels) - 1

    event_times = sorted({s.time for subs in groups for s in subs if s.event == 1})
    if not event_times:
        return LogRankResult(chi2=0.0, p_value=1.0, df=df, observed=observed, expected=expected)

    for t in event_times:
        at_risk = [sum(1 for s in subs if s.time >= t) for subs in groups]
        events = [sum(1 for s in subs if s.time == t and s.event == 1) for subs in groups]
        total_risk = sum(at_risk)
        total_events = sum(events)
        for label, n_g, d_g in zip(labels, at_risk, events):
            observed[label] += d_g
            expected[label] += n_g / total_risk * total_events

    chi2 = sum((observed[g] - expected[g]) ** 2 / expected[g] for g in labels if expected[g] > 0)
    return LogRankResult(chi2=chi2, p_value=chi2_sf(chi2, df), df=df, observed=observed, expected=expected)
