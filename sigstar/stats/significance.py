"""Star labels for p-values, shared by every test in the engine."""

from __future__ import annotations

DEFAULT_ALPHA = 0.05

# (upper bound, label), checked in order.
SIGNIFICANCE_LEVELS: tuple[tuple[float, str], ...] = (
    (0.001, "***"),
    (0.01, "**"),
    (0.05, "*"),
)


def significance_label(p_value: float) -> str:
    """Return ``***``, ``**``, ``*`` or ``ns`` for a p-value.

    Thresholds are strict: ``p < 0.001`` is ``***``, ``p < 0.01`` is ``**``,
    ``p < 0.05`` is ``*`` and anything else is ``ns``.
    """
    for bound, label in SIGNIFICANCE_LEVELS:
        if p_value < bound:
            return label
    return "ns"


def is_significant(p_value: float, alpha: float = DEFAULT_ALPHA) -> bool:
    return bool(p_value < alpha)
