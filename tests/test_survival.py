import math

import pytest
from scipy import stats as scipy_stats

from sigstar.stats import distributions
from sigstar.stats.errors import InsufficientDataError, InvalidParameterError
from sigstar.stats.survival import (
    KM_CONFIDENCE_Z,
    Subject,
    at_risk_table,
    compute_km,
    compute_median,
    group_subjects,
    log_rank_test,
)

SCENARIO = [
    Subject(5, 1, "A"),
    Subject(8, 0, "A"),
    Subject(3, 1, "B"),
    Subject(9, 1, "B"),
]


def _steps(curve):
    return [(s.time, s.survival, s.n_risk, s.n_event, s.n_censor) for s in curve]


class TestKaplanMeier:
    def test_reference_scenario(self):
        grouped = group_subjects(SCENARIO)
        assert list(grouped) == ["A", "B"]

        curve_a = compute_km(grouped["A"])
        assert _steps(curve_a) == [
            (0.0, 1.0, 2, 0, 0),
            (5.0, 0.5, 2, 1, 0),
            (8.0, 0.5, 1, 0, 1),
        ]
        curve_b = compute_km(grouped["B"])
        assert _steps(curve_b) == [
            (0.0, 1.0, 2, 0, 0),
            (3.0, 0.5, 2, 1, 0),
            (9.0, 0.0, 1, 1, 0),
        ]

    def test_no_censoring_matches_empirical_survival(self):
        times = [1, 2, 2, 3, 5, 5, 8]
        curve = compute_km([Subject(t, 1) for t in times])
        assert curve[0].survival == 1.0
        for step in curve[1:]:
            expected = sum(1 for t in times if t > step.time) / len(times)
            assert step.survival == pytest.approx(expected)

    def test_survival_is_non_increasing(self):
        subjects = [Subject(t, e) for t, e in [(2, 1), (3, 0), (3, 1), (4, 0), (6, 1), (7, 0), (9, 1), (9, 0)]]
        curve = compute_km(subjects)
        survival = [s.survival for s in curve]
        assert survival[0] == 1.0
        assert all(b <= a for a, b in zip(survival, survival[1:]))
        assert all(0.0 <= s.ci_lower <= s.survival <= s.ci_upper <= 1.0 for s in curve)

    def test_greenwood_interval(self):
        curve = compute_km([Subject(t, 1) for t in (1, 2, 3, 4, 5)])
        step = curve[1]
        se = 0.8 * math.sqrt(1.0 / (5 * 4))
        assert step.survival == pytest.approx(0.8)
        assert step.ci_lower == pytest.approx(0.8 - KM_CONFIDENCE_Z * se)
        assert step.ci_upper == 1.0

        step2 = curve[2]
        se2 = 0.6 * math.sqrt(1.0 / 20 + 1.0 / 12)
        assert step2.ci_lower == pytest.approx(0.6 - KM_CONFIDENCE_Z * se2)
        assert step2.ci_upper == pytest.approx(min(1.0, 0.6 + KM_CONFIDENCE_Z * se2))

    def test_censor_only_step_keeps_previous_interval(self):
        curve = compute_km([Subject(1, 1), Subject(2, 1), Subject(3, 0), Subject(4, 1), Subject(6, 0)])
        event_step, censor_step = curve[2], curve[3]
        assert censor_step.n_event == 0 and censor_step.n_censor == 1
        assert censor_step.survival == event_step.survival
        assert (censor_step.ci_lower, censor_step.ci_upper) == (event_step.ci_lower, event_step.ci_upper)

    def test_last_subject_event_drops_to_zero(self):
        curve = compute_km([Subject(2, 1), Subject(4, 1)])
        assert curve[-1].survival == 0.0
        assert curve[-1].ci_lower == 0.0
        assert curve[-1].ci_upper == 0.0

    def test_invalid_subjects(self):
        with pytest.raises(InsufficientDataError):
            compute_km([])
        with pytest.raises(InvalidParameterError, match="Event"):
            Subject(1.0, 2)
        with pytest.raises(InvalidParameterError, match=">= 0"):
            Subject(-1.0, 1)


def test_median_survival():
    curve = compute_km([Subject(5, 1), Subject(8, 0)])
    assert compute_median(curve) == 5.0
    never = compute_km([Subject(1, 1), Subject(2, 0), Subject(3, 0), Subject(4, 0)])
    assert compute_median(never) is None


def test_group_subjects_requires_labels():
    with pytest.raises(InvalidParameterError, match="no group label"):
        group_subjects([Subject(1, 1, "A"), Subject(2, 0)])


def test_at_risk_table():
    table = at_risk_table(group_subjects(SCENARIO), [0, 5, 6, 8, 10])
    assert [e.n_risk for e in table["A"]] == [2, 2, 1, 1, 0]
    assert [e.n_risk for e in table["B"]] == [2, 1, 1, 1, 0]
    assert table["A"][2].time == 6.0


class TestLogRank:
    def test_hand_computed_statistic(self):
        res = log_rank_test(group_subjects(SCENARIO))
        assert res.observed == {"A": 1.0, "B": 2.0}
        assert res.expected["A"] == pytest.approx(7.0 / 6.0)
        assert res.expected["B"] == pytest.approx(11.0 / 6.0)
        assert res.chi2 == pytest.approx(3.0 / 77.0)
        assert res.df == 1
        assert res.p_value == pytest.approx(scipy_stats.chi2.sf(3.0 / 77.0, 1))

    def test_identical_groups(self):
        data = [(2, 1), (4, 0), (5, 1), (7, 1)]
        grouped = {
            "x": [Subject(t, e) for t, e in data],
            "y": [Subject(t, e) for t, e in data],
        }
        res = log_rank_test(grouped)
        assert res.chi2 == pytest.approx(0.0, abs=1e-12)
        assert res.p_value == pytest.approx(1.0)

    def test_no_events(self):
        res = log_rank_test({"x": [Subject(3, 0)], "y": [Subject(4, 0)], "z": [Subject(1, 0)]})
        assert res.chi2 == 0.0
        assert res.p_value == 1.0
        assert res.df == 2

    def test_group_requirements(self):
        with pytest.raises(InsufficientDataError, match="2 groups"):
            log_rank_test({"x": [Subject(1, 1)]})
        with pytest.raises(InsufficientDataError, match="'y'"):
            log_rank_test({"x": [Subject(1, 1)], "y": []})

    def test_fallback_without_scipy(self, monkeypatch):
        monkeypatch.setattr(distributions, "HAVE_SCIPY", False)
        with pytest.warns(RuntimeWarning):
            res = log_rank_test(group_subjects(SCENARIO))
        assert res.p_value == pytest.approx(distributions.wilson_hilferty_chi2_sf(3.0 / 77.0, 1))
