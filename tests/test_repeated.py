import numpy as np
import pytest

from sigstar.stats.errors import (
    InsufficientDataError,
    InvalidParameterError,
    UnequalSampleSizeError,
)
from sigstar.stats.repeated import (
    GrowthData,
    GrowthPostHocOptions,
    growth_post_hoc,
    timepoint_anova,
    two_way_repeated_measures_anova,
)
from sigstar.stats.two_sample import welch_t_test


def _small_growth(**extra_subjects):
    subjects = {"s1": [1, 3], "s2": [2, 6], "s3": [4, 5], "s4": [6, 9]}
    group_map = {"A": ["s1", "s2"], "B": ["s3", "s4"]}
    for sid, (group, values) in extra_subjects.items():
        subjects[sid] = values
        group_map[group] = group_map[group] + [sid]
    return GrowthData(timepoints=[0, 7], groups=["A", "B"], subjects=subjects, group_map=group_map)


def _three_group_growth():
    # t=0: identical group means; t=1: clearly separated groups
    subjects = {
        "c1": [10, 10], "c2": [11, 11], "c3": [12, 12],
        "d1": [10.5, 20], "d2": [11.5, 21], "d3": [11, 22],
        "e1": [11, 30], "e2": [10, 31], "e3": [12, 32],
    }
    group_map = {"C": ["c1", "c2", "c3"], "D": ["d1", "d2", "d3"], "E": ["e1", "e2", "e3"]}
    return GrowthData(timepoints=[0, 1], groups=["C", "D", "E"], subjects=subjects, group_map=group_map)


class TestTwoWayRMAnova:
    def test_hand_computed_table(self):
        res = two_way_repeated_measures_anova(_small_growth())
        assert res.group.ss == pytest.approx(18.0)
        assert res.ss_subjects == pytest.approx(13.0)
        assert res.time.ss == pytest.approx(12.5)
        assert res.interaction.ss == pytest.approx(0.5)
        assert res.ss_error == pytest.approx(2.0)

        assert (res.group.df1, res.group.df2) == (1, 2)
        assert (res.time.df1, res.time.df2) == (1, 2)
        assert (res.interaction.df1, res.interaction.df2) == (1, 2)
        assert res.group.f == pytest.approx(36.0 / 13.0)
        assert res.time.f == pytest.approx(12.5)
        assert res.interaction.f == pytest.approx(0.5)
        assert res.n_subjects == 4

    def test_sums_of_squares_decompose_total(self):
        rng = np.random.default_rng(3)
        subjects = {f"s{i}": list(rng.normal(10 + i % 3, 1.0, size=4)) for i in range(11)}
        group_map = {
            "G1": [f"s{i}" for i in range(0, 4)],
            "G2": [f"s{i}" for i in range(4, 7)],
            "G3": [f"s{i}" for i in range(7, 11)],
        }
        growth = GrowthData([0, 1, 2, 3], ["G1", "G2", "G3"], subjects, group_map)
        res = two_way_repeated_measures_anova(growth)

        values = np.array(list(subjects.values()))
        ss_total = float(np.sum((values - values.mean()) ** 2))
        parts = res.group.ss + res.ss_subjects + res.time.ss + res.interaction.ss + res.ss_error
        assert parts == pytest.approx(ss_total)
        assert res.group.df2 == 11 - 3
        assert res.time.df2 == (11 - 3) * 3

    def test_incomplete_subjects_are_excluded(self):
        res = two_way_repeated_measures_anova(_small_growth(s5=("A", [None, 7.0])))
        assert res.n_subjects == 4
        assert res.group.ss == pytest.approx(18.0)

    def test_subject_length_mismatch(self):
        with pytest.raises(UnequalSampleSizeError, match="s5"):
            two_way_repeated_measures_anova(_small_growth(s5=("A", [1.0, 2.0, 3.0])))

    def test_needs_two_groups_and_timepoints(self):
        one_group = GrowthData([0, 1], ["A"], {"s1": [1, 2], "s2": [2, 4]}, {"A": ["s1", "s2"]})
        with pytest.raises(InsufficientDataError, match="2 groups"):
            two_way_repeated_measures_anova(one_group)
        one_time = GrowthData(
            [0], ["A", "B"], {"s1": [1], "s2": [2]}, {"A": ["s1"], "B": ["s2"]}
        )
        with pytest.raises(InsufficientDataError, match="2 timepoints"):
            two_way_repeated_measures_anova(one_time)

    def test_group_without_complete_subjects(self):
        growth = GrowthData(
            [0, 1],
            ["A", "B"],
            {"s1": [1, 2], "s2": [2, 5], "s3": [None, 4]},
            {"A": ["s1", "s2"], "B": ["s3"]},
        )
        with pytest.raises(InsufficientDataError, match="'B'"):
            two_way_repeated_measures_anova(growth)

    def test_unknown_subject(self):
        growth = GrowthData([0, 1], ["A", "B"], {"s1": [1, 2]}, {"A": ["s1"], "B": ["ghost"]})
        with pytest.raises(InvalidParameterError, match="ghost"):
            two_way_repeated_measures_anova(growth)


class TestTimepointAnova:
    def test_gatekeepers(self):
        gates = timepoint_anova(_three_group_growth())
        assert [g.timepoint for g in gates] == [0.0, 1.0]
        assert gates[0].tested and not gates[0].significant
        assert gates[0].f == pytest.approx(0.0)
        assert gates[1].tested and gates[1].significant

    def test_untestable_timepoint(self):
        growth = GrowthData(
            [0, 1],
            ["A", "B"],
            {"s1": [1, 2], "s2": [2, None], "s3": [3, 4], "s4": [5, 6]},
            {"A": ["s1", "s2"], "B": ["s3", "s4"]},
        )
        gates = timepoint_anova(growth)
        assert gates[0].tested
        assert not gates[1].tested
        assert gates[1].p_value is None


class TestGrowthPostHoc:
    def test_two_groups_skip_gatekeeper(self):
        comps = growth_post_hoc(_small_growth())
        assert [(c.timepoint, c.group1, c.group2) for c in comps] == [(0.0, "A", "B"), (7.0, "A", "B")]
        assert comps[0].raw_p == pytest.approx(welch_t_test([1, 2], [4, 6]).p_value)
        raws = sorted(c.raw_p for c in comps)
        holm = sorted(c.corrected_p for c in comps)
        assert holm[0] == pytest.approx(min(1.0, 2 * raws[0]))

    def test_gatekeeper_blocks_non_significant_timepoints(self):
        comps = growth_post_hoc(_three_group_growth())
        assert {c.timepoint for c in comps} == {1.0}
        assert [(c.group1, c.group2) for c in comps] == [("C", "D"), ("C", "E"), ("D", "E")]
        assert all(c.significant for c in comps)

    def test_control_mode(self):
        options = GrowthPostHocOptions(correction="bonferroni", compare_mode="control", control_group="D")
        comps = growth_post_hoc(_three_group_growth(), options)
        assert [(c.group1, c.group2) for c in comps] == [("D", "C"), ("D", "E")]
        for c in comps:
            assert c.corrected_p == pytest.approx(min(1.0, 2 * c.raw_p))

    def test_no_correction(self):
        comps = growth_post_hoc(_small_growth(), GrowthPostHocOptions(correction="none"))
        for c in comps:
            assert c.corrected_p == c.raw_p

    def test_options_validation(self):
        with pytest.raises(InvalidParameterError, match="correction"):
            GrowthPostHocOptions(correction="tukey")
        with pytest.raises(InvalidParameterError, match="compare_mode"):
            GrowthPostHocOptions(compare_mode="pairs")
        with pytest.raises(InvalidParameterError, match="Control group"):
            growth_post_hoc(_small_growth(), GrowthPostHocOptions(control_group="Z"))
