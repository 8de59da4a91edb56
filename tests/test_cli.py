"""End-to-end tests of the ``sigstar`` command line."""

import pandas as pd
import pytest

from sigstar.cli import main


def _write(tmp_path, name, frame):
    path = tmp_path / name
    frame.to_csv(path, index=False)
    return str(path)


@pytest.fixture
def compare_csv(tmp_path):
    groups = {
        "Control": [4.1, 4.5, 4.3, 4.8, 4.4],
        "Low": [5.9, 6.2, 6.0, 6.4, 6.1],
        "High": [8.0, 7.6, 8.3, 7.9, 8.1],
    }
    rows = [{"group": g, "value": v} for g, vals in groups.items() for v in vals]
    return _write(tmp_path, "compare.csv", pd.DataFrame(rows))


def test_compare_writes_tables(tmp_path, compare_csv, capsys):
    out_dir = tmp_path / "out"
    code = main(["compare", compare_csv, "--test", "one-way-anova", "--output", str(out_dir)])
    assert code == 0

    printed = capsys.readouterr().out
    assert "test_result:" in printed
    assert "posthoc_comparisons:" in printed

    result = pd.read_csv(out_dir / "test_result.csv")
    assert result.loc[0, "Test"] == "One-way ANOVA + Bonferroni"
    assert "p (reported)" in result.columns
    posthoc = pd.read_csv(out_dir / "posthoc_comparisons.csv")
    assert len(posthoc) == 3
    assert {"Raw p (reported)", "Corrected p (reported)"} <= set(posthoc.columns)
    stats = pd.read_csv(out_dir / "descriptive_statistics.csv")
    assert list(stats["Group"]) == ["Control", "Low", "High"]


def test_compare_without_output_only_prints(tmp_path, compare_csv, capsys):
    assert main(["compare", compare_csv, "--test", "mann-whitney"]) == 0
    printed = capsys.readouterr().out
    assert "Mann-Whitney U test" in printed
    assert not (tmp_path / "output").exists()


def test_friedman_with_unequal_groups_fails(tmp_path, caplog):
    frame = pd.DataFrame(
        {"group": ["a"] * 4 + ["b"] * 4 + ["c"] * 3, "value": list(range(11))}
    )
    path = _write(tmp_path, "unequal.csv", frame)
    assert main(["compare", path, "--test", "friedman"]) == 1
    assert "Analysis failed" in caplog.text


def test_missing_column_fails(tmp_path, caplog):
    path = _write(tmp_path, "bad.csv", pd.DataFrame({"label": ["a", "b"], "value": [1, 2]}))
    assert main(["compare", path, "--test", "t-test-unpaired"]) == 1
    assert "missing required columns" in caplog.text


def test_unknown_test_is_rejected_by_parser(compare_csv):
    with pytest.raises(SystemExit):
        main(["compare", compare_csv, "--test", "z-test"])


def test_growth_command(tmp_path):
    rows = []
    for sid, group, vals in [
        ("s1", "A", [1, 3]),
        ("s2", "A", [2, 6]),
        ("s3", "B", [4, 5]),
        ("s4", "B", [6, 9]),
    ]:
        for t, v in zip([0, 7], vals):
            rows.append({"group": group, "subject": sid, "time": t, "value": v})
    path = _write(tmp_path, "growth.csv", pd.DataFrame(rows))
    out_dir = tmp_path / "growth_out"

    assert main(["growth", path, "--correction", "bonferroni", "--output", str(out_dir)]) == 0
    anova = pd.read_csv(out_dir / "rm_anova.csv")
    assert list(anova["Effect"]) == ["Group", "Time", "Group x Time"]
    comparisons = pd.read_csv(out_dir / "growth_comparisons.csv")
    assert list(comparisons["Timepoint"]) == [0.0, 7.0]
    assert not (out_dir / "timepoint_anova.csv").exists()


def test_survival_command(tmp_path):
    frame = pd.DataFrame(
        {"group": ["A", "A", "B", "B"], "time": [5, 8, 3, 9], "event": [1, 0, 1, 1]}
    )
    path = _write(tmp_path, "survival.csv", frame)
    out_dir = tmp_path / "survival_out"

    code = main(["survival", path, "--risk-times", "0", "5", "10", "--output", str(out_dir)])
    assert code == 0
    risk = pd.read_csv(out_dir / "risk_table.csv")
    assert list(risk["At Risk"]) == [2, 2, 0, 2, 1, 0]
    log_rank = pd.read_csv(out_dir / "log_rank.csv")
    assert log_rank.loc[0, "Statistic Value"] == pytest.approx(3.0 / 77.0)
    summary = pd.read_csv(out_dir / "survival_summary.csv")
    assert list(summary["Median Survival"]) == [5.0, 3.0]
