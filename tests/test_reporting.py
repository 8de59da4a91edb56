import numpy as np
import pandas as pd
import pytest

from sigstar.reporting import add_formatted_p_columns, format_p_value, format_test_result
from sigstar.stats.omnibus import one_way_anova
from sigstar.stats.two_sample import t_test


@pytest.mark.parametrize(
    "p, text",
    [
        (0.00012345, "1.23e-04"),
        (0.0009999, "1.00e-03"),
        (0.001, "0.0010"),
        (0.03123, "0.0312"),
        (1.0, "1.0000"),
    ],
)
def test_format_p_value(p, text):
    assert format_p_value(p) == text


def test_format_p_value_rejects_nan():
    with pytest.raises(ValueError, match="finite"):
        format_p_value(float("nan"))


def test_add_formatted_p_columns_keeps_numeric_values():
    df = pd.DataFrame({"p": [0.5, 0.0001, np.nan]})
    out = add_formatted_p_columns(df, ["p"])
    assert list(out["p (reported)"]) == ["0.5000", "1.00e-04", ""]
    assert out["p"].iloc[0] == 0.5
    assert "p (reported)" not in df.columns


def test_add_formatted_p_columns_missing_column():
    with pytest.raises(KeyError, match="Missing p-value column"):
        add_formatted_p_columns(pd.DataFrame({"x": [1]}), ["p"])


def test_format_test_result():
    text = format_test_result(t_test([1, 2, 3, 4, 5], [6, 7, 8, 9, 10]))
    assert text.startswith("t = -5.0000, df = 8.00, p = ")
    assert text.endswith("**")

    anova = format_test_result(one_way_anova([[1, 2, 3], [2, 3, 4], [5, 6, 7]]))
    assert anova.startswith("F = ")
    assert "df = (2, 6)" in anova
