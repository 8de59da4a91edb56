import math

import numpy as np
import pytest
from scipy import stats as scipy_stats

from sigstar.stats.errors import (
    InsufficientDataError,
    InvalidParameterError,
    UnequalSampleSizeError,
)
from sigstar.stats.regression import (
    confidence_band,
    linear_regression,
    pearson_correlation,
    spearman_correlation,
)

X = [0.5, 1.0, 1.7, 2.2, 3.1, 3.9, 4.4, 5.0]
Y = [1.8, 2.9, 4.1, 5.6, 7.0, 8.9, 9.5, 11.4]


def test_perfect_line_round_trip():
    x = np.arange(1.0, 8.0)
    fit = linear_regression(x, 2 * x + 1)
    assert fit.slope == pytest.approx(2.0)
    assert fit.intercept == pytest.approx(1.0)
    assert fit.r_squared == pytest.approx(1.0)
    assert fit.residual_se == pytest.approx(0.0, abs=1e-9)
    assert fit.predict(10.0) == pytest.approx(21.0)


def test_regression_matches_linregress():
    fit = linear_regression(X, Y)
    ref = scipy_stats.linregress(X, Y)
    assert fit.slope == pytest.approx(ref.slope)
    assert fit.intercept == pytest.approx(ref.intercept)
    assert fit.r_squared == pytest.approx(ref.rvalue**2)
    assert fit.slope_se == pytest.approx(ref.stderr)
    assert fit.intercept_se == pytest.approx(ref.intercept_stderr)
    assert fit.slope_p == pytest.approx(ref.pvalue)
    assert fit.df == len(X) - 2
    assert fit.n == len(X)
    assert fit.mean_x == pytest.approx(np.mean(X))
    assert fit.ss_xx == pytest.approx(np.sum((np.asarray(X) - np.mean(X)) ** 2))


def test_regression_rejects_bad_input():
    with pytest.raises(InsufficientDataError, match="At least 3"):
        linear_regression([1, 2], [3, 4])
    with pytest.raises(InsufficientDataError, match="x variance"):
        linear_regression([2, 2, 2], [1, 2, 3])
    with pytest.raises(InsufficientDataError, match="y variance"):
        linear_regression([1, 2, 3], [5, 5, 5])
    with pytest.raises(UnequalSampleSizeError):
        linear_regression([1, 2, 3, 4], [1, 2, 3])


def test_pearson_matches_scipy():
    res = pearson_correlation(X, Y)
    ref = scipy_stats.pearsonr(X, Y)
    assert res.r == pytest.approx(ref[0])
    assert res.p_value == pytest.approx(ref[1])
    assert res.n == len(X)
    assert res.df == len(X) - 2


def test_spearman_matches_scipy_with_ties():
    x = [1, 2, 2, 3, 5, 6, 6, 8]
    y = [2, 1, 4, 3, 7, 5, 9, 8]
    res = spearman_correlation(x, y)
    ref = scipy_stats.spearmanr(x, y)
    assert res.rho == pytest.approx(ref[0])
    assert res.p_value == pytest.approx(ref[1])


def test_perfect_correlation_has_zero_p():
    res = pearson_correlation([1, 2, 3, 4], [2, 4, 6, 8])
    assert res.r == pytest.approx(1.0)
    assert res.p_value == 0.0
    assert math.isinf(res.t)


def test_correlation_of_constant_variable():
    with pytest.raises(InsufficientDataError, match="constant"):
        pearson_correlation([1, 2, 3], [4, 4, 4])


class TestConfidenceBand:
    def test_mean_band_at_mean_x(self):
        fit = linear_regression(X, Y)
        band = confidence_band(fit, [fit.mean_x], level=0.95)
        t_crit = scipy_stats.t.ppf(0.975, fit.df)
        half_width = band["upper"][0] - band["fit"][0]
        assert half_width == pytest.approx(t_crit * fit.residual_se / math.sqrt(fit.n))
        assert band["lower"][0] == pytest.approx(band["fit"][0] - half_width)

    def test_prediction_band_is_wider_and_grows_away_from_mean(self):
        fit = linear_regression(X, Y)
        xs = [fit.mean_x, fit.mean_x + 3.0]
        mean_band = confidence_band(fit, xs, kind="mean")
        pred_band = confidence_band(fit, xs, kind="prediction")
        mean_width = mean_band["upper"] - mean_band["lower"]
        pred_width = pred_band["upper"] - pred_band["lower"]
        assert np.all(pred_width > mean_width)
        assert mean_width[1] > mean_width[0]

    def test_invalid_arguments(self):
        fit = linear_regression(X, Y)
        with pytest.raises(InvalidParameterError, match="level"):
            confidence_band(fit, [1.0], level=1.5)
        with pytest.raises(InvalidParameterError, match="kind"):
            confidence_band(fit, [1.0], kind="simultaneous")
