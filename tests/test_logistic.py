"""Test the Newton-Raphson logistic fit."""

import math

import numpy as np
import pytest
from conversion_patterns.analysis.logistic import (
    LOG_EPSILON,
    fit_logistic_regression,
    log_likelihood,
)


def _two_group_data(n1, k1, n0, k0):
    """n1 exposed users with k1 converters, n0 unexposed with k0."""
    x = [1.0] * n1 + [0.0] * n0
    y = [1.0] * k1 + [0.0] * (n1 - k1) + [1.0] * k0 + [0.0] * (n0 - k0)
    return x, y


def test_fit_matches_closed_form_for_binary_exposure():
    """With one binary predictor the MLE equals the two group log-odds."""
    x, y = _two_group_data(15, 6, 85, 14)
    fit = fit_logistic_regression(x, y)
    
    p1, p0 = 6 / 15, 14 / 85
    expected_b0 = math.log(p0 / (1 - p0))
    expected_b1 = math.log(p1 / (1 - p1)) - expected_b0
    
    assert fit.converged is True
    assert fit.singular is False
    assert fit.iterations <= 20
    assert fit.beta0 == pytest.approx(expected_b0, rel=1e-6)
    assert fit.beta1 == pytest.approx(expected_b1, rel=1e-6)
    assert fit.odds_ratio == pytest.approx(142 / 42, rel=1e-5)


def test_log_likelihood_at_optimum():
    """LL at the fitted parameters matches the grouped Bernoulli sum."""
    x, y = _two_group_data(15, 6, 85, 14)
    fit = fit_logistic_regression(x, y)
    
    expected = (
        6 * math.log(0.4) + 9 * math.log(0.6)
        + 14 * math.log(14 / 85) + 71 * math.log(71 / 85)
    )
    assert fit.log_likelihood == pytest.approx(expected, rel=1e-6)
    assert fit.log_likelihood <= 0


def test_no_variation_stops_on_singular_hessian():
    """All-zero x and y: the first Hessian is singular, parameters stay at 0."""
    fit = fit_logistic_regression([0, 0, 0, 0], [0, 0, 0, 0])
    
    assert fit.singular is True
    assert fit.iterations == 0
    assert fit.beta0 == 0.0
    assert fit.beta1 == 0.0
    assert fit.odds_ratio == 1.0
    assert math.isfinite(fit.log_likelihood)
    assert fit.log_likelihood == pytest.approx(4 * math.log(0.5 + LOG_EPSILON))


def test_all_exposed_is_singular():
    """x constant at 1 leaves the slope unidentifiable."""
    fit = fit_logistic_regression([1, 1, 1, 1], [1, 0, 1, 0])
    
    assert fit.singular is True
    assert math.isfinite(fit.log_likelihood)


def test_perfect_separation_stays_finite():
    """Separable data saturates and stops on the determinant guard."""
    x = [0, 0, 0, 1, 1, 1]
    y = [0, 0, 0, 1, 1, 1]
    fit = fit_logistic_regression(x, y)
    
    assert fit.singular is True
    assert fit.iterations < 20
    assert math.isfinite(fit.beta1)
    assert fit.beta1 > 10
    assert fit.odds_ratio > 1
    assert math.isfinite(fit.log_likelihood)
    assert fit.log_likelihood <= 0


def test_iteration_budget_is_respected():
    """A smaller budget stops earlier on the diverging separable fit."""
    x = [0, 0, 0, 1, 1, 1]
    y = [0, 0, 0, 1, 1, 1]
    short = fit_logistic_regression(x, y, max_iterations=3)
    full = fit_logistic_regression(x, y, max_iterations=20)
    
    assert short.iterations == 3
    assert short.converged is False
    assert short.beta1 < full.beta1


def test_log_likelihood_helper_matches_fit():
    """The standalone LL helper reproduces the fitted value."""
    x, y = _two_group_data(10, 3, 30, 6)
    fit = fit_logistic_regression(x, y)
    
    value = log_likelihood(np.asarray(x), np.asarray(y), fit.beta0, fit.beta1)
    assert value == pytest.approx(fit.log_likelihood)


def test_huge_slope_saturates_odds_ratio():
    """exp overflow turns into inf instead of raising."""
    from conversion_patterns.analysis.logistic import LogisticFit
    
    fit = LogisticFit(beta0=0.0, beta1=1000.0, log_likelihood=-1.0)
    assert fit.odds_ratio == float("inf")


def test_shape_mismatch_raises():
    """x and y must have the same length."""
    with pytest.raises(ValueError):
        fit_logistic_regression([0, 1, 1], [0, 1])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
