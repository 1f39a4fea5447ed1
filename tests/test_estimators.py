"""Tests for the pyfixest-backed estimator."""

import numpy as np
import pytest

from estimators import (
    EstimationError,
    EstimationResult,
    FixestEstimator,
    ModelSpec,
    ModelSpecError,
    PowerSimError,
)


class TestOLS:

    def test_recovers_coefficient(self, estimator, linear_data):
        spec = ModelSpec.from_formula("y ~ x + c | city")
        result = estimator.estimate(linear_data, spec)

        assert isinstance(result, EstimationResult)
        assert abs(result.estimate - 2.0) < 0.2
        assert result.std_error > 0
        assert result.p_value < 0.001
        assert result.n_obs == len(linear_data)
        assert result.f_stat is None

    def test_conf_int_contains_estimate(self, estimator, linear_data):
        result = estimator.estimate(linear_data, ModelSpec.from_formula("y ~ x + c | city"))
        lower, upper = result.conf_int()
        assert lower < result.estimate < upper
        assert np.isclose(upper - lower, 2 * result.critical_value(0.95) * result.std_error)

    def test_degrees_of_freedom_exclude_fixed_effects(self, estimator, linear_data):
        result = estimator.estimate(linear_data, ModelSpec.from_formula("y ~ x + c | city"))
        assert result.dof == result.n_obs - 2

    def test_interval_agrees_with_p_value(self, estimator, linear_data):
        noise = np.random.default_rng(3).normal(size=len(linear_data))
        data = linear_data.assign(noise=noise)
        result = estimator.estimate(data, ModelSpec.from_formula("y ~ noise + x | city"))

        # the interval at level 1 - p has zero on its boundary
        half_width = result.critical_value(1 - result.p_value) * result.std_error
        assert np.isclose(half_width, abs(result.estimate), rtol=1e-3)

    def test_t_interval_wider_than_normal(self):
        normal = EstimationResult(estimate=1.0, std_error=1.0, p_value=0.3, n_obs=10)
        student = EstimationResult(estimate=1.0, std_error=1.0, p_value=0.3, n_obs=10, dof=8.0)
        assert np.isclose(normal.critical_value(0.95), 1.959963984540054)
        assert student.critical_value(0.95) > 2.3

    def test_to_dict_fills_missing_f_stat(self, estimator, linear_data):
        result = estimator.estimate(linear_data, ModelSpec.from_formula("y ~ x | city"))
        assert np.isnan(result.to_dict()['f_stat'])

    def test_fitted_and_residuals(self, estimator, linear_data):
        spec = ModelSpec.from_formula("y ~ x + c | city")
        beta, fitted, residuals = estimator.fitted_and_residuals(linear_data, spec)

        assert len(fitted) == len(residuals) == len(linear_data)
        np.testing.assert_allclose(fitted + residuals, linear_data['y'].to_numpy())
        assert abs(beta - 2.0) < 0.2
        assert abs(residuals.mean()) < 1e-6


class TestIV:

    def test_recovers_coefficient_and_first_stage(self, estimator, linear_data):
        spec = ModelSpec.from_formula("y_iv ~ c | city | x_endog ~ z")
        result = estimator.estimate(linear_data, spec)

        assert abs(result.estimate - 2.0) < 0.5
        assert result.f_stat is not None
        assert result.f_stat > 50

    def test_ols_is_biased_under_confounding(self, estimator, linear_data):
        ols = estimator.estimate(linear_data, ModelSpec.from_formula("y_iv ~ x_endog + c | city"))
        iv = estimator.estimate(linear_data, ModelSpec.from_formula("y_iv ~ c | city | x_endog ~ z"))
        assert abs(ols.estimate - 2.0) > abs(iv.estimate - 2.0)

    def test_residuals_require_ols(self, estimator, linear_data):
        spec = ModelSpec.from_formula("y_iv ~ c | city | x_endog ~ z")
        with pytest.raises(ModelSpecError):
            estimator.fitted_and_residuals(linear_data, spec)


class TestFailures:
    """Estimation fails loudly instead of returning a silent number."""

    def test_collinear_exposure(self, estimator, linear_data):
        spec = ModelSpec.from_formula("y ~ city_level + c | city")
        with pytest.raises(EstimationError):
            estimator.estimate(linear_data, spec)

    def test_missing_column(self, estimator, linear_data):
        spec = ModelSpec.from_formula("y ~ pm10 | city")
        with pytest.raises(ModelSpecError, match="pm10"):
            estimator.estimate(linear_data, spec)

    def test_empty_sample(self, estimator, linear_data):
        spec = ModelSpec.from_formula("y ~ x | city")
        with pytest.raises(EstimationError, match="empty"):
            estimator.estimate(linear_data.iloc[:0], spec)

    def test_error_hierarchy(self):
        assert issubclass(EstimationError, PowerSimError)
        assert not issubclass(EstimationError, ValueError)
        assert isinstance(FixestEstimator(), FixestEstimator)
