import numpy as np
import pytest

from swfdr.exceptions import DegenerateFit, InvalidConfiguration
from swfdr.methods import LambdaSweepEstimator, LinearBackend, LogisticBackend, get_backend, sweep_lambda
from swfdr.methods.regression import RegressionBackend


class NanBackend(RegressionBackend):
    name = "nan"

    def _fit_predict(self, X, y):
        return np.full(len(y), np.nan)


class FailingBackend(RegressionBackend):
    name = "failing"

    def _fit_predict(self, X, y):
        raise ValueError("singular design")


def test_no_covariates_replicates_the_mean(uniform_pvalues):
    lam = np.array([0.2, 0.5, 0.8])
    result = sweep_lambda(uniform_pvalues, None, lam)

    assert result.fitted.shape == (len(uniform_pvalues), 3)
    for j, l in enumerate(lam):
        assert np.all(result.fitted[:, j] == np.mean(uniform_pvalues > l))
    np.testing.assert_allclose(result.pi0_lambda, result.fitted / (1 - lam))


@pytest.mark.parametrize("type_", ["logistic", "linear"])
def test_binary_covariate_fits_group_rates(type_, rng):
    group = np.repeat([0.0, 1.0], 500)
    p = np.where(group == 1, rng.uniform(size=1000), rng.beta(0.5, 1.0, size=1000))
    lam = np.array([0.3, 0.5, 0.7])

    result = LambdaSweepEstimator(type_=type_).fit(p, group, lam)

    for j, l in enumerate(lam):
        for g in (0.0, 1.0):
            expected = np.mean(p[group == g] > l)
            np.testing.assert_allclose(result.fitted[group == g, j], expected, atol=1e-4)


def test_logistic_backend_constant_response():
    X = np.arange(10.0).reshape(-1, 1)
    np.testing.assert_array_equal(LogisticBackend().fit_predict(X, np.zeros(10)), np.zeros(10))
    np.testing.assert_array_equal(LogisticBackend().fit_predict(X, np.ones(10)), np.ones(10))


def test_linear_backend_is_least_squares():
    X = np.arange(5.0).reshape(-1, 1)
    y = 2.0 + 0.5 * X[:, 0]
    np.testing.assert_allclose(LinearBackend().fit_predict(X, y), y)


def test_unknown_regression_type():
    with pytest.raises(InvalidConfiguration):
        get_backend("probit")


def test_nonfinite_predictions_raise_degenerate_fit(uniform_pvalues):
    X = np.linspace(0, 1, len(uniform_pvalues))
    estimator = LambdaSweepEstimator(backend=NanBackend())

    with pytest.raises(DegenerateFit) as excinfo:
        estimator.fit(uniform_pvalues, X, [0.25, 0.5])

    assert excinfo.value.lambda_value == pytest.approx(0.25)
    assert excinfo.value.column == 0
    assert "0.25" in str(excinfo.value)


def test_backend_errors_raise_degenerate_fit(uniform_pvalues):
    X = np.linspace(0, 1, len(uniform_pvalues))
    with pytest.raises(DegenerateFit, match="singular design"):
        LambdaSweepEstimator(backend=FailingBackend()).fit(uniform_pvalues, X, [0.5])


def test_row_count_mismatch(uniform_pvalues):
    with pytest.raises(InvalidConfiguration):
        sweep_lambda(uniform_pvalues, np.ones((10, 1)))
