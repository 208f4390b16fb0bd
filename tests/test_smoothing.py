import numpy as np
import pytest

from swfdr.exceptions import InvalidConfiguration
from swfdr.methods import GeneralSplineSmoother, UnitIntervalSplineSmoother, make_smoother
from swfdr.utils.validation import DEFAULT_LAMBDA


@pytest.fixture
def noisy_curves(rng):
    lam = DEFAULT_LAMBDA
    base = 0.6 + 0.4 * np.exp(-4 * lam)
    return base + rng.normal(0, 0.05, size=(40, len(lam)))


@pytest.mark.parametrize("mode", ["general-spline", "unit-interval-spline"])
def test_linear_curves_are_reproduced(mode):
    lam = DEFAULT_LAMBDA
    Y = np.vstack([0.3 + 0.5 * lam, 1.0 - 0.2 * lam])
    smoother = make_smoother(lam, df=3, mode=mode)
    np.testing.assert_allclose(smoother.smooth(Y), Y, atol=1e-6)


def test_unit_interval_trace_matches_df():
    for df in (3, 4.5, 8):
        smoother = UnitIntervalSplineSmoother(DEFAULT_LAMBDA, df=df)
        assert np.trace(smoother.S_) == pytest.approx(df, abs=1e-8)


def test_modes_agree(noisy_curves):
    general = GeneralSplineSmoother(DEFAULT_LAMBDA, df=3)
    unit = UnitIntervalSplineSmoother(DEFAULT_LAMBDA, df=3)

    top_general = general.evaluate_top(noisy_curves)
    top_unit = unit.evaluate_top(noisy_curves)

    assert np.max(np.abs(top_general - top_unit)) < 0.01
    np.testing.assert_allclose(general.smooth(noisy_curves), unit.smooth(noisy_curves), atol=0.01)


def test_smoothing_reduces_noise(noisy_curves):
    lam = DEFAULT_LAMBDA
    truth = 0.6 + 0.4 * np.exp(-4 * lam)
    smoothed = make_smoother(lam, df=3).smooth(noisy_curves)
    assert np.mean((smoothed - truth) ** 2) < np.mean((noisy_curves - truth) ** 2)


def test_identical_rows_share_one_fit():
    lam = DEFAULT_LAMBDA
    row = 1.0 - 0.3 * lam ** 2
    Y = np.vstack([row, row, row + 0.1, row])
    out = GeneralSplineSmoother(lam, df=3).smooth(Y)
    assert out.shape == Y.shape
    np.testing.assert_array_equal(out[0], out[1])
    np.testing.assert_array_equal(out[0], out[3])


@pytest.mark.parametrize("mode", ["general-spline", "unit-interval-spline"])
def test_degrees_of_freedom_floor(mode):
    with pytest.raises(InvalidConfiguration):
        make_smoother(DEFAULT_LAMBDA, df=2, mode=mode)


def test_too_few_points():
    with pytest.raises(InvalidConfiguration):
        make_smoother([0.1, 0.2, 0.3], df=3, mode="unit-interval-spline")
    # four points exceed df=3 but are below what make_smoothing_spline accepts
    UnitIntervalSplineSmoother([0.1, 0.2, 0.3, 0.4], df=3)
    with pytest.raises(InvalidConfiguration):
        GeneralSplineSmoother([0.1, 0.2, 0.3, 0.4], df=3)


def test_unknown_mode():
    with pytest.raises(InvalidConfiguration):
        make_smoother(DEFAULT_LAMBDA, df=3, mode="loess")
