import numpy as np
import pandas as pd
import pytest

from swfdr.exceptions import InvalidConfiguration
from swfdr.utils.validation import (
    DEFAULT_LAMBDA,
    check_design_matrix,
    check_flags,
    check_lambda,
    check_pvalues,
    check_smooth_df,
)


def test_default_lambda_grid():
    assert DEFAULT_LAMBDA[0] == pytest.approx(0.05)
    assert DEFAULT_LAMBDA[-1] == pytest.approx(0.95)
    assert len(DEFAULT_LAMBDA) == 19
    assert np.all(np.diff(DEFAULT_LAMBDA) > 0)


@pytest.mark.parametrize("bad", [[0.1, np.nan], [0.2, 1.5], [-0.1, 0.3], []])
def test_check_pvalues_rejects(bad):
    with pytest.raises(InvalidConfiguration):
        check_pvalues(bad)


def test_design_matrix_shapes():
    X = check_design_matrix(np.arange(4.0), 4)
    assert X.shape == (4, 1)

    X = check_design_matrix(None, 3)
    assert X.shape == (3, 0)

    df = pd.DataFrame({"a": [1, 2, 3], "b": [0.5, 0.1, 0.2]})
    assert check_design_matrix(df, 3).shape == (3, 2)


def test_design_matrix_rejects_missing_and_mismatch():
    with pytest.raises(InvalidConfiguration, match="non-finite"):
        check_design_matrix(np.array([[1.0], [np.nan], [2.0]]), 3)
    with pytest.raises(InvalidConfiguration, match="non-finite"):
        check_design_matrix(np.array([[1.0], [np.inf]]), 2)
    with pytest.raises(InvalidConfiguration, match="rows"):
        check_design_matrix(np.ones((5, 2)), 4)
    with pytest.raises(InvalidConfiguration):
        check_design_matrix(np.array([["a"], ["b"]]), 2)


def test_check_lambda():
    np.testing.assert_allclose(check_lambda(None), DEFAULT_LAMBDA)
    assert check_lambda([0.5]).shape == (1,)
    # a single lambda needs no smoothing, so any df is fine
    assert check_lambda([0.5], smooth_df=10).shape == (1,)

    with pytest.raises(InvalidConfiguration, match="increasing"):
        check_lambda([0.2, 0.1, 0.3])
    with pytest.raises(InvalidConfiguration):
        check_lambda([0.5, 1.0])
    with pytest.raises(InvalidConfiguration, match="too short"):
        check_lambda([0.1, 0.2, 0.3], smooth_df=3)


def test_check_smooth_df_floor():
    assert check_smooth_df(3) == 3.0
    with pytest.raises(InvalidConfiguration):
        check_smooth_df(2.9)


def test_check_flags():
    f = check_flags([0, 1, 1], 3, "rounded")
    assert f.dtype == bool
    assert f.tolist() == [False, True, True]
    with pytest.raises(InvalidConfiguration, match="rounded"):
        check_flags([0, 1], 3, "rounded")
    with pytest.raises(InvalidConfiguration):
        check_flags([0, 2, 1], 3, "truncated")
