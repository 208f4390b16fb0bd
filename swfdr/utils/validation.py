"""
Input checks shared by the estimators.

Every function returns a clean float ndarray or raises InvalidConfiguration.
"""

import numpy as np
from typing import Optional

from ..exceptions import InvalidConfiguration

DEFAULT_LAMBDA = np.round(np.arange(0.05, 0.96, 0.05), 2)
MIN_SMOOTH_DF = 3


def check_pvalues(p_values) -> np.ndarray:
    """Flatten and check that p-values are finite and inside [0, 1]."""
    p = np.asarray(p_values, dtype=float).ravel()
    if p.size == 0:
        raise InvalidConfiguration("p_values must contain at least one value")
    if not np.all(np.isfinite(p)):
        raise InvalidConfiguration("p_values contain missing or non-finite values")
    if p.min() < 0 or p.max() > 1:
        raise InvalidConfiguration(
            f"p_values must lie in [0, 1], got range [{p.min():.4g}, {p.max():.4g}]"
        )
    return p


def check_design_matrix(X, n_rows: int) -> np.ndarray:
    """
    Convert covariates to an (n_rows, k) float matrix.

    Parameters
    ----------
    X : array-like or pandas.DataFrame or None
        Covariates, one row per test. A 1-D array is one column.
        None gives an (n_rows, 0) matrix.
    n_rows : int
        Number of p-values the matrix has to match

    Returns
    -------
    X : np.ndarray, shape (n_rows, k)
    """
    if X is None:
        return np.empty((n_rows, 0))

    if hasattr(X, "to_numpy"):
        X = X.to_numpy()

    try:
        X = np.asarray(X, dtype=float)
    except (TypeError, ValueError) as e:
        raise InvalidConfiguration(
            f"design matrix must contain only real numbers: {e}"
        ) from e

    if X.ndim == 1:
        X = X.reshape(-1, 1)
    elif X.ndim != 2:
        raise InvalidConfiguration(f"design matrix must be 2-D, got {X.ndim} dimensions")

    if X.shape[0] != n_rows:
        raise InvalidConfiguration(
            f"design matrix has {X.shape[0]} rows but there are {n_rows} p-values"
        )
    if not np.all(np.isfinite(X)):
        bad_rows = np.where(~np.all(np.isfinite(X), axis=1))[0]
        raise InvalidConfiguration(
            f"design matrix contains missing or non-finite values "
            f"(first offending row: {bad_rows[0]})"
        )
    return X


def check_lambda(lambda_, smooth_df: Optional[float] = None) -> np.ndarray:
    """
    Check a lambda grid and, when smoothing is requested, its length.

    A single lambda is always accepted; smoothing is skipped for it.
    """
    if lambda_ is None:
        lambda_ = DEFAULT_LAMBDA
    lam = np.asarray(lambda_, dtype=float).ravel()

    if lam.size == 0:
        raise InvalidConfiguration("lambda sequence must contain at least one value")
    if not np.all(np.isfinite(lam)):
        raise InvalidConfiguration("lambda sequence contains non-finite values")
    if lam.min() < 0 or lam.max() >= 1:
        raise InvalidConfiguration("lambda values must lie in [0, 1)")
    if lam.size > 1 and np.any(np.diff(lam) <= 0):
        raise InvalidConfiguration("lambda sequence must be strictly increasing")

    if smooth_df is not None and lam.size > 1 and lam.size <= smooth_df:
        raise InvalidConfiguration(
            f"lambda sequence of length {lam.size} is too short for "
            f"smooth_df={smooth_df}; need more than {smooth_df} values"
        )
    return lam


def check_smooth_df(smooth_df) -> float:
    if smooth_df is None or not np.isfinite(smooth_df) or smooth_df < MIN_SMOOTH_DF:
        raise InvalidConfiguration(
            f"smooth_df must be at least {MIN_SMOOTH_DF}, got {smooth_df}"
        )
    return float(smooth_df)


def check_flags(flags, n: int, name: str) -> np.ndarray:
    """Convert a 0/1 flag sequence to a boolean array of length n."""
    f = np.asarray(flags).ravel()
    if f.shape[0] != n:
        raise InvalidConfiguration(
            f"{name} has {f.shape[0]} entries but there are {n} p-values"
        )
    if f.dtype != bool:
        try:
            f_num = f.astype(float)
        except (TypeError, ValueError) as e:
            raise InvalidConfiguration(f"{name} must contain only 0/1 or boolean values") from e
        if not np.all(np.isin(f_num, (0.0, 1.0))):
            raise InvalidConfiguration(f"{name} must contain only 0/1 or boolean values")
        f = f_num.astype(bool)
    return f
