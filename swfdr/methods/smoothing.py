"""
Cubic smoothing splines through (λ, pi0(λ)) curves.

Two interchangeable implementations of the same smoother:

- ``GeneralSplineSmoother`` fits ``scipy.interpolate.make_smoothing_spline``
  to every row separately. Reference implementation; cost grows with the
  number of distinct rows.
- ``UnitIntervalSplineSmoother`` rescales λ to [0, 1] and builds the
  smoother matrix S of the natural cubic smoothing spline in closed form
  (Reinsch / Green & Silverman):

      S(α) = (I + α K)^{-1},   K = Q R^{-1} Q^T

  Because every row shares the same λ grid, S is computed once and applied
  to all rows with a single matrix product.

In both cases the roughness penalty is chosen so that trace(S) equals the
requested degrees of freedom, the same calibration R's ``smooth.spline(df=)``
uses. The two implementations therefore target the same fit and differ only
by numerical error.
"""

import numpy as np
from functools import lru_cache
from typing import Literal, Tuple
from scipy.interpolate import make_smoothing_spline
from scipy.optimize import brentq

from ..exceptions import InvalidConfiguration
from ..utils.validation import check_smooth_df

SmoothingMode = Literal['general-spline', 'unit-interval-spline']

MIN_GENERAL_SPLINE_POINTS = 5
_BRACKET_WIDTH = 12.0


def _reinsch_penalty(x: np.ndarray) -> np.ndarray:
    """Penalty matrix K = Q R^{-1} Q^T for knots at ``x``."""
    n = len(x)
    h = np.diff(x)

    Q = np.zeros((n, n - 2))
    R = np.zeros((n - 2, n - 2))
    for j in range(1, n - 1):
        c = j - 1
        Q[j - 1, c] = 1.0 / h[j - 1]
        Q[j, c] = -1.0 / h[j - 1] - 1.0 / h[j]
        Q[j + 1, c] = 1.0 / h[j]
        R[c, c] = (h[j - 1] + h[j]) / 3.0
        if c + 1 < n - 2:
            R[c, c + 1] = R[c + 1, c] = h[j] / 6.0

    return Q @ np.linalg.solve(R, Q.T)


def _penalty_spectrum(x: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    K = _reinsch_penalty(x)
    K = (K + K.T) / 2
    eigvals, eigvecs = np.linalg.eigh(K)
    # the constant and linear functions span the null space of K
    eigvals[eigvals < 1e-10 * eigvals.max()] = 0.0
    return eigvals, eigvecs


def _solve_log_penalty(eigvals: np.ndarray, df: float) -> float:
    """Log penalty t such that sum(1 / (1 + e^t d)) == df."""
    positive = eigvals[eigvals > 0]

    def excess_df(t):
        return np.sum(1.0 / (1.0 + np.exp(t) * eigvals)) - df

    t_lo = -np.log(positive.max()) - _BRACKET_WIDTH
    t_hi = -np.log(positive.min()) + _BRACKET_WIDTH
    return brentq(excess_df, t_lo, t_hi, xtol=1e-12)


class SplineSmoother:
    """
    Base class for smoothers over a fixed, shared λ grid.

    Parameters
    ----------
    x : np.ndarray, shape (n_points,)
        Strictly increasing grid (the λ sequence)
    df : float
        Equivalent degrees of freedom, at least 3 and below ``n_points``
    """

    mode = 'base'

    def __init__(self, x, df: float = 3):
        self.x = np.asarray(x, dtype=float)
        self.df = check_smooth_df(df)
        n = len(self.x)
        if n <= self.df:
            raise InvalidConfiguration(
                f"{n} smoothing points are too few for df={self.df}; "
                f"need more than {self.df}"
            )

    def smooth(self, Y: np.ndarray) -> np.ndarray:
        """
        Smooth every row of ``Y``.

        Parameters
        ----------
        Y : np.ndarray, shape (n_rows, n_points)
            One curve per row, sampled on ``self.x``

        Returns
        -------
        smoothed : np.ndarray, shape (n_rows, n_points)
            Fitted spline values at ``self.x``
        """
        raise NotImplementedError

    def evaluate_top(self, Y: np.ndarray) -> np.ndarray:
        """Smoothed value of each row at the largest grid point."""
        return self.smooth(Y)[:, -1]


class UnitIntervalSplineSmoother(SplineSmoother):
    """Closed-form smoother matrix, shared by all rows."""

    mode = 'unit-interval-spline'

    def __init__(self, x, df: float = 3):
        super().__init__(x, df)
        self.S_ = _unit_interval_smoother_matrix(tuple(self.x), self.df)

    def smooth(self, Y: np.ndarray) -> np.ndarray:
        Y = np.atleast_2d(np.asarray(Y, dtype=float))
        return Y @ self.S_.T

    def evaluate_top(self, Y: np.ndarray) -> np.ndarray:
        Y = np.atleast_2d(np.asarray(Y, dtype=float))
        return Y @ self.S_[-1]


@lru_cache(maxsize=32)
def _unit_interval_smoother_matrix(x: tuple, df: float) -> np.ndarray:
    x = np.asarray(x)
    u = (x - x[0]) / (x[-1] - x[0])

    eigvals, eigvecs = _penalty_spectrum(u)
    t = _solve_log_penalty(eigvals, df)
    shrink = 1.0 / (1.0 + np.exp(t) * eigvals)

    S = (eigvecs * shrink) @ eigvecs.T
    S.setflags(write=False)
    return S


class GeneralSplineSmoother(SplineSmoother):
    """
    One ``make_smoothing_spline`` fit per distinct row.

    The penalty ``lam`` is calibrated once per (grid, df) by root-finding on
    the trace of the hat matrix of the scipy smoother itself.
    """

    mode = 'general-spline'

    def __init__(self, x, df: float = 3):
        super().__init__(x, df)
        if len(self.x) < MIN_GENERAL_SPLINE_POINTS:
            raise InvalidConfiguration(
                f"general-spline smoothing needs at least "
                f"{MIN_GENERAL_SPLINE_POINTS} lambda values, got {len(self.x)}"
            )
        self.lam_ = _general_spline_penalty(tuple(self.x), self.df)

    def smooth(self, Y: np.ndarray) -> np.ndarray:
        Y = np.atleast_2d(np.asarray(Y, dtype=float))
        # identical rows (e.g. no covariates, or a categorical covariate) share one fit
        unique_rows, inverse = np.unique(Y, axis=0, return_inverse=True)
        fitted = np.empty_like(unique_rows)
        for k, row in enumerate(unique_rows):
            spline = make_smoothing_spline(self.x, row, lam=self.lam_)
            fitted[k] = spline(self.x)
        return fitted[np.ravel(inverse)]


def _scipy_hat_trace(x: np.ndarray, lam: float) -> float:
    n = len(x)
    trace = 0.0
    for k in range(n):
        e_k = np.zeros(n)
        e_k[k] = 1.0
        trace += make_smoothing_spline(x, e_k, lam=lam)(x[k])
    return trace


@lru_cache(maxsize=32)
def _general_spline_penalty(x: tuple, df: float) -> float:
    x = np.asarray(x)
    eigvals, _ = _penalty_spectrum(x)
    t_guess = _solve_log_penalty(eigvals, df)

    def excess_df(t):
        return _scipy_hat_trace(x, np.exp(t)) - df

    t_lo, t_hi = t_guess - 5.0, t_guess + 5.0
    for _ in range(8):
        if excess_df(t_lo) >= 0:
            break
        t_lo -= 5.0
    for _ in range(8):
        if excess_df(t_hi) <= 0:
            break
        t_hi += 5.0
    return float(np.exp(brentq(excess_df, t_lo, t_hi, xtol=1e-10)))


_SMOOTHERS = {
    'general-spline': GeneralSplineSmoother,
    'unit-interval-spline': UnitIntervalSplineSmoother,
}


def make_smoother(x, df: float = 3, mode: SmoothingMode = 'unit-interval-spline') -> SplineSmoother:
    """Build the smoother for ``mode`` over grid ``x``."""
    if mode not in _SMOOTHERS:
        raise InvalidConfiguration(
            f"Unknown smoothing mode: {mode!r} (expected one of {sorted(_SMOOTHERS)})"
        )
    return _SMOOTHERS[mode](x, df)
