"""
Baseline multiple-testing procedures.

BH-adjusted p-values and the classical single-pi0 q-value of Storey &
Tibshirani (2003). These are the no-covariate references the
covariate-conditioned estimators reduce to.
"""

import numpy as np
from typing import Tuple

from ..utils.validation import check_lambda, check_pvalues
from .smoothing import SmoothingMode, make_smoother


def bh_adjust(p_values: np.ndarray) -> np.ndarray:
    """
    BH-adjusted p-values, min(1, min_{j >= i} m p_(j) / j), in input order.
    """
    p = np.asarray(p_values, dtype=float)
    m = len(p)
    order = np.argsort(p, kind='mergesort')
    ranks = np.arange(1, m + 1)

    adjusted = np.minimum.accumulate((p[order] * m / ranks)[::-1])[::-1]

    out = np.empty(m)
    out[order] = np.minimum(adjusted, 1.0)
    return out


def classical_pi0(
    p_values,
    lambda_=None,
    smooth_df: float = 3,
    smoothing: SmoothingMode = 'general-spline'
) -> Tuple[float, np.ndarray]:
    """
    Storey's smoother estimate of a single pi0.

    pi0(λ) is computed on the whole grid, smoothed with a cubic smoothing
    spline of ``smooth_df`` degrees of freedom and read at the largest λ.

    Returns
    -------
    pi0 : float
        Estimate clipped to [0, 1]
    pi0_lambda : np.ndarray, shape (n_lambda,)
        Unsmoothed pi0(λ)
    """
    p = check_pvalues(p_values)
    lam = check_lambda(lambda_, smooth_df)

    pi0_lambda = np.array([np.mean(p > l) for l in lam]) / (1 - lam)

    if len(lam) == 1:
        pi0 = pi0_lambda[0]
    else:
        smoother = make_smoother(lam, df=smooth_df, mode=smoothing)
        pi0 = smoother.smooth(pi0_lambda[np.newaxis, :])[0, -1]

    return float(np.clip(pi0, 0.0, 1.0)), pi0_lambda


def classical_qvalues(p_values, pi0: float) -> np.ndarray:
    """
    Classical q-values: pi0 * min(1, min_{j >= i} m p_(j) / j).
    """
    p = check_pvalues(p_values)
    m = len(p)
    order = np.argsort(p, kind='mergesort')[::-1]
    i = np.arange(m, 0, -1)

    q = np.empty(m)
    q[order] = pi0 * np.minimum(1.0, np.minimum.accumulate(p[order] * m / i))
    return q
