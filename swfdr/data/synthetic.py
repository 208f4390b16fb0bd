"""
Synthetic data generation for evaluating the estimators.

Two kinds of data:
- p-values with covariates whose null probability depends on the covariate,
  for the pi0(x) / q-value path;
- censored corpora drawn from a known uniform / truncated-Beta mixture,
  for the science-wise FDR path.

Labels follow the convention 1 = H0 (null), 0 = H1 (alternative).
"""

import numpy as np
import pandas as pd
from scipy import stats
from scipy.special import betainc, betaincinv
from typing import Callable, Sequence, Tuple

DEFAULT_TRUNCATION_BOUNDS = (0.001, 0.005, 0.01, 0.05)


def _one_sided_pvalues(z_scores: np.ndarray) -> np.ndarray:
    return stats.norm.sf(z_scores)


def generate_two_group_data(
    n_null: int = 1000,
    n_alt: int = 1000,
    effect_size: float = 2.0,
    random_state: int = 42
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Nulls N(0, 1), alternatives N(effect_size, 1), one-sided p-values.

    The returned covariate is the true label itself, so it separates the
    two groups perfectly.

    Returns
    -------
    p_values : np.ndarray, shape (n_null + n_alt,)
    true_labels : np.ndarray, shape (n_null + n_alt,)
        1 = H0, 0 = H1
    X : np.ndarray, shape (n_null + n_alt, 1)
        Covariate equal to ``true_labels``
    """
    rng = np.random.default_rng(random_state)

    true_labels = np.concatenate([np.ones(n_null, dtype=int), np.zeros(n_alt, dtype=int)])
    z_scores = rng.standard_normal(n_null + n_alt)
    z_scores[true_labels == 0] += effect_size

    p_values = _one_sided_pvalues(z_scores)
    X = true_labels.astype(float).reshape(-1, 1)
    return p_values, true_labels, X


def generate_covariate_data(
    n_samples: int = 2000,
    pi0_function: Callable[[np.ndarray], np.ndarray] = None,
    effect_size: float = 2.5,
    random_state: int = 42
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Continuous covariate x ~ U(0, 1) with null probability pi0(x).

    Parameters
    ----------
    n_samples : int
    pi0_function : callable, optional
        Maps covariate values to null probabilities; default 0.9 - 0.6 x
    effect_size : float
        Mean shift of the alternative z-scores
    random_state : int

    Returns
    -------
    p_values : np.ndarray, shape (n_samples,)
    true_labels : np.ndarray, shape (n_samples,)
    X : np.ndarray, shape (n_samples, 1)
    true_pi0 : np.ndarray, shape (n_samples,)
    """
    if pi0_function is None:
        def pi0_function(x):
            return 0.9 - 0.6 * x

    rng = np.random.default_rng(random_state)
    x = rng.uniform(0, 1, size=n_samples)
    true_pi0 = np.clip(pi0_function(x), 0, 1)

    true_labels = rng.binomial(1, true_pi0)
    z_scores = rng.standard_normal(n_samples)
    z_scores[true_labels == 0] += effect_size

    return _one_sided_pvalues(z_scores), true_labels, x.reshape(-1, 1), true_pi0


def generate_censored_corpus(
    n_samples: int = 5000,
    pi0: float = 0.2,
    alpha: float = 1.0,
    beta: float = 50.0,
    truncation_rate: float = 0.2,
    rounding_rate: float = 0.2,
    threshold: float = 0.05,
    truncation_bounds: Sequence[float] = DEFAULT_TRUNCATION_BOUNDS,
    decimals: int = 2,
    random_state: int = 42
) -> pd.DataFrame:
    """
    Draw a corpus of significant p-values from a known mixture.

    True values come from π₀ U(0, threshold) + (1 - π₀) Beta(α, β) truncated
    to [0, threshold]. A random ``truncation_rate`` share is offered a bound c
    drawn uniformly from ``truncation_bounds``, independently of p; those with
    p < c are reported as "p < c" and the others exactly. A random
    ``rounding_rate`` share of the entries not offered a bound is rounded to
    ``decimals`` places.

    Returns
    -------
    corpus : pd.DataFrame
        Columns ``pvalue``, ``truncated``, ``rounded``, ``is_null``,
        ``true_pvalue``
    """
    rng = np.random.default_rng(random_state)

    is_null = rng.random(n_samples) < pi0
    true_p = np.empty(n_samples)
    n_null = int(is_null.sum())
    true_p[is_null] = rng.uniform(0, threshold, size=n_null)

    # inverse-CDF sampling from the truncated Beta
    upper_mass = betainc(alpha, beta, threshold)
    u = rng.uniform(0, upper_mass, size=n_samples - n_null)
    true_p[~is_null] = betaincinv(alpha, beta, u)
    true_p = np.clip(true_p, np.finfo(float).tiny, threshold)

    offered = rng.random(n_samples) < truncation_rate
    rounded = ~offered & (rng.random(n_samples) < rounding_rate / max(1 - truncation_rate, 1e-12))

    # bound drawn independently of p
    bounds = np.asarray(truncation_bounds, dtype=float)
    bound = bounds[rng.integers(0, len(bounds), size=n_samples)]
    truncated = offered & (true_p < bound)

    reported = true_p.copy()
    reported[truncated] = bound[truncated]
    reported[rounded] = np.round(true_p[rounded], decimals)
    reported = np.minimum(reported, threshold)

    return pd.DataFrame({
        'pvalue': reported,
        'truncated': truncated.astype(int),
        'rounded': rounded.astype(int),
        'is_null': is_null.astype(int),
        'true_pvalue': true_p,
    })
