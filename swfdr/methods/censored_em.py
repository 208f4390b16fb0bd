"""
Science-wise false discovery rate from truncated and rounded p-values.

Published p-values below the reporting threshold t (0.05) are modelled as
a two-component mixture on [0, t]:

    f(p) = π₀ · U(0, t) + (1 - π₀) · Beta(α, β) truncated to [0, t]

Three kinds of observations enter the likelihood:

- exact:     reported to full precision, contributes the density at p
- truncated: reported as "p < c", contributes the probability of [0, c)
- rounded:   reported to limited precision, contributes the probability of
             the rounding bin containing the reported value

π₀ is fitted by EM; it is the estimated fraction of false discoveries among
the published significant results.

Reference: Jager & Leek (2014), "An estimate of the science-wise false
discovery rate and application to the top medical literature".
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass, replace
from typing import Optional, Sequence
from scipy.optimize import minimize
from scipy.special import betainc, betaln

from ..config import SwfdrConfig, DEFAULT_CUTS
from ..exceptions import DegenerateFit, InvalidConfiguration
from ..utils import logging as log
from ..utils.validation import check_flags

_LOG_SHAPE_BOUNDS = (np.log(1e-3), np.log(1e4))
_TINY = 1e-300


@dataclass(frozen=True)
class MixtureState:
    """Mixing proportion of the null and Beta shapes of the alternative."""
    pi0: float
    alpha: float
    beta: float

    def as_array(self) -> np.ndarray:
        return np.array([self.pi0, self.alpha, self.beta])

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.as_array())))


@dataclass(frozen=True)
class CensoredCorpus:
    """
    Pre-processed corpus of published p-values.

    Attributes
    ----------
    p : np.ndarray
        Reported values
    truncated, rounded : np.ndarray of bool
        Censoring flags
    exact : np.ndarray of bool
        Neither truncated nor rounded
    lower, upper : np.ndarray
        Interval known to contain the true value (censored entries only;
        equal to ``p`` for exact entries)
    bin_index : np.ndarray of int
        Rounding bin of rounded, non-truncated entries; -1 otherwise
    edges : np.ndarray
        Bin edges ``[0, cuts...]``
    interval_lower, interval_upper : np.ndarray
        Distinct censoring intervals
    interval_index : np.ndarray of int
        For every censored entry, its position in the distinct intervals;
        -1 for exact entries
    threshold : float
        Reporting threshold
    """
    p: np.ndarray
    truncated: np.ndarray
    rounded: np.ndarray
    exact: np.ndarray
    lower: np.ndarray
    upper: np.ndarray
    bin_index: np.ndarray
    edges: np.ndarray
    interval_lower: np.ndarray
    interval_upper: np.ndarray
    interval_index: np.ndarray
    threshold: float

    @property
    def n_bins(self) -> int:
        return len(self.edges) - 1

    def __len__(self) -> int:
        return len(self.p)

    @classmethod
    def from_arrays(
        cls,
        p_values,
        truncated,
        rounded,
        threshold: float = 0.05,
        cuts: Sequence[float] = DEFAULT_CUTS
    ) -> 'CensoredCorpus':
        """
        Validate the corpus and assign every censored entry its interval.

        Entries flagged both truncated and rounded are treated as truncated:
        the bound is what carries the information.
        """
        p = np.asarray(p_values, dtype=float).ravel()
        n = len(p)
        if n == 0:
            raise InvalidConfiguration("corpus must contain at least one p-value")
        truncated = check_flags(truncated, n, 'truncated')
        rounded = check_flags(rounded, n, 'rounded')

        if not np.all(np.isfinite(p)):
            raise InvalidConfiguration("corpus p-values contain missing or non-finite values")
        if p.min() < 0 or p.max() > threshold:
            raise InvalidConfiguration(
                f"corpus p-values must lie in [0, {threshold}], "
                f"got range [{p.min():.4g}, {p.max():.4g}]"
            )

        exact = ~truncated & ~rounded
        if np.any(p[exact | truncated] <= 0):
            raise InvalidConfiguration(
                "exact and truncated p-values must be positive; report zeros as rounded"
            )

        edges = np.concatenate([[0.0], np.asarray(cuts, dtype=float)])
        binned = rounded & ~truncated
        bin_index = np.full(n, -1, dtype=int)
        bin_index[binned] = np.clip(
            np.searchsorted(edges, p[binned], side='right') - 1, 0, len(edges) - 2
        )

        lower = p.copy()
        upper = p.copy()
        lower[truncated] = 0.0
        lower[binned] = edges[bin_index[binned]]
        upper[binned] = edges[bin_index[binned] + 1]

        censored = ~exact
        interval_index = np.full(n, -1, dtype=int)
        if censored.any():
            intervals, inverse = np.unique(
                np.column_stack([lower[censored], upper[censored]]), axis=0, return_inverse=True
            )
            interval_index[censored] = np.ravel(inverse)
        else:
            intervals = np.empty((0, 2))

        return cls(
            p=p,
            truncated=truncated,
            rounded=rounded,
            exact=exact,
            lower=lower,
            upper=upper,
            bin_index=bin_index,
            edges=edges,
            interval_lower=intervals[:, 0],
            interval_upper=intervals[:, 1],
            interval_index=interval_index,
            threshold=float(threshold)
        )


def _log_alternative(alpha: float, beta: float, corpus: CensoredCorpus):
    """
    Log-likelihood of each kind of observation under the truncated Beta.

    Returns
    -------
    log_exact : np.ndarray
        Log density at every exact p-value
    log_interval : np.ndarray
        Log probability of every distinct censoring interval
    """
    log_norm = np.log(max(betainc(alpha, beta, corpus.threshold), _TINY))

    p_exact = corpus.p[corpus.exact]
    log_exact = (
        (alpha - 1) * np.log(p_exact)
        + (beta - 1) * np.log1p(-p_exact)
        - betaln(alpha, beta)
        - log_norm
    )

    mass = betainc(alpha, beta, corpus.interval_upper) - betainc(alpha, beta, corpus.interval_lower)
    log_interval = np.log(np.maximum(mass, _TINY)) - log_norm
    return log_exact, log_interval


def _component_likelihoods(state: MixtureState, corpus: CensoredCorpus):
    """Per-observation likelihood under the null and under the alternative."""
    f0 = np.where(corpus.exact, 1.0, corpus.upper - corpus.lower) / corpus.threshold

    log_exact, log_interval = _log_alternative(state.alpha, state.beta, corpus)
    f1 = np.empty(len(corpus))
    f1[corpus.exact] = np.exp(log_exact)
    censored = ~corpus.exact
    f1[censored] = np.exp(log_interval[corpus.interval_index[censored]])
    return f0, f1


def e_step(state: MixtureState, corpus: CensoredCorpus) -> np.ndarray:
    """
    Posterior probability that each observation comes from the null.

    Returns
    -------
    z : np.ndarray, shape (n,)
        ``π₀ f0 / (π₀ f0 + (1 - π₀) f1)`` for every observation, using the
        point density for exact entries and the interval probability for
        censored ones
    """
    f0, f1 = _component_likelihoods(state, corpus)
    null = state.pi0 * f0
    return null / np.maximum(null + (1 - state.pi0) * f1, _TINY)


def log_likelihood(state: MixtureState, corpus: CensoredCorpus) -> float:
    f0, f1 = _component_likelihoods(state, corpus)
    mix = state.pi0 * f0 + (1 - state.pi0) * f1
    return float(np.sum(np.log(np.maximum(mix, _TINY))))


def m_step(z: np.ndarray, corpus: CensoredCorpus, state: MixtureState) -> MixtureState:
    """
    Maximise the expected complete-data log-likelihood.

    π₀ is the mean posterior null probability. (α, β) maximise the
    alternative log-likelihood weighted by ``1 - z``, starting from the
    current state, over log-shapes with L-BFGS-B.
    """
    pi0 = float(np.mean(z))

    w = 1.0 - z
    w_exact = w[corpus.exact]
    censored = ~corpus.exact
    w_interval = np.bincount(
        corpus.interval_index[censored],
        weights=w[censored],
        minlength=len(corpus.interval_lower)
    )
    if w.sum() <= 0:
        return replace(state, pi0=pi0)

    def neg_loglik(log_shapes):
        a, b = np.exp(log_shapes)
        log_exact, log_interval = _log_alternative(a, b, corpus)
        return -(np.dot(w_exact, log_exact) + np.dot(w_interval, log_interval))

    result = minimize(
        neg_loglik,
        x0=np.log([state.alpha, state.beta]),
        method='L-BFGS-B',
        bounds=[_LOG_SHAPE_BOUNDS, _LOG_SHAPE_BOUNDS]
    )
    alpha, beta = np.exp(result.x)
    return MixtureState(pi0=pi0, alpha=float(alpha), beta=float(beta))


def em_step(state: MixtureState, corpus: CensoredCorpus) -> MixtureState:
    """One EM iteration; returns the next state and leaves ``state`` alone."""
    return m_step(e_step(state, corpus), corpus, state)


@dataclass
class SwfdrResult:
    """
    Attributes
    ----------
    pi0 : float
        Estimated science-wise false discovery rate
    alpha, beta : float
        Shapes of the truncated Beta alternative
    z : np.ndarray
        Posterior null probability per observation; NaN for rounded entries
    n0 : np.ndarray
        Expected number of null observations per rounding bin
    n : np.ndarray
        Observed number of rounded observations per rounding bin
    bins : pd.DataFrame
        ``lower``, ``upper``, ``observed``, ``expected_null``,
        ``expected_alternative`` per rounding bin
    n_iter : int
        EM iterations actually run
    converged : bool
        True when stopped by ``tol``
    history : pd.DataFrame
        ``pi0``, ``alpha``, ``beta``, ``log_likelihood`` per iteration
        (row 0 is the initial state)
    """
    pi0: float
    alpha: float
    beta: float
    z: np.ndarray
    n0: np.ndarray
    n: np.ndarray
    bins: pd.DataFrame
    n_iter: int
    converged: bool
    history: pd.DataFrame

    @property
    def state(self) -> MixtureState:
        return MixtureState(self.pi0, self.alpha, self.beta)


class CensoredEMEstimator:
    """
    EM fit of the censored uniform / truncated-Beta mixture.

    Parameters
    ----------
    config : SwfdrConfig, optional
        Priors, iteration count, threshold and rounding cuts
    verbose : bool, default=False
        Log progress every 10 iterations
    """

    def __init__(self, config: Optional[SwfdrConfig] = None, verbose: bool = False):
        self.config = config if config is not None else SwfdrConfig()
        self.verbose = verbose

    def fit(self, p_values, truncated, rounded) -> SwfdrResult:
        cfg = self.config
        corpus = CensoredCorpus.from_arrays(
            p_values, truncated, rounded, threshold=cfg.threshold, cuts=cfg.cuts
        )

        state = MixtureState(pi0=cfg.pi0, alpha=cfg.alpha, beta=cfg.beta)
        history = [(0,) + tuple(state.as_array()) + (log_likelihood(state, corpus),)]
        converged = False

        iteration = 0
        for iteration in range(1, cfg.n_iter + 1):
            new_state = em_step(state, corpus)
            loglik = log_likelihood(new_state, corpus)

            if not new_state.is_finite() or not np.isfinite(loglik):
                raise DegenerateFit(
                    f"EM iteration {iteration} produced a non-finite state "
                    f"(pi0={new_state.pi0}, alpha={new_state.alpha}, beta={new_state.beta}) "
                    f"from pi0={state.pi0:.6g}, alpha={state.alpha:.6g}, beta={state.beta:.6g}",
                    iteration=iteration
                )

            change = np.max(np.abs(new_state.as_array() - state.as_array()))
            state = new_state
            history.append((iteration,) + tuple(state.as_array()) + (loglik,))

            if self.verbose and iteration % 10 == 0:
                log.info(f"  Iter {iteration}: pi0={state.pi0:.4f}, alpha={state.alpha:.4f}, "
                         f"beta={state.beta:.3f}, loglik={loglik:.3f}")

            if cfg.tol is not None and change < cfg.tol:
                converged = True
                if self.verbose:
                    log.info(f"  Converged at iteration {iteration}")
                break

        return self._summarise(state, corpus, iteration, converged, history)

    def _summarise(self, state, corpus, n_iter, converged, history) -> SwfdrResult:
        z_all = e_step(state, corpus)

        binned = corpus.bin_index >= 0
        n_obs = np.bincount(corpus.bin_index[binned], minlength=corpus.n_bins).astype(float)
        n0 = np.bincount(
            corpus.bin_index[binned], weights=z_all[binned], minlength=corpus.n_bins
        )

        z = z_all.copy()
        z[corpus.rounded] = np.nan

        bins = pd.DataFrame({
            'lower': corpus.edges[:-1],
            'upper': corpus.edges[1:],
            'observed': n_obs,
            'expected_null': n0,
            'expected_alternative': n_obs - n0,
        })
        history = pd.DataFrame(
            history, columns=['iteration', 'pi0', 'alpha', 'beta', 'log_likelihood']
        ).set_index('iteration')

        return SwfdrResult(
            pi0=state.pi0,
            alpha=state.alpha,
            beta=state.beta,
            z=z,
            n0=n0,
            n=n_obs,
            bins=bins,
            n_iter=n_iter,
            converged=converged,
            history=history
        )


def calculate_swfdr(
    p_values,
    truncated,
    rounded,
    pi0: float = 0.5,
    alpha: float = 1.0,
    beta: float = 50.0,
    n_iter: int = 100,
    tol: Optional[float] = None,
    verbose: bool = False
) -> SwfdrResult:
    """
    Estimate the science-wise false discovery rate of a p-value corpus.

    Parameters
    ----------
    p_values : array-like, shape (n,)
        Reported p-values, all at most 0.05
    truncated : array-like of 0/1, shape (n,)
        1 when the value was reported as "p < value"
    rounded : array-like of 0/1, shape (n,)
        1 when the value was reported with limited precision
    pi0, alpha, beta : float
        Initial mixture parameters
    n_iter : int, default=100
        EM iterations
    tol : float, optional
        Early-stopping tolerance on the parameter change

    Returns
    -------
    result : SwfdrResult
    """
    config = SwfdrConfig(pi0=pi0, alpha=alpha, beta=beta, n_iter=n_iter, tol=tol)
    return CensoredEMEstimator(config, verbose=verbose).fit(p_values, truncated, rounded)
