"""
Q-values from p-values and per-test pi0(x).

With a scalar pi0 this is the classical Storey q-value; with pi0(x) from
``lm_pi0`` each test's false discovery estimate is scaled by its own
null probability.
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass, field
from typing import Optional, Sequence

from ..config import Pi0Config, QValueConfig, DEFAULT_SUMMARY_CUTOFFS
from ..exceptions import InvalidConfiguration
from ..utils.validation import check_pvalues
from .baseline import bh_adjust
from .pi0 import Pi0Estimator, Pi0Result
from .regression import RegressionType
from .smoothing import SmoothingMode


class QValueComputer:
    """
    Step-up q-value transform.

    Parameters
    ----------
    enforce_monotone : bool, default=True
        True: q_(i) = min_{j >= i} pi0_(j) m p_(j) / j, so q-values never
        decrease with the p-value rank. Tied p-values all receive the
        smallest q-value of their tie group, independent of input order.
        False: q_i = pi0_i * BH(p_i); pi0 scales the already adjusted
        p-values, which keeps tests with a high null probability from
        inheriting small q-values of neighbouring low-pi0 tests.
        Both agree exactly when pi0 is constant.
    """

    def __init__(self, enforce_monotone: bool = True):
        self.enforce_monotone = enforce_monotone

    def compute(self, p_values, pi0) -> np.ndarray:
        """
        Parameters
        ----------
        p_values : array-like, shape (n_tests,)
        pi0 : float or array-like, shape (n_tests,)

        Returns
        -------
        qvalues : np.ndarray, shape (n_tests,)
            In the order of ``p_values``, each at most 1
        """
        p = check_pvalues(p_values)
        m = len(p)
        pi0 = np.asarray(pi0, dtype=float)
        if pi0.ndim == 0:
            pi0 = np.full(m, float(pi0))
        pi0 = pi0.ravel()
        if pi0.shape[0] != m:
            raise InvalidConfiguration(
                f"pi0 has {pi0.shape[0]} entries but there are {m} p-values"
            )
        if not np.all(np.isfinite(pi0)) or np.any(pi0 < 0):
            raise InvalidConfiguration("pi0 must be finite and non-negative")

        if not self.enforce_monotone:
            return np.minimum(pi0 * bh_adjust(p), 1.0)

        order = np.argsort(p, kind='mergesort')
        p_sorted = p[order]
        # tied p-values share the largest rank of their group, then its smallest q-value
        ranks = np.searchsorted(p_sorted, p_sorted, side='right')

        q_sorted = pi0[order] * (p_sorted * m / ranks)
        q_sorted = np.minimum.accumulate(q_sorted[::-1])[::-1]
        q_sorted = q_sorted[np.searchsorted(p_sorted, p_sorted, side='left')]

        qvalues = np.empty(m)
        qvalues[order] = np.minimum(q_sorted, 1.0)
        return qvalues


def hit_counts(
    p_values: np.ndarray,
    qvalues: np.ndarray,
    cutoffs: Sequence[float] = DEFAULT_SUMMARY_CUTOFFS
) -> pd.DataFrame:
    """
    Number of p-values and q-values at or below each cutoff.

    Returns
    -------
    summary : pd.DataFrame
        Index ``cutoff``; columns ``p-value`` and ``q-value``
    """
    p_values = np.asarray(p_values)
    qvalues = np.asarray(qvalues)
    return pd.DataFrame(
        {
            'p-value': [int(np.sum(p_values <= c)) for c in cutoffs],
            'q-value': [int(np.sum(qvalues <= c)) for c in cutoffs],
        },
        index=pd.Index(list(cutoffs), name='cutoff')
    )


@dataclass
class QValueResult:
    """
    Attributes
    ----------
    pvalues : np.ndarray
        Input p-values
    qvalues : np.ndarray
        Q-values, same order as ``pvalues``
    pi0 : np.ndarray
        Per-test null probability
    pi0_lambda, pi0_smooth, lambda_ :
        Copied from the underlying ``Pi0Result``
    fdr_level : float
        Cutoff used by ``significant``
    """
    pvalues: np.ndarray
    qvalues: np.ndarray
    pi0: np.ndarray
    pi0_lambda: np.ndarray
    pi0_smooth: np.ndarray
    lambda_: np.ndarray
    fdr_level: float = 0.05
    summary_cutoffs: list = field(default_factory=lambda: list(DEFAULT_SUMMARY_CUTOFFS))

    @property
    def significant(self) -> np.ndarray:
        return self.qvalues <= self.fdr_level

    def summary(self, cutoffs: Optional[Sequence[float]] = None) -> pd.DataFrame:
        return hit_counts(self.pvalues, self.qvalues, cutoffs or self.summary_cutoffs)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            'pvalue': self.pvalues,
            'pi0': self.pi0,
            'qvalue': self.qvalues,
            'significant': self.significant,
        })


class QValueEstimator:
    """pi0(x) estimation followed by the q-value transform."""

    def __init__(self, config: Optional[QValueConfig] = None, verbose: bool = False):
        self.config = config if config is not None else QValueConfig()
        self.pi0_estimator = Pi0Estimator(self.config.pi0, verbose=verbose)
        self.computer = QValueComputer(enforce_monotone=self.config.enforce_monotone)

    def fit(self, p_values, X=None) -> QValueResult:
        p = check_pvalues(p_values)
        pi0_result: Pi0Result = self.pi0_estimator.fit(p, X)
        qvalues = self.computer.compute(p, pi0_result.pi0)

        return QValueResult(
            pvalues=p,
            qvalues=qvalues,
            pi0=pi0_result.pi0,
            pi0_lambda=pi0_result.pi0_lambda,
            pi0_smooth=pi0_result.pi0_smooth,
            lambda_=pi0_result.lambda_,
            fdr_level=self.config.fdr_level,
            summary_cutoffs=list(self.config.summary_cutoffs)
        )


def lm_qvalue(
    p_values,
    X=None,
    lambda_=None,
    type_: RegressionType = 'logistic',
    smoothing: SmoothingMode = 'unit-interval-spline',
    smooth_df: float = 3,
    threshold: bool = True,
    enforce_monotone: bool = True,
    fdr_level: float = 0.05,
    verbose: bool = False
) -> QValueResult:
    """
    Covariate-conditioned q-values.

    Takes the arguments of ``lm_pi0`` plus ``enforce_monotone`` (see
    ``QValueComputer``) and ``fdr_level`` (cutoff for ``significant``).

    Returns
    -------
    result : QValueResult
    """
    config = QValueConfig(
        pi0=Pi0Config(
            lambda_=lambda_,
            type_=type_,
            smoothing=smoothing,
            smooth_df=smooth_df,
            threshold=threshold
        ),
        enforce_monotone=enforce_monotone,
        fdr_level=fdr_level
    )
    return QValueEstimator(config, verbose=verbose).fit(p_values, X)
