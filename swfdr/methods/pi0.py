"""
Covariate-conditioned estimation of the null probability pi0(x).

Two decoupled stages:
1. ``LambdaSweepEstimator`` produces the (n_tests, n_lambda) matrix of
   pi0(λ) estimates, one regression per λ.
2. ``Pi0Smoother`` reduces every row of that matrix to one number by
   smoothing the row against λ and reading the fit at the largest λ.

Reference: Boca & Leek (2018), "A direct approach to estimating false
discovery rates conditional on covariates".
"""

import warnings
import numpy as np
from dataclasses import dataclass
from typing import Optional

from ..config import Pi0Config
from ..utils import logging as log
from ..utils.validation import check_lambda, check_smooth_df
from .lambda_sweep import LambdaSweepEstimator
from .regression import RegressionType
from .smoothing import SmoothingMode, make_smoother

NO_COVARIATES_MESSAGE = (
    "No covariates supplied (X is None); estimating an unconditioned pi0 "
    "from an intercept-only model."
)


@dataclass
class Pi0Result:
    """
    Attributes
    ----------
    pi0 : np.ndarray, shape (n_tests,)
        Final per-test estimate
    pi0_lambda : np.ndarray, shape (n_tests, n_lambda)
        Raw pi0(λ) estimates from the regressions
    lambda_ : np.ndarray, shape (n_lambda,)
        Thresholds used
    pi0_smooth : np.ndarray, shape (n_tests, n_lambda)
        Smoothed pi0(λ) curves (equal to ``pi0_lambda`` for a single λ)
    fitted : np.ndarray, shape (n_tests, n_lambda)
        Fitted probabilities P(p > λ | x) before rescaling by 1 - λ
    """
    pi0: np.ndarray
    pi0_lambda: np.ndarray
    lambda_: np.ndarray
    pi0_smooth: np.ndarray
    fitted: np.ndarray


class Pi0Smoother:
    """
    Reduce pi0(λ) curves to a single pi0 per test.

    Parameters
    ----------
    smoothing : {'unit-interval-spline', 'general-spline'}
        Spline implementation, see ``swfdr.methods.smoothing``
    smooth_df : float, default=3
        Equivalent degrees of freedom of the spline (at least 3)
    threshold : bool, default=True
        Clip final estimates to [0, 1]
    """

    def __init__(
        self,
        smoothing: SmoothingMode = 'unit-interval-spline',
        smooth_df: float = 3,
        threshold: bool = True
    ):
        self.smoothing = smoothing
        self.smooth_df = check_smooth_df(smooth_df)
        self.threshold = threshold

    def smooth(self, pi0_lambda: np.ndarray, lambda_) -> tuple:
        """
        Parameters
        ----------
        pi0_lambda : np.ndarray, shape (n_tests, n_lambda)
        lambda_ : array-like, shape (n_lambda,)

        Returns
        -------
        pi0 : np.ndarray, shape (n_tests,)
        pi0_smooth : np.ndarray, shape (n_tests, n_lambda)
        """
        lam = check_lambda(lambda_, smooth_df=self.smooth_df)
        pi0_lambda = np.atleast_2d(np.asarray(pi0_lambda, dtype=float))

        if len(lam) == 1:
            pi0_smooth = pi0_lambda.copy()
        else:
            smoother = make_smoother(lam, df=self.smooth_df, mode=self.smoothing)
            pi0_smooth = smoother.smooth(pi0_lambda)

        pi0 = pi0_smooth[:, -1].copy()
        if self.threshold:
            pi0 = np.clip(pi0, 0.0, 1.0)
        return pi0, pi0_smooth


class Pi0Estimator:
    """
    Lambda sweep followed by per-row smoothing.

    Parameters
    ----------
    config : Pi0Config, optional
        Estimation settings; defaults to ``Pi0Config()``
    verbose : bool, default=False
    """

    def __init__(self, config: Optional[Pi0Config] = None, verbose: bool = False):
        self.config = config if config is not None else Pi0Config()
        self.verbose = verbose

        self.sweep = LambdaSweepEstimator(type_=self.config.type_, verbose=verbose)
        self.smoother = Pi0Smoother(
            smoothing=self.config.smoothing,
            smooth_df=self.config.smooth_df,
            threshold=self.config.threshold
        )

    def fit(self, p_values, X=None) -> Pi0Result:
        if X is None:
            warnings.warn(NO_COVARIATES_MESSAGE, UserWarning, stacklevel=3)
            log.warn(NO_COVARIATES_MESSAGE)

        sweep = self.sweep.fit(p_values, X, self.config.lambda_)
        pi0, pi0_smooth = self.smoother.smooth(sweep.pi0_lambda, sweep.lambda_)

        if self.verbose:
            log.info(f"pi0 ({self.config.smoothing}, df={self.config.smooth_df:g}): "
                     f"mean={pi0.mean():.4f}, range=[{pi0.min():.4f}, {pi0.max():.4f}]")

        return Pi0Result(
            pi0=pi0,
            pi0_lambda=sweep.pi0_lambda,
            lambda_=sweep.lambda_,
            pi0_smooth=pi0_smooth,
            fitted=sweep.fitted
        )


def lm_pi0(
    p_values,
    X=None,
    lambda_=None,
    type_: RegressionType = 'logistic',
    smoothing: SmoothingMode = 'unit-interval-spline',
    smooth_df: float = 3,
    threshold: bool = True,
    verbose: bool = False
) -> Pi0Result:
    """
    Estimate pi0(x) for every test.

    Parameters
    ----------
    p_values : array-like, shape (n_tests,)
        P-values
    X : array-like, shape (n_tests, n_covariates), optional
        Covariates; omitted means unconditioned estimation (with a warning)
    lambda_ : array-like, optional
        Thresholds; default 0.05, 0.10, ..., 0.95
    type_ : {'logistic', 'linear'}, default='logistic'
    smoothing : {'unit-interval-spline', 'general-spline'}
    smooth_df : float, default=3
    threshold : bool, default=True
        Clip pi0 to [0, 1]

    Returns
    -------
    result : Pi0Result
    """
    config = Pi0Config(
        lambda_=lambda_,
        type_=type_,
        smoothing=smoothing,
        smooth_df=smooth_df,
        threshold=threshold
    )
    return Pi0Estimator(config, verbose=verbose).fit(p_values, X)
