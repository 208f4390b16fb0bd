"""
Stage 1 of covariate-conditioned pi0 estimation: the lambda sweep.

For every threshold λ_j the indicator ``p > λ_j`` is regressed on the
covariates; the fitted value for row i, divided by (1 - λ_j), is the
pi0(λ_j) estimate for that test:

    pi0_i(λ) = P(p_i > λ | x_i) / (1 - λ)

Without covariates the regression collapses to the sample mean of the
indicator, which is exactly the classical Storey estimate.
"""

import warnings
import numpy as np
from dataclasses import dataclass
from typing import Optional
from sklearn.exceptions import ConvergenceWarning

from ..exceptions import DegenerateFit
from ..utils import logging as log
from ..utils.validation import check_pvalues, check_design_matrix, check_lambda
from .regression import RegressionBackend, RegressionType, get_backend


@dataclass
class LambdaSweepResult:
    """
    Output of the sweep.

    Attributes
    ----------
    lambda_ : np.ndarray, shape (n_lambda,)
        Thresholds used
    fitted : np.ndarray, shape (n_tests, n_lambda)
        Fitted probability that p_i exceeds λ_j
    pi0_lambda : np.ndarray, shape (n_tests, n_lambda)
        ``fitted / (1 - λ_j)``
    """
    lambda_: np.ndarray
    fitted: np.ndarray
    pi0_lambda: np.ndarray


class LambdaSweepEstimator:
    """
    Fit one regression per lambda threshold.

    Parameters
    ----------
    type_ : {'logistic', 'linear'}, default='logistic'
        Regression used for each threshold
    backend : RegressionBackend, optional
        Overrides ``type_`` with a custom backend
    verbose : bool, default=False
        Log one line per lambda column
    """

    def __init__(
        self,
        type_: RegressionType = 'logistic',
        backend: Optional[RegressionBackend] = None,
        verbose: bool = False
    ):
        self.type_ = type_
        self.backend = backend if backend is not None else get_backend(type_)
        self.verbose = verbose

    def fit(self, p_values, X=None, lambda_=None) -> LambdaSweepResult:
        """
        Run the sweep.

        Parameters
        ----------
        p_values : array-like, shape (n_tests,)
        X : array-like, shape (n_tests, n_covariates), optional
            Covariates. None or zero columns means no covariates.
        lambda_ : array-like, optional
            Thresholds; defaults to 0.05, 0.10, ..., 0.95

        Returns
        -------
        result : LambdaSweepResult
        """
        p = check_pvalues(p_values)
        X = check_design_matrix(X, len(p))
        lam = check_lambda(lambda_)

        m = len(p)
        fitted = np.empty((m, len(lam)))

        for j, lam_j in enumerate(lam):
            y = (p > lam_j).astype(float)

            if X.shape[1] == 0:
                fitted[:, j] = y.mean()
            else:
                fitted[:, j] = self._fit_column(X, y, lam_j, j)

            if self.verbose:
                log.info(f"  λ={lam_j:.3f}: mean fitted={fitted[:, j].mean():.4f}, "
                         f"range=[{fitted[:, j].min():.4f}, {fitted[:, j].max():.4f}]")

        pi0_lambda = fitted / (1 - lam)

        return LambdaSweepResult(lambda_=lam, fitted=fitted, pi0_lambda=pi0_lambda)

    def _fit_column(self, X: np.ndarray, y: np.ndarray, lam_j: float, j: int) -> np.ndarray:
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter('always', ConvergenceWarning)
            try:
                pred = self.backend.fit_predict(X, y)
            except (ValueError, np.linalg.LinAlgError) as e:
                raise DegenerateFit(
                    f"{self.backend.name} regression failed at λ={lam_j:.4g} "
                    f"(column {j}): {e}",
                    lambda_value=float(lam_j),
                    column=j
                ) from e

        for w in caught:
            if issubclass(w.category, ConvergenceWarning):
                log.warn(f"{self.backend.name} regression did not converge at "
                         f"λ={lam_j:.4g} (column {j}); using last iterate")
            else:
                warnings.warn_explicit(w.message, w.category, w.filename, w.lineno)

        if pred.shape[0] != len(y) or not np.all(np.isfinite(pred)):
            raise DegenerateFit(
                f"{self.backend.name} regression returned undefined predictions at "
                f"λ={lam_j:.4g} (column {j})",
                lambda_value=float(lam_j),
                column=j
            )
        return pred


def sweep_lambda(
    p_values,
    X=None,
    lambda_=None,
    type_: RegressionType = 'logistic'
) -> LambdaSweepResult:
    """Functional wrapper around ``LambdaSweepEstimator(type_).fit``."""
    return LambdaSweepEstimator(type_=type_).fit(p_values, X, lambda_)
