"""
Regression backends used by the lambda sweep.

Both backends fit ``y ~ 1 + X`` without regularisation and return the
fitted value for every training row. They are stateless between calls.
"""

import numpy as np
from typing import Literal
from sklearn.linear_model import LinearRegression, LogisticRegression
from sklearn.pipeline import make_pipeline
from sklearn.preprocessing import StandardScaler

from ..exceptions import InvalidConfiguration

RegressionType = Literal['logistic', 'linear']


class RegressionBackend:
    """
    Base class: fit a regression of ``y`` on ``X`` and return fitted values.

    Subclasses implement ``_fit_predict``. ``fit_predict`` only normalises
    shapes and dtypes.
    """

    name = 'base'

    def fit_predict(self, X: np.ndarray, y: np.ndarray) -> np.ndarray:
        """
        Parameters
        ----------
        X : np.ndarray, shape (n_samples, n_features)
            Design matrix without intercept column
        y : np.ndarray, shape (n_samples,)
            Binary (0/1) or real response

        Returns
        -------
        fitted : np.ndarray, shape (n_samples,)
            Fitted value for every row
        """
        X = np.asarray(X, dtype=float)
        y = np.asarray(y, dtype=float).ravel()
        return np.asarray(self._fit_predict(X, y), dtype=float).ravel()

    def _fit_predict(self, X: np.ndarray, y: np.ndarray) -> np.ndarray:
        raise NotImplementedError


class LogisticBackend(RegressionBackend):
    """
    Unpenalised logistic regression.

    Covariates are standardised before fitting; with an intercept and no
    penalty this leaves the fitted probabilities unchanged and only helps
    the solver. A constant response has that constant as its
    maximum-likelihood fit, which is returned directly.

    Parameters
    ----------
    max_iter : int, default=1000
        Maximum L-BFGS iterations
    tol : float, default=1e-8
        Solver tolerance
    """

    name = 'logistic'

    def __init__(self, max_iter: int = 1000, tol: float = 1e-8):
        self.max_iter = max_iter
        self.tol = tol

    def _fit_predict(self, X: np.ndarray, y: np.ndarray) -> np.ndarray:
        if np.all(y == y[0]):
            return np.full(len(y), y[0])

        model = make_pipeline(
            StandardScaler(),
            LogisticRegression(C=np.inf, max_iter=self.max_iter, tol=self.tol)
        )
        model.fit(X, y.astype(int))
        return model.predict_proba(X)[:, 1]


class LinearBackend(RegressionBackend):
    """Ordinary least squares; fitted values are not clipped."""

    name = 'linear'

    def _fit_predict(self, X: np.ndarray, y: np.ndarray) -> np.ndarray:
        model = LinearRegression()
        model.fit(X, y)
        return model.predict(X)


_BACKENDS = {
    'logistic': LogisticBackend,
    'linear': LinearBackend,
}


def get_backend(type_: str, **kwargs) -> RegressionBackend:
    """Return a backend instance for ``'logistic'`` or ``'linear'``."""
    if type_ not in _BACKENDS:
        raise InvalidConfiguration(
            f"Unknown regression type: {type_!r} (expected one of {sorted(_BACKENDS)})"
        )
    return _BACKENDS[type_](**kwargs)
