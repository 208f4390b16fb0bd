"""
Exception types raised by the estimators.

InvalidConfiguration covers every problem detectable before any fitting
starts (bad degrees of freedom, bad lambda grids, malformed inputs).
DegenerateFit covers numeric failures local to one lambda column or one
EM iteration.
"""

from typing import Optional


class InvalidConfiguration(ValueError):
    """Inputs or settings that cannot be estimated from."""


class DegenerateFit(RuntimeError):
    """
    A single regression or EM iteration produced unusable output.

    Parameters
    ----------
    message : str
        Human readable description
    lambda_value : float, optional
        Lambda threshold of the failing regression column
    column : int, optional
        Index of the failing column in the lambda sequence
    iteration : int, optional
        EM iteration (1-based) that produced the failure
    """

    def __init__(
        self,
        message: str,
        lambda_value: Optional[float] = None,
        column: Optional[int] = None,
        iteration: Optional[int] = None
    ):
        super().__init__(message)
        self.lambda_value = lambda_value
        self.column = column
        self.iteration = iteration
