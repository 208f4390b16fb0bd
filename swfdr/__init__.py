"""
swfdr
=====

Covariate-conditioned estimation of the null probability pi0(x) and
q-values, and the science-wise false discovery rate of a corpus of
truncated and rounded published p-values.
"""

__version__ = "0.1.0"

from . import config
from . import data
from . import evaluation
from . import methods
from . import utils

from .exceptions import InvalidConfiguration, DegenerateFit
from .methods import lm_pi0, lm_qvalue, calculate_swfdr

__all__ = [
    "config",
    "data",
    "evaluation",
    "methods",
    "utils",
    "InvalidConfiguration",
    "DegenerateFit",
    "lm_pi0",
    "lm_qvalue",
    "calculate_swfdr"
]
