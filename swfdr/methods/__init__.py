"""Estimators: lambda sweep, pi0 smoothing, q-values, censored EM."""

from .baseline import (
    bh_adjust,
    classical_pi0,
    classical_qvalues
)
from .regression import RegressionBackend, LogisticBackend, LinearBackend, get_backend
from .lambda_sweep import LambdaSweepEstimator, LambdaSweepResult, sweep_lambda
from .smoothing import (
    SplineSmoother,
    GeneralSplineSmoother,
    UnitIntervalSplineSmoother,
    make_smoother
)
from .pi0 import Pi0Smoother, Pi0Estimator, Pi0Result, lm_pi0
from .qvalue import QValueComputer, QValueEstimator, QValueResult, hit_counts, lm_qvalue
from .censored_em import (
    MixtureState,
    CensoredCorpus,
    CensoredEMEstimator,
    SwfdrResult,
    e_step,
    m_step,
    em_step,
    log_likelihood,
    calculate_swfdr
)

__all__ = [
    'bh_adjust',
    'classical_pi0',
    'classical_qvalues',
    'RegressionBackend',
    'LogisticBackend',
    'LinearBackend',
    'get_backend',
    'LambdaSweepEstimator',
    'LambdaSweepResult',
    'sweep_lambda',
    'SplineSmoother',
    'GeneralSplineSmoother',
    'UnitIntervalSplineSmoother',
    'make_smoother',
    'Pi0Smoother',
    'Pi0Estimator',
    'Pi0Result',
    'lm_pi0',
    'QValueComputer',
    'QValueEstimator',
    'QValueResult',
    'hit_counts',
    'lm_qvalue',
    'MixtureState',
    'CensoredCorpus',
    'CensoredEMEstimator',
    'SwfdrResult',
    'e_step',
    'm_step',
    'em_step',
    'log_likelihood',
    'calculate_swfdr'
]
