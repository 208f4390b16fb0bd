"""Logging and input-validation helpers."""

from .logging import configure_logging, get_logger
from .validation import (
    DEFAULT_LAMBDA,
    MIN_SMOOTH_DF,
    check_pvalues,
    check_design_matrix,
    check_lambda,
    check_smooth_df,
    check_flags
)

__all__ = [
    'configure_logging',
    'get_logger',
    'DEFAULT_LAMBDA',
    'MIN_SMOOTH_DF',
    'check_pvalues',
    'check_design_matrix',
    'check_lambda',
    'check_smooth_df',
    'check_flags'
]
