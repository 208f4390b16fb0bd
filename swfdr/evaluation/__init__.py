"""Evaluation of q-value discoveries against known labels."""

from .metrics import discovery_counts, evaluate_qvalues, summarize_metrics

__all__ = [
    'discovery_counts',
    'evaluate_qvalues',
    'summarize_metrics'
]
