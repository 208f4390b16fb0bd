"""Synthetic data generation."""

from .synthetic import (
    generate_two_group_data,
    generate_covariate_data,
    generate_censored_corpus
)

__all__ = [
    'generate_two_group_data',
    'generate_covariate_data',
    'generate_censored_corpus'
]
