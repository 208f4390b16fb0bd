"""
Configuration module for swfdr estimators.

Dataclass configurations, named presets and YAML/JSON persistence.
"""

from .estimation_config import (
    Pi0Config,
    QValueConfig,
    SwfdrConfig,
    load_config,
    save_config,
    create_config_from_preset,
    PI0_PRESETS,
    QVALUE_PRESETS,
    SWFDR_PRESETS,
    DEFAULT_CUTS,
    DEFAULT_SUMMARY_CUTOFFS,
)

__all__ = [
    'Pi0Config',
    'QValueConfig',
    'SwfdrConfig',
    'load_config',
    'save_config',
    'create_config_from_preset',
    'PI0_PRESETS',
    'QVALUE_PRESETS',
    'SWFDR_PRESETS',
    'DEFAULT_CUTS',
    'DEFAULT_SUMMARY_CUTOFFS',
]
