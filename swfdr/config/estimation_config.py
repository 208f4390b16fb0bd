"""
Configuration system for swfdr estimators.

Usage:
    # Load from YAML
    config = load_config('configs/qvalue.yaml')

    # Use presets
    config = QVALUE_PRESETS['fast']

    # Programmatic
    config = QValueConfig(
        pi0=Pi0Config(type_='linear', smooth_df=4),
        enforce_monotone=True
    )
"""

import json
import yaml
import numpy as np
from dataclasses import dataclass, field, asdict
from typing import List, Dict, Optional, Union
from pathlib import Path

from ..exceptions import InvalidConfiguration
from ..utils.validation import check_lambda, check_smooth_df

REGRESSION_TYPES = ('logistic', 'linear')
SMOOTHING_MODES = ('unit-interval-spline', 'general-spline')

# Upper edges of the bins rounded p-values are assigned to; lower edge of the first bin is 0
DEFAULT_CUTS = [0.005, 0.015, 0.025, 0.035, 0.045, 0.05]

# Cutoffs reported by the hit-count summary
DEFAULT_SUMMARY_CUTOFFS = [0.0001, 0.001, 0.01, 0.025, 0.05, 0.1, 1.0]


@dataclass
class Pi0Config:
    """
    Settings for covariate-conditioned pi0 estimation.

    Parameters
    ----------
    lambda_ : list of float, optional
        Threshold grid; None means 0.05, 0.10, ..., 0.95
    type_ : {'logistic', 'linear'}
        Regression fitted at every threshold
    smoothing : {'unit-interval-spline', 'general-spline'}
        Spline implementation used to smooth pi0(λ)
    smooth_df : float
        Degrees of freedom of the smoothing spline (at least 3)
    threshold : bool
        Clip final pi0 estimates to [0, 1]
    """
    lambda_: Optional[List[float]] = None
    type_: str = 'logistic'
    smoothing: str = 'unit-interval-spline'
    smooth_df: float = 3
    threshold: bool = True

    def __post_init__(self):
        if self.type_ not in REGRESSION_TYPES:
            raise InvalidConfiguration(f"Unknown regression type: {self.type_!r}")
        if self.smoothing not in SMOOTHING_MODES:
            raise InvalidConfiguration(f"Unknown smoothing mode: {self.smoothing!r}")
        self.smooth_df = check_smooth_df(self.smooth_df)
        if self.lambda_ is not None:
            self.lambda_ = [float(v) for v in check_lambda(self.lambda_, self.smooth_df)]

    def lambda_array(self) -> np.ndarray:
        return check_lambda(self.lambda_, self.smooth_df)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> 'Pi0Config':
        return cls(**d)


@dataclass
class QValueConfig:
    """
    Settings for q-value estimation.

    Parameters
    ----------
    pi0 : Pi0Config
        Settings of the underlying pi0 estimate
    enforce_monotone : bool
        Apply the running minimum after scaling by pi0(x) (q-values monotone
        in p). False scales the BH-adjusted p-values by pi0(x) instead.
    fdr_level : float
        Cutoff used when reporting discoveries
    summary_cutoffs : list of float
        Cutoffs of the hit-count summary
    """
    pi0: Pi0Config = field(default_factory=Pi0Config)
    enforce_monotone: bool = True
    fdr_level: float = 0.05
    summary_cutoffs: List[float] = field(default_factory=lambda: list(DEFAULT_SUMMARY_CUTOFFS))

    def __post_init__(self):
        if isinstance(self.pi0, dict):
            self.pi0 = Pi0Config.from_dict(self.pi0)
        if not 0 < self.fdr_level <= 1:
            raise InvalidConfiguration(f"fdr_level must be in (0, 1], got {self.fdr_level}")

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> 'QValueConfig':
        return cls(**d)


@dataclass
class SwfdrConfig:
    """
    Settings for the censored-data EM estimate of the science-wise FDR.

    Parameters
    ----------
    pi0 : float
        Initial mixing proportion of the uniform null component
    alpha, beta : float
        Initial shape parameters of the truncated Beta alternative
    n_iter : int
        Number of EM iterations
    tol : float, optional
        Stop early once no parameter moves by more than ``tol``;
        None runs exactly ``n_iter`` iterations
    threshold : float
        Reporting threshold; all p-values are assumed to lie below it
    cuts : list of float
        Upper bin edges for rounded p-values; the last one equals ``threshold``
    """
    pi0: float = 0.5
    alpha: float = 1.0
    beta: float = 50.0
    n_iter: int = 100
    tol: Optional[float] = None
    threshold: float = 0.05
    cuts: List[float] = field(default_factory=lambda: list(DEFAULT_CUTS))

    def __post_init__(self):
        if not 0 < self.pi0 < 1:
            raise InvalidConfiguration(f"initial pi0 must be in (0, 1), got {self.pi0}")
        if self.alpha <= 0 or self.beta <= 0:
            raise InvalidConfiguration(
                f"Beta shape parameters must be positive, got alpha={self.alpha}, beta={self.beta}"
            )
        if int(self.n_iter) != self.n_iter or self.n_iter < 1:
            raise InvalidConfiguration(f"n_iter must be a positive integer, got {self.n_iter}")
        self.n_iter = int(self.n_iter)
        if self.tol is not None and self.tol <= 0:
            raise InvalidConfiguration(f"tol must be positive, got {self.tol}")
        if not 0 < self.threshold <= 1:
            raise InvalidConfiguration(f"threshold must be in (0, 1], got {self.threshold}")

        cuts = np.asarray(self.cuts, dtype=float)
        if cuts.size == 0 or np.any(np.diff(cuts) <= 0) or cuts[0] <= 0:
            raise InvalidConfiguration("cuts must be positive and strictly increasing")
        if not np.isclose(cuts[-1], self.threshold):
            raise InvalidConfiguration(
                f"last cut ({cuts[-1]}) must equal the reporting threshold ({self.threshold})"
            )
        self.cuts = [float(c) for c in cuts]

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> 'SwfdrConfig':
        return cls(**d)


# =============================================================================
# PRESET CONFIGURATIONS
# =============================================================================

PI0_PRESETS: Dict[str, Pi0Config] = {
    'default': Pi0Config(),

    # reference smoother, one spline fit per distinct row
    'reference': Pi0Config(smoothing='general-spline'),

    'linear': Pi0Config(type_='linear'),

    'coarse_grid': Pi0Config(
        lambda_=[0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9]
    ),
}

QVALUE_PRESETS: Dict[str, QValueConfig] = {
    'default': QValueConfig(),

    'reference': QValueConfig(pi0=Pi0Config(smoothing='general-spline')),

    'instance_scaled': QValueConfig(enforce_monotone=False),
}

SWFDR_PRESETS: Dict[str, SwfdrConfig] = {
    'default': SwfdrConfig(),

    'quick_test': SwfdrConfig(n_iter=20),

    'until_converged': SwfdrConfig(n_iter=1000, tol=1e-6),
}

_CONFIG_TYPES = {
    'pi0': Pi0Config,
    'qvalue': QValueConfig,
    'swfdr': SwfdrConfig,
}

_PRESETS = {
    'pi0': PI0_PRESETS,
    'qvalue': QVALUE_PRESETS,
    'swfdr': SWFDR_PRESETS,
}

AnyConfig = Union[Pi0Config, QValueConfig, SwfdrConfig]


# =============================================================================
# I/O FUNCTIONS
# =============================================================================

def load_config(path: Union[str, Path]) -> AnyConfig:
    """
    Load configuration from YAML or JSON file.

    The file carries a ``type`` key ('pi0', 'qvalue' or 'swfdr');
    files without one are read as 'qvalue'.

    Parameters
    ----------
    path : str or Path
        Path to configuration file (.yaml, .yml, or .json)

    Returns
    -------
    config : Pi0Config, QValueConfig or SwfdrConfig
    """
    path = Path(path)

    if path.suffix in ['.yaml', '.yml']:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    elif path.suffix == '.json':
        with open(path, 'r') as f:
            data = json.load(f)
    else:
        raise ValueError(f"Unknown config format: {path.suffix}")

    data = dict(data or {})
    config_type = data.pop('type', 'qvalue')
    if config_type not in _CONFIG_TYPES:
        raise InvalidConfiguration(f"Unknown config type: {config_type!r}")

    return _CONFIG_TYPES[config_type].from_dict(data)


def save_config(config: AnyConfig, path: Union[str, Path], format: str = 'yaml') -> None:
    """
    Save configuration to file.

    Parameters
    ----------
    config : Pi0Config, QValueConfig or SwfdrConfig
    path : str or Path
        Output path
    format : str
        'yaml' or 'json'
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = config.to_dict()
    for name, config_class in _CONFIG_TYPES.items():
        if isinstance(config, config_class):
            data['type'] = name

    if format == 'yaml':
        with open(path, 'w') as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    elif format == 'json':
        with open(path, 'w') as f:
            json.dump(data, f, indent=2)
    else:
        raise ValueError(f"Unknown format: {format}")


def create_config_from_preset(preset_name: str, config_type: str = 'qvalue', **overrides) -> AnyConfig:
    """
    Create configuration from preset with optional overrides.

    Parameters
    ----------
    preset_name : str
        Preset name ('default', 'reference', ...)
    config_type : str
        'pi0', 'qvalue' or 'swfdr'
    **overrides
        Override specific fields

    Returns
    -------
    config : Pi0Config, QValueConfig or SwfdrConfig
    """
    if config_type not in _PRESETS:
        raise ValueError(f"Unknown config type: {config_type}")
    presets = _PRESETS[config_type]
    if preset_name not in presets:
        raise ValueError(f"Unknown preset: {preset_name}")

    config_dict = presets[preset_name].to_dict()

    for key, value in overrides.items():
        if key not in config_dict:
            raise ValueError(f"Unknown {config_type} setting: {key}")
        config_dict[key] = value

    return _CONFIG_TYPES[config_type].from_dict(config_dict)
