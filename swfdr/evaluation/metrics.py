"""
Evaluation of q-value discoveries against known labels.

Labels follow the convention 1 = H0 (null), 0 = H1 (alternative).
"""

import numpy as np
import pandas as pd
from typing import Dict, List


def discovery_counts(
    qvalues: np.ndarray,
    true_labels: np.ndarray,
    fdr_level: float = 0.05
) -> Dict[str, int]:
    """
    Count discoveries ``qvalues <= fdr_level`` by their true status.

    Parameters
    ----------
    qvalues : np.ndarray, shape (n_tests,)
    true_labels : np.ndarray, shape (n_tests,)
        1 = null, 0 = alternative
    fdr_level : float, default=0.05

    Returns
    -------
    counts : dict
        'TP', 'FP', 'TN', 'FN', 'n_discoveries' and 'n_true_signals'
    """
    called = np.asarray(qvalues, dtype=float) <= fdr_level
    signal = np.asarray(true_labels) == 0

    tp = int(np.sum(called & signal))
    fp = int(np.sum(called & ~signal))
    return {
        'TP': tp,
        'FP': fp,
        'TN': int(np.sum(~called & ~signal)),
        'FN': int(np.sum(~called & signal)),
        'n_discoveries': tp + fp,
        'n_true_signals': int(signal.sum()),
    }


def _ratio(num: float, den: float) -> float:
    return num / den if den > 0 else 0.0


def evaluate_qvalues(
    qvalues: np.ndarray,
    true_labels: np.ndarray,
    fdr_level: float = 0.05
) -> Dict[str, float]:
    """
    Power and realised FDR of the discoveries at ``fdr_level``.

    Returns the counts of ``discovery_counts`` together with 'power',
    'FDR', 'FPR' and 'F1'. Rates with an empty denominator are 0.
    """
    counts = discovery_counts(qvalues, true_labels, fdr_level)
    n_nulls = len(np.asarray(true_labels)) - counts['n_true_signals']

    power = _ratio(counts['TP'], counts['n_true_signals'])
    fdr = _ratio(counts['FP'], counts['n_discoveries'])
    precision = 1.0 - fdr if counts['n_discoveries'] > 0 else 0.0

    return {
        'power': power,
        'FDR': fdr,
        'FPR': _ratio(counts['FP'], n_nulls),
        'F1': _ratio(2 * precision * power, precision + power),
        **counts,
    }


def summarize_metrics(metrics_list: List[dict]) -> pd.DataFrame:
    """
    Aggregate per-run metrics.

    Returns
    -------
    summary : pd.DataFrame
        One column per metric; rows 'mean', 'std', 'min', 'max', 'median'.
        Empty when ``metrics_list`` is empty.
    """
    if not metrics_list:
        return pd.DataFrame()
    runs = pd.DataFrame(metrics_list)
    return runs.agg(['mean', 'std', 'min', 'max', 'median'])
