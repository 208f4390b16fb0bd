import numpy as np
import pytest

from swfdr.evaluation import discovery_counts, evaluate_qvalues, summarize_metrics


@pytest.fixture
def called():
    qvalues = np.array([0.01, 0.02, 0.3, 0.6, 0.04])
    labels = np.array([0, 1, 0, 1, 0])
    return qvalues, labels


def test_discovery_counts(called):
    counts = discovery_counts(*called, fdr_level=0.05)
    assert counts == {
        "TP": 2, "FP": 1, "TN": 1, "FN": 1,
        "n_discoveries": 3, "n_true_signals": 3
    }


def test_rates(called):
    m = evaluate_qvalues(*called, fdr_level=0.05)
    assert m["power"] == pytest.approx(2 / 3)
    assert m["FDR"] == pytest.approx(1 / 3)
    assert m["FPR"] == pytest.approx(1 / 2)
    assert m["F1"] == pytest.approx(2 / 3)


def test_no_discoveries():
    m = evaluate_qvalues(np.ones(4), np.array([0, 0, 1, 1]))
    assert m["n_discoveries"] == 0
    assert m["FDR"] == 0.0
    assert m["power"] == 0.0
    assert m["F1"] == 0.0


def test_cutoff_is_inclusive():
    q = np.array([0.01, 0.05, 0.08, 0.5])
    labels = np.array([0, 0, 0, 1])
    assert evaluate_qvalues(q, labels, fdr_level=0.05)["TP"] == 2
    assert evaluate_qvalues(q, labels, fdr_level=0.1)["TP"] == 3


def test_summarize_metrics():
    summary = summarize_metrics([{"power": 0.2, "FDR": 0.0}, {"power": 0.4, "FDR": 0.1}])
    assert summary.loc["mean", "power"] == pytest.approx(0.3)
    assert summary.loc["min", "power"] == pytest.approx(0.2)
    assert summary.loc["max", "FDR"] == pytest.approx(0.1)
    assert summarize_metrics([]).empty
