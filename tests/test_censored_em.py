import numpy as np
import pytest
from scipy import stats

import swfdr.methods.censored_em as censored_em
from swfdr.config import SwfdrConfig
from swfdr.data import generate_censored_corpus
from swfdr.exceptions import DegenerateFit, InvalidConfiguration
from swfdr.methods import (
    CensoredCorpus,
    CensoredEMEstimator,
    MixtureState,
    calculate_swfdr,
    e_step,
    em_step,
    log_likelihood
)


@pytest.fixture
def small_corpus():
    p = [0.01, 0.05, 0.0, 0.003, 0.02, 0.001]
    truncated = [0, 0, 0, 1, 0, 1]
    rounded = [1, 1, 1, 0, 0, 1]
    return CensoredCorpus.from_arrays(p, truncated, rounded)


def test_bin_assignment(small_corpus):
    c = small_corpus
    # 0.01 -> [0.005, 0.015), 0.05 -> last bin, 0.0 -> first bin
    assert c.bin_index[:3].tolist() == [1, 5, 0]
    assert c.lower[0] == pytest.approx(0.005)
    assert c.upper[0] == pytest.approx(0.015)
    assert c.lower[1] == pytest.approx(0.045)
    assert c.upper[1] == pytest.approx(0.05)
    assert c.n_bins == 6


def test_truncated_interval(small_corpus):
    c = small_corpus
    assert c.lower[3] == 0.0
    assert c.upper[3] == pytest.approx(0.003)
    assert c.bin_index[3] == -1


def test_rounded_and_truncated_is_truncated(small_corpus):
    c = small_corpus
    assert c.bin_index[5] == -1
    assert c.lower[5] == 0.0
    assert c.upper[5] == pytest.approx(0.001)


def test_exact_entries(small_corpus):
    c = small_corpus
    assert c.exact.tolist() == [False, False, False, False, True, False]
    assert c.interval_index[4] == -1
    # the distinct intervals cover every censored entry
    censored = ~c.exact
    np.testing.assert_allclose(c.interval_lower[c.interval_index[censored]], c.lower[censored])
    np.testing.assert_allclose(c.interval_upper[c.interval_index[censored]], c.upper[censored])


@pytest.mark.parametrize("p, truncated, rounded", [
    ([0.01, 0.2], [0, 0], [0, 0]),
    ([0.01, np.nan], [0, 0], [0, 0]),
    ([0.0, 0.01], [0, 0], [0, 0]),
    ([0.01, 0.02], [0, 1], [0]),
    ([0.01, 0.02], [0, 3], [0, 0]),
    ([], [], []),
])
def test_corpus_validation(p, truncated, rounded):
    with pytest.raises(InvalidConfiguration):
        CensoredCorpus.from_arrays(p, truncated, rounded)


def test_e_step_matches_direct_computation():
    p = np.array([0.001, 0.01, 0.04])
    corpus = CensoredCorpus.from_arrays(p, [0, 0, 0], [0, 0, 0])
    state = MixtureState(pi0=0.4, alpha=0.8, beta=40.0)

    dist = stats.beta(state.alpha, state.beta)
    f1 = dist.pdf(p) / dist.cdf(0.05)
    f0 = 1 / 0.05
    expected = 0.4 * f0 / (0.4 * f0 + 0.6 * f1)

    np.testing.assert_allclose(e_step(state, corpus), expected, rtol=1e-10)


def test_e_step_censored_uses_interval_mass():
    corpus = CensoredCorpus.from_arrays([0.01], [1], [0])
    state = MixtureState(pi0=0.5, alpha=1.0, beta=50.0)

    dist = stats.beta(1.0, 50.0)
    f1 = dist.cdf(0.01) / dist.cdf(0.05)
    f0 = 0.01 / 0.05
    np.testing.assert_allclose(e_step(state, corpus), [f0 / (f0 + f1)], rtol=1e-10)


def test_em_step_is_pure(censored_corpus):
    corpus = CensoredCorpus.from_arrays(
        censored_corpus["pvalue"], censored_corpus["truncated"], censored_corpus["rounded"]
    )
    state = MixtureState(pi0=0.5, alpha=1.0, beta=50.0)
    first = em_step(state, corpus)
    second = em_step(state, corpus)

    assert state == MixtureState(pi0=0.5, alpha=1.0, beta=50.0)
    assert first == second
    assert 0 < first.pi0 < 1


def test_log_likelihood_does_not_decrease(censored_corpus):
    result = calculate_swfdr(
        censored_corpus["pvalue"], censored_corpus["truncated"], censored_corpus["rounded"],
        n_iter=30
    )
    loglik = result.history["log_likelihood"].to_numpy()
    assert np.all(np.diff(loglik) >= -1e-6 * np.abs(loglik[1:]))


@pytest.mark.parametrize("n_samples, pi0_tol, alpha_tol, beta_rtol", [
    (20000, 0.04, 0.1, 0.3),
    (80000, 0.025, 0.06, 0.15),
])
def test_recovers_mixture_parameters(n_samples, pi0_tol, alpha_tol, beta_rtol):
    corpus = generate_censored_corpus(
        n_samples=n_samples, pi0=0.3, alpha=0.5, beta=60.0,
        truncation_rate=0.4, rounding_rate=0.2, random_state=17
    )
    result = calculate_swfdr(
        corpus["pvalue"], corpus["truncated"], corpus["rounded"],
        n_iter=500, tol=1e-7
    )
    assert result.pi0 == pytest.approx(0.3, abs=pi0_tol)
    assert result.alpha == pytest.approx(0.5, abs=alpha_tol)
    assert result.beta == pytest.approx(60.0, rel=beta_rtol)


def test_bin_counts(censored_corpus):
    result = calculate_swfdr(
        censored_corpus["pvalue"], censored_corpus["truncated"], censored_corpus["rounded"],
        n_iter=50
    )
    rounded_only = (censored_corpus["rounded"] == 1) & (censored_corpus["truncated"] == 0)

    assert result.n.sum() == rounded_only.sum()
    assert np.all(result.n0 <= result.n + 1e-9)
    assert result.n0.sum() / result.n.sum() == pytest.approx(result.pi0, abs=0.1)
    assert list(result.bins.columns) == [
        "lower", "upper", "observed", "expected_null", "expected_alternative"
    ]
    np.testing.assert_allclose(
        result.bins["expected_null"] + result.bins["expected_alternative"],
        result.bins["observed"]
    )


def test_z_is_missing_for_rounded(censored_corpus):
    result = calculate_swfdr(
        censored_corpus["pvalue"], censored_corpus["truncated"], censored_corpus["rounded"],
        n_iter=5
    )
    rounded = censored_corpus["rounded"].to_numpy() == 1
    assert np.all(np.isnan(result.z[rounded]))
    assert np.all((result.z[~rounded] >= 0) & (result.z[~rounded] <= 1))


def test_single_iteration():
    result = calculate_swfdr([0.01, 0.002, 0.04, 0.03], [0, 1, 0, 0], [1, 0, 0, 0], n_iter=1)
    assert result.n_iter == 1
    assert not result.converged
    assert len(result.history) == 2
    assert result.state.is_finite()


def test_tolerance_stops_early(censored_corpus):
    result = calculate_swfdr(
        censored_corpus["pvalue"], censored_corpus["truncated"], censored_corpus["rounded"],
        n_iter=1000, tol=1e-2
    )
    assert result.converged
    assert result.n_iter < 1000
    assert len(result.history) == result.n_iter + 1


def test_nonfinite_state_raises(monkeypatch):
    def broken_step(state, corpus):
        return MixtureState(pi0=np.nan, alpha=state.alpha, beta=state.beta)

    monkeypatch.setattr(censored_em, "em_step", broken_step)

    with pytest.raises(DegenerateFit) as excinfo:
        calculate_swfdr([0.01, 0.02, 0.03], [0, 0, 0], [0, 0, 0], n_iter=10)
    assert excinfo.value.iteration == 1


def test_estimator_uses_config_cuts():
    config = SwfdrConfig(cuts=[0.01, 0.05], n_iter=3)
    result = CensoredEMEstimator(config).fit([0.0, 0.02, 0.04, 0.03], [0, 0, 0, 0], [1, 1, 1, 0])
    assert result.n.tolist() == [1.0, 2.0]


def test_log_likelihood_is_finite(small_corpus):
    assert np.isfinite(log_likelihood(MixtureState(0.5, 1.0, 50.0), small_corpus))
