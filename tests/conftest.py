import numpy as np
import pytest

from swfdr.data import generate_censored_corpus, generate_covariate_data, generate_two_group_data


@pytest.fixture
def rng():
    return np.random.default_rng(2024)


@pytest.fixture
def uniform_pvalues(rng):
    return rng.uniform(0, 1, size=5000)


@pytest.fixture(scope="session")
def two_group():
    return generate_two_group_data(n_null=1000, n_alt=1000, effect_size=2.0, random_state=7)


@pytest.fixture(scope="session")
def covariate_data():
    return generate_covariate_data(n_samples=500, random_state=11)


@pytest.fixture(scope="session")
def censored_corpus():
    return generate_censored_corpus(
        n_samples=20000, pi0=0.3, alpha=0.5, beta=60.0,
        truncation_rate=0.2, rounding_rate=0.2, random_state=3
    )
