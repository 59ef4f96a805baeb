"""
Pytest configuration and shared fixtures for mcpost tests.
"""

# Import mcpost before JAX so the 64-bit default is in place when JAX loads
import mcpost

import numpy as np
import jax
import pytest

from mcpost.registry import _REGISTRY
from mcpost.example_posteriors import generate_mixture_data, generate_binomial_data


@pytest.fixture
def rng_seed():
    """Default RNG seed for reproducible tests."""
    return 42


@pytest.fixture
def key(rng_seed):
    """JAX random key built from the default seed."""
    return jax.random.PRNGKey(rng_seed)


@pytest.fixture
def mixture_data():
    """Two-component mixture: weights (0.7, 0.3), means (0, 2.5), unit variances."""
    observations, labels = generate_mixture_data(
        n_obs=100, weights=(0.7, 0.3), means=(0.0, 2.5), sds=(1.0, 1.0), seed=42
    )
    return observations, labels


@pytest.fixture
def poll_data():
    """Four Binomial polls of 1000 respondents, true proportions near one half."""
    return generate_binomial_data(
        trials=[1000, 1000, 1000, 1000],
        probabilities=[0.52, 0.48, 0.505, 0.495],
        seed=42,
    )


@pytest.fixture
def beta_replicates():
    """Per-iteration Beta posterior parameters with moderate spread."""
    rng = np.random.default_rng(0)
    a = 40.0 + rng.normal(0.0, 2.0, 400)
    b = 60.0 + rng.normal(0.0, 2.0, 400)
    return a, b


@pytest.fixture
def clean_registry():
    """
    Snapshot the target registry and restore it after the test.

    Usage:
        def test_something(clean_registry):
            register_posterior('tmp', {...})
    """
    saved = dict(_REGISTRY)
    yield
    _REGISTRY.clear()
    _REGISTRY.update(saved)


def sample_beta_mixture(a, b, draws_per_replicate=10, seed=0):
    """Pooled draws from a set of Beta replicates, draws_per_replicate each."""
    rng = np.random.default_rng(seed)
    a = np.repeat(np.asarray(a, dtype=float), draws_per_replicate)
    b = np.repeat(np.asarray(b, dtype=float), draws_per_replicate)
    return rng.beta(a, b)


@pytest.fixture
def beta_sampler():
    """Helper for drawing pooled samples from Beta replicates."""
    return sample_beta_mixture
