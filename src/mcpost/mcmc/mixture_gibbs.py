"""
Gibbs Sampler for Finite Gaussian Mixtures.

Data augmentation (completion) with latent allocations Z_i in {0, ..., k-1}:

    x_i | Z_i = j ~ Normal(mu_j, sigma_j^2)
    P(Z_i = j)    = p_j
    p             ~ Dirichlet(gamma)
    sigma_j^2     ~ InvGamma(tau, beta)
    mu_j | sigma_j^2 ~ Normal(delta, sigma_j^2 / lam)

Each iteration draws, in order:
    1. Z | x, p, mu, sigma^2      (categorical, inverse-CDF)
    2. p | Z                      (Dirichlet-Multinomial conjugate)
    3. mu, sigma^2 | x, Z         (Normal-Inverse-Gamma conjugate, per component)

The sampler does not fix label switching or mode trapping. A poor start can
leave the chain in a local arrangement of the components; the binning
initialization makes that less likely, and align_labels relabels a finished
chain against reference means for comparison.
"""

import itertools
import time
from collections import namedtuple
from datetime import timedelta

import jax
import jax.numpy as jnp
import jax.random as random
import jax.scipy.stats as stats
import numpy as np

from ..conjugate import (
    DirichletParams,
    NormalInverseGammaParams,
    component_sufficient_statistics,
    dirichlet_multinomial_update,
    normal_inverse_gamma_update,
)
from ..error_handling import validate_mixture_inputs
from .types import Chain, build_chain

import logging
logger = logging.getLogger('mcpost')


MixturePrior = namedtuple('MixturePrior', ['concentration', 'delta', 'lam', 'tau', 'beta'])
MixtureState = namedtuple('MixtureState', ['weights', 'means', 'variances'])


def default_mixture_prior(observations, num_components):
    """
    Weakly informative prior centered on the data.

    gamma = 1 (uniform on the simplex), delta = sample mean, lam = 1, tau = 2,
    beta = sample variance (1.0 for a constant sample).
    """
    x = np.asarray(observations, dtype=float)
    spread = float(np.var(x))
    return MixturePrior(
        concentration=np.ones(num_components),
        delta=float(np.mean(x)),
        lam=1.0,
        tau=2.0,
        beta=spread if spread > 0 else 1.0,
    )


def binning_initialization(observations, num_components):
    """
    Initial component parameters from k equal-width bins over the data range.

    Each bin contributes its empirical proportion, mean and variance. An empty
    bin gets the bin midpoint, the pooled variance and a 1/n proportion; a bin
    holding a single point gets the pooled variance. Weights are renormalized.

    Args:
        observations: Observed sample (n,)
        num_components: Number of components k

    Returns:
        MixtureState of (k,) NumPy arrays
    """
    x = np.asarray(observations, dtype=float)
    n = x.shape[0]
    pooled_var = float(np.var(x))
    if pooled_var <= 0:
        pooled_var = 1.0

    edges = np.linspace(x.min(), x.max(), num_components + 1)
    bins = np.clip(np.digitize(x, edges[1:-1]), 0, num_components - 1)

    weights = np.zeros(num_components)
    means = np.zeros(num_components)
    variances = np.zeros(num_components)
    for j in range(num_components):
        members = x[bins == j]
        if members.size == 0:
            weights[j] = 1.0 / n
            means[j] = 0.5 * (edges[j] + edges[j + 1])
            variances[j] = pooled_var
            continue
        weights[j] = members.size / n
        means[j] = members.mean()
        var_j = members.var()
        variances[j] = var_j if members.size > 1 and var_j > 0 else pooled_var

    weights /= weights.sum()
    return MixtureState(weights=weights, means=means, variances=variances)


def allocate(key, x, weights, means, variances):
    """
    Draw a component label for every observation.

    P(Z_i = j | x_i) is proportional to p_j * N(x_i | mu_j, sigma_j^2); the
    weights are formed in log space and normalized with a softmax, then each
    Z_i is the number of partial sums lying below one uniform draw.

    Returns:
        allocations: (n,) int32 labels in [0, k)
        new_key: Updated random key
    """
    num_components = weights.shape[0]
    log_probs = (jnp.log(weights)[None, :]
                 + stats.norm.logpdf(x[:, None], means[None, :], jnp.sqrt(variances)[None, :]))
    probs = jax.nn.softmax(log_probs, axis=1)
    cumulative = jnp.cumsum(probs, axis=1)

    new_key, u_key = random.split(key)
    u = random.uniform(u_key, shape=(x.shape[0], 1))
    allocations = jnp.sum(cumulative < u, axis=1)
    # Rounding can leave the last partial sum fractionally below 1
    allocations = jnp.minimum(allocations, num_components - 1).astype(jnp.int32)
    return allocations, new_key


def mixture_gibbs_iteration(key, x, state: MixtureState, prior: MixturePrior):
    """
    One full Gibbs sweep: allocations, then weights, then component parameters.

    Returns:
        new_state: MixtureState
        allocations: (n,) labels drawn this sweep
        counts: (k,) observations per component
        new_key: Updated random key
    """
    num_components = state.weights.shape[0]
    allocations, key = allocate(key, x, state.weights, state.means, state.variances)
    n_j, xbar_j, s_j = component_sufficient_statistics(x, allocations, num_components)

    key, weight_key, var_key, mean_key = random.split(key, 4)
    weight_post = dirichlet_multinomial_update(DirichletParams(prior.concentration), n_j)
    weights = random.dirichlet(weight_key, weight_post.concentration)

    nig_prior = NormalInverseGammaParams(prior.delta, prior.lam, prior.tau, prior.beta)
    post = normal_inverse_gamma_update(nig_prior, n_j, xbar_j, s_j)
    # sigma^2 ~ InvGamma(tau', beta')  <=>  beta' / Gamma(tau', 1)
    variances = post.beta / random.gamma(var_key, post.tau)
    means = post.delta + jnp.sqrt(variances / post.lam) * random.normal(mean_key, (num_components,))

    new_state = MixtureState(weights=weights, means=means, variances=variances)
    return new_state, allocations, n_j, key


def run_mixture_gibbs(observations, num_components, num_iterations, key,
                      prior=None, init=None, save_allocations=True):
    """
    Run the mixture Gibbs sampler.

    Args:
        observations: Observed sample (n,)
        num_components: Number of components k
        num_iterations: Number of Gibbs sweeps N
        key: JAX random key
        prior: MixturePrior; default_mixture_prior(observations, k) if None
        init: MixtureState to start from; binning_initialization if None
        save_allocations: Keep the (N, n) allocation history in the chain

    Returns:
        Chain of length N with draws 'weights', 'means', 'variances' (N, k),
        'counts' (N, k) and, if requested, 'allocations' (N, n)
    """
    validate_mixture_inputs(observations, num_components, num_iterations)
    x = jnp.asarray(observations, dtype=float)

    if prior is None:
        prior = default_mixture_prior(observations, num_components)
    prior = MixturePrior(
        concentration=jnp.broadcast_to(jnp.asarray(prior.concentration, dtype=float), (num_components,)),
        delta=float(prior.delta),
        lam=float(prior.lam),
        tau=float(prior.tau),
        beta=float(prior.beta),
    )
    if init is None:
        init = binning_initialization(observations, num_components)
    init = MixtureState(*(jnp.asarray(field, dtype=float) for field in init))

    def scan_body(carry, _):
        current_key, state = carry
        new_state, allocations, counts, new_key = mixture_gibbs_iteration(current_key, x, state, prior)
        saved = (new_state.weights, new_state.means, new_state.variances, counts.astype(jnp.int32))
        if save_allocations:
            saved = saved + (allocations,)
        return (new_key, new_state), saved

    @jax.jit
    def run(run_key, init_state):
        _, history = jax.lax.scan(scan_body, (run_key, init_state), None, length=num_iterations)
        return history

    logger.info(f"Mixture Gibbs: k={num_components}, n={x.shape[0]}, {num_iterations} iterations")
    start = time.perf_counter()
    history = jax.block_until_ready(run(key, init))
    wall_time = time.perf_counter() - start
    logger.info(f"  Wall time: {timedelta(seconds=int(wall_time))} ({wall_time:.2f}s)")

    draws = {
        'weights': history[0],
        'means': history[1],
        'variances': history[2],
        'counts': history[3],
    }
    if save_allocations:
        draws['allocations'] = history[4]

    n_empty = int(np.sum(np.any(np.asarray(history[3]) == 0, axis=1)))
    if n_empty:
        logger.info(f"  {n_empty} iteration(s) had an empty component (prior used for its update)")

    return build_chain(
        draws,
        sampler='mixture_gibbs',
        metadata={'num_components': num_components, 'num_iterations': num_iterations},
    )


def align_labels(chain: Chain, reference_means) -> Chain:
    """
    Relabel mixture components to best match reference means.

    Searches every permutation of the k component columns for the one whose
    posterior mean estimates are closest (sum of absolute differences) to
    reference_means, and applies it to weights, means, variances, counts and
    allocations. Intended for comparing runs, where label switching makes
    raw component indices arbitrary.

    Args:
        chain: Chain returned by run_mixture_gibbs
        reference_means: (k,) reference component means

    Returns:
        New Chain with permuted component columns
    """
    reference = np.asarray(reference_means, dtype=float)
    estimates = chain.point_estimate('means')
    if reference.shape != estimates.shape:
        raise ValueError(f"reference_means must have shape {estimates.shape}, got {reference.shape}")

    best = min(
        itertools.permutations(range(reference.shape[0])),
        key=lambda perm: np.sum(np.abs(estimates[list(perm)] - reference)),
    )
    perm = np.array(best)

    draws = {}
    for name, values in chain.draws.items():
        if name == 'allocations':
            # New label j holds what used to be label perm[j]
            inverse = np.argsort(perm)
            draws[name] = inverse[values].astype(values.dtype)
        else:
            draws[name] = values[:, perm]

    metadata = dict(chain.metadata)
    metadata['label_permutation'] = tuple(int(p) for p in perm)
    return build_chain(draws, sampler=chain.sampler, accepted=chain.accepted, metadata=metadata)
