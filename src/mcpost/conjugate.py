"""
Conjugate Posterior Updates

Closed-form posterior-parameter updates for the exponential-family pairs used
by the Gibbs samplers. Every function is pure: prior parameters and sufficient
statistics in, a fresh set of posterior parameters out. All functions are
JAX-traceable and vectorize over leading axes, so a whole set of mixture
components or success probabilities is updated in one call.

Pairs:
    Beta-Binomial:              (a, b) -> (a + x, b + n - x)
    Dirichlet-Multinomial:      gamma  -> gamma + counts
    Normal-Inverse-Gamma:       (delta, lam, tau, beta) -> see normal_inverse_gamma_update
"""

from collections import namedtuple

import jax
import jax.numpy as jnp


BetaParams = namedtuple('BetaParams', ['a', 'b'])
DirichletParams = namedtuple('DirichletParams', ['concentration'])
NormalInverseGammaParams = namedtuple('NormalInverseGammaParams', ['delta', 'lam', 'tau', 'beta'])


def beta_binomial_update(prior, successes, trials):
    """
    Beta prior, Binomial likelihood.

    Args:
        prior: BetaParams (a, b); a and b may be arrays broadcasting with the data
        successes: Observed successes x
        trials: Number of trials n

    Returns:
        BetaParams (a + x, b + n - x)
    """
    a, b = prior
    return BetaParams(a + successes, b + (trials - successes))


def dirichlet_multinomial_update(prior, counts):
    """
    Dirichlet prior, Multinomial likelihood.

    Args:
        prior: DirichletParams with concentration vector gamma (k,)
        counts: Per-category counts n_j (k,)

    Returns:
        DirichletParams (gamma + counts)
    """
    return DirichletParams(prior.concentration + counts)


def normal_inverse_gamma_update(prior, n_j, xbar_j, s_j):
    """
    Normal-Inverse-Gamma prior, Normal likelihood with unknown mean and variance.

    Model for component j:
        sigma^2 ~ InvGamma(tau, beta)
        mu | sigma^2 ~ Normal(delta, sigma^2 / lam)
        x_i | mu, sigma^2 ~ Normal(mu, sigma^2)

    Update:
        lam'   = lam + n_j
        delta' = (lam * delta + n_j * xbar_j) / lam'
        tau'   = tau + n_j / 2
        beta'  = beta + S_j / 2 + (lam * n_j) / (2 * lam') * (delta - xbar_j)^2

    Components with n_j = 0 get the prior back exactly, field by field.

    Args:
        prior: NormalInverseGammaParams; fields are scalars or (k,) arrays
        n_j: Count of observations in each component (k,)
        xbar_j: Sample mean of each component (k,); ignored where n_j = 0
        s_j: Sum of squared deviations from xbar_j (k,); ignored where n_j = 0

    Returns:
        NormalInverseGammaParams with (k,) fields
    """
    delta, lam, tau, beta = prior
    n_j = jnp.asarray(n_j, dtype=float)
    empty = n_j == 0

    lam_post = lam + n_j
    delta_post = (lam * delta + n_j * xbar_j) / lam_post
    tau_post = tau + n_j / 2.0
    beta_post = beta + s_j / 2.0 + (lam * n_j) / (2.0 * lam_post) * (delta - xbar_j) ** 2

    shape = jnp.shape(n_j)
    return NormalInverseGammaParams(
        delta=jnp.where(empty, jnp.broadcast_to(delta, shape), delta_post),
        lam=jnp.where(empty, jnp.broadcast_to(lam, shape), lam_post),
        tau=jnp.where(empty, jnp.broadcast_to(tau, shape), tau_post),
        beta=jnp.where(empty, jnp.broadcast_to(beta, shape), beta_post),
    )


def component_sufficient_statistics(x, allocations, num_components):
    """
    Per-component count, mean and sum of squared deviations.

    Args:
        x: Observations (n,)
        allocations: Integer component label per observation (n,), values in [0, k)
        num_components: Number of components k

    Returns:
        n_j: Counts (k,)
        xbar_j: Means (k,), 0 for empty components
        s_j: Sums of squared deviations (k,), 0 for empty components
    """
    one_hot = jax.nn.one_hot(allocations, num_components, dtype=x.dtype)  # (n, k)
    n_j = jnp.sum(one_hot, axis=0)
    sums = one_hot.T @ x
    safe_n = jnp.where(n_j > 0, n_j, 1.0)
    xbar_j = jnp.where(n_j > 0, sums / safe_n, 0.0)
    deviations = (x[:, None] - xbar_j[None, :]) ** 2
    s_j = jnp.sum(one_hot * deviations, axis=0)
    return n_j, xbar_j, s_j
