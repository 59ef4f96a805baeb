"""
mcpost - Markov chain Monte Carlo for Bayesian posterior inference

Public API:
    Samplers:
        run_metropolis_hastings - MH chain (independent or random-walk proposal)
        run_mixture_gibbs - Gibbs sampler for finite Gaussian mixtures
        run_hybrid_gibbs - Gibbs sampler with MH steps for Beta hyperparameters
        rmcmc - Config-driven entry point for any of the three

    Targets & Proposals:
        DensityOracle - Target log density + proposal + support
        gamma_log_density, beta_log_density, normal_log_density
        random_walk_proposal, independent_proposal, gamma_independent_proposal
        register_posterior - Register an MH target for rmcmc
        get_posterior - Retrieve a registered target
        list_posteriors - List all registered targets

    Conjugate Updates:
        beta_binomial_update, dirichlet_multinomial_update,
        normal_inverse_gamma_update

    Chains:
        Chain - Immutable sampler output
        apply_burnin, thin_chain - Post-processing
        align_labels - Mixture label alignment
        acceptance_rate, running_mean - Informal diagnostics

    Credible Sets:
        CredibleInterval
        naive_interval, order_statistic_interval, cmde_interval,
        weighted_average_interval, chen_shao_interval, analytic_hpd_interval

Example:
    import jax
    from mcpost import run_metropolis_hastings, gamma_log_density, gamma_independent_proposal

    chain = run_metropolis_hastings(
        gamma_log_density(4.3, 6.2),
        gamma_independent_proposal(5.0, 6.0),
        x0=1.0,
        num_iterations=100000,
        key=jax.random.PRNGKey(0),
    )
    chain.point_estimate('x')
"""
# CRITICAL: Import jax_config FIRST to set environment variables before JAX loads
from . import jax_config  # noqa: F401

from .mcmc import (
    Chain,
    MixturePrior,
    MixtureState,
    SamplerType,
    acceptance_rate,
    align_labels,
    beta_posterior_parameters,
    binning_initialization,
    clean_config,
    compare_chain_means,
    configure_precision,
    default_mixture_prior,
    gen_rng_keys,
    print_acceptance_summary,
    rmcmc,
    run_hybrid_gibbs,
    run_metropolis_hastings,
    run_mixture_gibbs,
    running_mean,
)
from .densities import (
    DensityOracle,
    beta_log_density,
    gamma_log_density,
    normal_log_density,
    positive_support,
)
from .proposals import (
    ProposalSpec,
    ProposalType,
    gamma_independent_proposal,
    independent_proposal,
    random_walk_proposal,
)
from .conjugate import (
    BetaParams,
    DirichletParams,
    NormalInverseGammaParams,
    beta_binomial_update,
    component_sufficient_statistics,
    dirichlet_multinomial_update,
    normal_inverse_gamma_update,
)
from .credible_sets import (
    CredibleInterval,
    all_credible_intervals,
    analytic_hpd_interval,
    chen_shao_interval,
    cmde_interval,
    interval_coverage,
    naive_interval,
    order_statistic_interval,
    weighted_average_interval,
)
from .history_processing import apply_burnin, pool_marginals, thin_chain
from .error_handling import diagnose_sampler_issues, print_diagnostics
from .registry import register_posterior, get_posterior, list_posteriors
from .example_posteriors import register_example_posteriors

# Samplers accumulate log densities over long chains; keep 64-bit floats even
# if JAX was imported before this package.
configure_precision(True)
register_example_posteriors()
