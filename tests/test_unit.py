"""
Unit Tests for mcpost Building Blocks

Tests conjugate updates, densities, proposals, configuration, validation,
chains, post-processing, the target registry and diagnostics in isolation.
Run with: pytest tests/test_unit.py -v
"""

import dataclasses
import logging

import numpy as np
import jax
import jax.numpy as jnp
import pytest
from scipy import stats

from mcpost.conjugate import (
    BetaParams,
    DirichletParams,
    NormalInverseGammaParams,
    beta_binomial_update,
    component_sufficient_statistics,
    dirichlet_multinomial_update,
    normal_inverse_gamma_update,
)
from mcpost.densities import (
    DensityOracle,
    beta_log_density,
    gamma_log_density,
    normal_log_density,
    positive_support,
)
from mcpost.proposals import (
    ProposalSpec,
    ProposalType,
    gamma_independent_proposal,
    independent_proposal,
    rand_walk_step,
    random_walk_proposal,
)
from mcpost.mcmc.config import SamplerType, clean_config, gen_rng_keys
from mcpost.mcmc.types import build_chain
from mcpost.mcmc.diagnostics import (
    acceptance_rate,
    compare_chain_means,
    print_acceptance_summary,
    running_mean,
)
from mcpost.error_handling import (
    diagnose_sampler_issues,
    print_diagnostics,
    validate_credible_level,
    validate_hybrid_inputs,
    validate_mcmc_config,
    validate_mixture_inputs,
)
from mcpost.history_processing import apply_burnin, pool_marginals, thin_chain
from mcpost.registry import get_posterior, list_posteriors, register_posterior


def make_chain(n=10, sampler='test'):
    """Chain with one scalar variable 0..n-1 and alternating acceptances."""
    accepted = np.array([np.nan] + [float(t % 2) for t in range(1, n)])
    return build_chain(
        {'x': np.arange(n, dtype=float)},
        sampler=sampler,
        accepted={'x': accepted},
        metadata={'seed': 1},
    )


# ============================================================================
# CONJUGATE UPDATES
# ============================================================================

class TestBetaBinomial:
    """Beta prior with Binomial likelihood."""

    def test_update_adds_counts(self):
        post = beta_binomial_update(BetaParams(1.0, 1.0), 3.0, 10.0)
        assert post == BetaParams(4.0, 8.0)

    def test_vectorized_over_groups(self):
        post = beta_binomial_update(
            BetaParams(2.0, 3.0), jnp.array([0.0, 5.0, 10.0]), jnp.array([10.0, 10.0, 10.0])
        )
        np.testing.assert_allclose(post.a, [2.0, 7.0, 12.0])
        np.testing.assert_allclose(post.b, [13.0, 8.0, 3.0])

    def test_more_successes_raise_posterior_mean(self):
        means = []
        for x in range(0, 11):
            a, b = beta_binomial_update(BetaParams(2.0, 2.0), float(x), 10.0)
            means.append(a / (a + b))
        assert np.all(np.diff(means) > 0)


class TestDirichletMultinomial:
    """Dirichlet prior with Multinomial likelihood."""

    def test_update_adds_counts(self):
        post = dirichlet_multinomial_update(
            DirichletParams(jnp.ones(3)), jnp.array([4.0, 0.0, 2.0])
        )
        np.testing.assert_allclose(post.concentration, [5.0, 1.0, 3.0])


class TestNormalInverseGamma:
    """Normal-Inverse-Gamma prior with unknown mean and variance."""

    PRIOR = NormalInverseGammaParams(delta=1.0, lam=2.0, tau=3.0, beta=4.0)

    def test_empty_component_returns_prior_exactly(self):
        post = normal_inverse_gamma_update(
            self.PRIOR, jnp.array([0.0, 5.0]), jnp.array([0.0, 2.0]), jnp.array([0.0, 3.0])
        )
        assert float(post.delta[0]) == 1.0
        assert float(post.lam[0]) == 2.0
        assert float(post.tau[0]) == 3.0
        assert float(post.beta[0]) == 4.0

    def test_update_formulas(self):
        n, xbar, s = 5.0, 2.0, 3.0
        post = normal_inverse_gamma_update(
            self.PRIOR, jnp.array([n]), jnp.array([xbar]), jnp.array([s])
        )
        lam_post = 2.0 + n
        np.testing.assert_allclose(post.lam, [lam_post])
        np.testing.assert_allclose(post.delta, [(2.0 * 1.0 + n * xbar) / lam_post])
        np.testing.assert_allclose(post.tau, [3.0 + n / 2])
        expected_beta = 4.0 + s / 2 + (2.0 * n) / (2 * lam_post) * (1.0 - xbar) ** 2
        np.testing.assert_allclose(post.beta, [expected_beta])

    def test_posterior_mean_between_prior_and_data(self):
        post = normal_inverse_gamma_update(
            self.PRIOR, jnp.array([20.0]), jnp.array([10.0]), jnp.array([15.0])
        )
        assert 1.0 < float(post.delta[0]) < 10.0


class TestSufficientStatistics:
    """Per-component count, mean and sum of squared deviations."""

    def test_with_empty_component(self):
        x = jnp.array([1.0, 2.0, 3.0, 10.0])
        allocations = jnp.array([0, 0, 0, 2])
        n_j, xbar_j, s_j = component_sufficient_statistics(x, allocations, 3)
        np.testing.assert_allclose(n_j, [3.0, 0.0, 1.0])
        np.testing.assert_allclose(xbar_j, [2.0, 0.0, 10.0])
        np.testing.assert_allclose(s_j, [2.0, 0.0, 0.0], atol=1e-12)


# ============================================================================
# DENSITIES
# ============================================================================

class TestDensities:
    """Log density builders and the density oracle."""

    def test_gamma_matches_scipy(self):
        lp = gamma_log_density(4.3, 6.2)(1.5)
        np.testing.assert_allclose(float(lp), stats.gamma.logpdf(1.5, 4.3, scale=1 / 6.2), rtol=1e-10)

    def test_gamma_outside_support(self):
        assert float(gamma_log_density(2.0, 1.0)(-1.0)) == -np.inf
        assert float(gamma_log_density(2.0, 1.0)(0.0)) == -np.inf

    def test_beta_outside_support(self):
        log_density = beta_log_density(2.0, 3.0)
        assert float(log_density(1.5)) == -np.inf
        np.testing.assert_allclose(float(log_density(0.3)), stats.beta.logpdf(0.3, 2.0, 3.0), rtol=1e-10)

    def test_normal_sums_components(self):
        lp = normal_log_density(0.0, 1.0)(jnp.array([0.0, 1.0]))
        np.testing.assert_allclose(float(lp), stats.norm.logpdf([0.0, 1.0]).sum(), rtol=1e-10)

    def test_positive_support(self):
        assert bool(positive_support(jnp.array([1.0, 2.0])))
        assert not bool(positive_support(jnp.array([1.0, -2.0])))

    def test_oracle_maps_nan_to_minus_inf(self):
        oracle = DensityOracle(log_target=lambda x: jnp.nan, proposal=random_walk_proposal(1.0))
        assert float(oracle.log_f(jnp.array(1.0))) == -np.inf

    def test_oracle_applies_support(self):
        oracle = DensityOracle(
            log_target=normal_log_density(),
            proposal=random_walk_proposal(1.0),
            support=positive_support,
        )
        assert float(oracle.log_f(jnp.array(-0.5))) == -np.inf
        assert np.isfinite(float(oracle.log_f(jnp.array(0.5))))


# ============================================================================
# PROPOSALS
# ============================================================================

class TestProposals:
    """Proposal builders and their Hastings ratios."""

    def test_random_walk_is_symmetric(self):
        spec = random_walk_proposal(0.5)
        assert spec.kind == ProposalType.RANDOM_WALK
        assert spec.symmetric
        candidate, log_ratio, new_key = spec(jax.random.PRNGKey(0), jnp.array([1.0, 2.0]))
        assert candidate.shape == (2,)
        assert log_ratio == 0.0
        assert not np.array_equal(np.asarray(new_key), np.asarray(jax.random.PRNGKey(0)))

    def test_random_walk_step_scale(self):
        key = jax.random.PRNGKey(3)
        small, _, _ = rand_walk_step(key, jnp.zeros(1000), 0.01)
        large, _, _ = rand_walk_step(key, jnp.zeros(1000), 10.0)
        np.testing.assert_allclose(np.asarray(large), 1000.0 * np.asarray(small), rtol=1e-9)

    def test_random_walk_rejects_bad_scale(self):
        with pytest.raises(ValueError):
            random_walk_proposal(0.0)

    def test_independent_hastings_ratio(self):
        spec = gamma_independent_proposal(5.0, 6.0)
        assert spec.kind == ProposalType.INDEPENDENT
        assert not spec.symmetric
        current = 0.9
        candidate, log_ratio, _ = spec(jax.random.PRNGKey(1), jnp.array(current))
        expected = (stats.gamma.logpdf(current, 5.0, scale=1 / 6.0)
                    - stats.gamma.logpdf(float(candidate), 5.0, scale=1 / 6.0))
        np.testing.assert_allclose(float(log_ratio), expected, rtol=1e-8)
        assert float(candidate) > 0

    def test_independent_ignores_current_state(self):
        spec = gamma_independent_proposal(5.0, 6.0)
        key = jax.random.PRNGKey(2)
        a, _, _ = spec(key, jnp.array(0.1))
        b, _, _ = spec(key, jnp.array(7.0))
        assert float(a) == float(b)

    def test_custom_independent_proposal(self):
        spec = independent_proposal(
            lambda key: jax.random.uniform(key),
            lambda y: jnp.where((y >= 0) & (y <= 1), 0.0, -jnp.inf),
            label='uniform',
        )
        candidate, log_ratio, _ = spec(jax.random.PRNGKey(0), jnp.array(0.5))
        assert 0.0 <= float(candidate) <= 1.0
        assert float(log_ratio) == 0.0
        assert spec.label == 'uniform'

    def test_gamma_proposal_rejects_bad_parameters(self):
        with pytest.raises(ValueError):
            gamma_independent_proposal(-1.0, 1.0)

    def test_spec_validation(self):
        with pytest.raises(ValueError):
            ProposalSpec(kind=ProposalType.RANDOM_WALK, propose=None)
        with pytest.raises(ValueError):
            ProposalSpec(kind=7, propose=lambda key, x: (x, 0.0, key))
        spec = ProposalSpec(kind=1, propose=lambda key, x: (x, 0.0, key))
        assert spec.kind is ProposalType.RANDOM_WALK


# ============================================================================
# CONFIGURATION AND VALIDATION
# ============================================================================

class TestConfig:
    """Config defaults, sampler lookup and RNG keys."""

    def test_sampler_from_name(self):
        assert SamplerType.from_config('Mixture-Gibbs') == SamplerType.MIXTURE_GIBBS
        assert SamplerType.from_config('hybrid_gibbs') == SamplerType.HYBRID_GIBBS
        assert SamplerType.from_config(0) == SamplerType.METROPOLIS_HASTINGS
        assert SamplerType.from_config(SamplerType.HYBRID_GIBBS) == SamplerType.HYBRID_GIBBS

    def test_unknown_sampler(self):
        with pytest.raises(ValueError, match="Unknown sampler"):
            SamplerType.from_config('slice')

    def test_defaults(self):
        config = clean_config({'sampler': 'hybrid_gibbs'})
        assert config['num_iterations'] == 10000
        assert config['burn_iter'] == 0
        assert config['thin_iteration'] == 1
        assert config['prior_shape'] == 6.25
        assert config['prior_rate'] == 0.025
        assert config['walk_scale'] == 20.0

    def test_user_values_win(self):
        config = clean_config({'sampler': 'mixture_gibbs', 'num_components': 4})
        assert config['num_components'] == 4
        assert config['save_allocations'] is True

    def test_clean_config_does_not_mutate_input(self):
        raw = {'sampler': 'metropolis_hastings'}
        clean_config(raw)
        assert raw == {'sampler': 'metropolis_hastings'}

    def test_rng_keys_deterministic(self):
        k1, _ = gen_rng_keys(5)
        k2, _ = gen_rng_keys(5)
        k3, _ = gen_rng_keys(6)
        assert np.array_equal(np.asarray(k1), np.asarray(k2))
        assert not np.array_equal(np.asarray(k1), np.asarray(k3))


class TestValidation:
    """Input validation raises one ValueError listing every problem."""

    def test_valid_config_passes(self):
        validate_mcmc_config(clean_config({'sampler': 'mixture_gibbs', 'num_iterations': 100}))

    def test_burn_iter_too_large(self):
        config = clean_config({'num_iterations': 100, 'burn_iter': 100})
        with pytest.raises(ValueError, match="burn_iter"):
            validate_mcmc_config(config)

    def test_all_errors_reported_together(self):
        config = clean_config({'sampler': 'hybrid_gibbs', 'num_iterations': 0,
                               'thin_iteration': 0, 'walk_scale': -1.0})
        with pytest.raises(ValueError) as excinfo:
            validate_mcmc_config(config)
        message = str(excinfo.value)
        assert 'num_iterations' in message
        assert 'thin_iteration' in message
        assert 'walk_scale' in message

    def test_unknown_sampler_in_config(self):
        with pytest.raises(ValueError, match="Unknown sampler"):
            validate_mcmc_config(clean_config({'sampler': 'gradient_descent'}))

    def test_mixture_inputs(self):
        with pytest.raises(ValueError, match="num_components"):
            validate_mixture_inputs(np.zeros(5), 0, 10)
        with pytest.raises(ValueError, match="one-dimensional"):
            validate_mixture_inputs(np.zeros((5, 2)), 2, 10)
        with pytest.raises(ValueError, match="NaN"):
            validate_mixture_inputs(np.array([1.0, np.nan]), 2, 10)

    def test_hybrid_inputs(self):
        with pytest.raises(ValueError, match="exceed"):
            validate_hybrid_inputs([5, 12], [10, 10], 10, 6.25, 0.025, 20.0)
        with pytest.raises(ValueError, match="same shape"):
            validate_hybrid_inputs([5, 6], [10], 10, 6.25, 0.025, 20.0)
        with pytest.raises(ValueError, match="prior_rate"):
            validate_hybrid_inputs([5], [10], 10, 6.25, 0.0, 20.0)

    def test_credible_level(self):
        validate_credible_level(0.95)
        for bad in (0.0, 1.0, 1.5, -0.1):
            with pytest.raises(ValueError):
                validate_credible_level(bad)


# ============================================================================
# CHAINS AND POST-PROCESSING
# ============================================================================

class TestChain:
    """Chain structure and immutability."""

    def test_indexing_and_marginals(self):
        chain = make_chain(10)
        assert len(chain) == 10
        assert chain.names == ('x',)
        assert float(chain[3]['x']) == 3.0
        np.testing.assert_array_equal(chain.marginal('x'), np.arange(10.0))
        assert float(chain.point_estimate('x')) == 4.5

    def test_unknown_variable(self):
        with pytest.raises(KeyError):
            make_chain().marginal('y')

    def test_arrays_are_read_only(self):
        chain = make_chain()
        with pytest.raises(ValueError):
            chain.draws['x'][0] = 100.0

    def test_fields_are_frozen(self):
        chain = make_chain()
        with pytest.raises(dataclasses.FrozenInstanceError):
            chain.sampler = 'other'

    def test_point_estimate_skips_integer_variables(self):
        chain = build_chain(
            {'means': np.ones((4, 2)), 'counts': np.ones((4, 2), dtype=np.int32)},
            sampler='test',
        )
        assert set(chain.point_estimate()) == {'means'}

    def test_build_chain_checks_lengths(self):
        with pytest.raises(ValueError, match="iteration axis"):
            build_chain({'a': np.zeros(3), 'b': np.zeros(4)}, sampler='test')
        with pytest.raises(ValueError):
            build_chain({}, sampler='test')


class TestPostProcessing:
    """Burn-in removal, thinning and pooling."""

    def test_burnin(self):
        chain = make_chain(10)
        kept = apply_burnin(chain, 3)
        assert len(kept) == 7
        assert float(kept[0]['x']) == 3.0
        assert len(kept.accepted['x']) == 7
        assert kept.metadata['post_processing'] == ['burnin(3)']
        assert kept.metadata['seed'] == 1
        # Original untouched
        assert len(chain) == 10

    def test_burnin_bounds(self):
        chain = make_chain(10)
        with pytest.raises(ValueError):
            apply_burnin(chain, 10)
        with pytest.raises(ValueError):
            apply_burnin(chain, -1)

    def test_thinning_keeps_first_state(self):
        thinned = thin_chain(make_chain(10), 3)
        np.testing.assert_array_equal(thinned.marginal('x'), [0.0, 3.0, 6.0, 9.0])

    def test_thinning_by_one_is_identity(self):
        chain = make_chain(10)
        assert thin_chain(chain, 1) is chain

    def test_bad_thinning(self):
        with pytest.raises(ValueError):
            thin_chain(make_chain(10), 0)

    def test_processing_notes_accumulate(self):
        chain = thin_chain(apply_burnin(make_chain(10), 2), 2)
        assert chain.metadata['post_processing'] == ['burnin(2)', 'thin(2)']

    def test_pool_marginals(self):
        pooled = pool_marginals([make_chain(4), make_chain(3)], 'x')
        np.testing.assert_array_equal(pooled, [0.0, 1.0, 2.0, 3.0, 0.0, 1.0, 2.0])
        with pytest.raises(ValueError):
            pool_marginals([], 'x')


# ============================================================================
# REGISTRY
# ============================================================================

class TestRegistry:
    """Named MH targets for the config-driven entry point."""

    def test_example_target_registered(self):
        assert 'gamma_4.3_6.2' in list_posteriors()
        target = get_posterior('gamma_4.3_6.2')
        assert target['proposal'].kind == ProposalType.INDEPENDENT

    def test_register_and_get(self, clean_registry):
        register_posterior('std_normal', {
            'log_target': normal_log_density(),
            'proposal': random_walk_proposal(1.0),
            'initial_state': 0.0,
        })
        assert get_posterior('std_normal')['initial_state'] == 0.0

    def test_duplicate_name(self, clean_registry):
        config = {
            'log_target': normal_log_density(),
            'proposal': random_walk_proposal(1.0),
            'initial_state': 0.0,
        }
        register_posterior('dup', config)
        with pytest.raises(ValueError, match="already registered"):
            register_posterior('dup', config)

    def test_missing_keys(self, clean_registry):
        with pytest.raises(ValueError, match="initial_state"):
            register_posterior('incomplete', {
                'log_target': normal_log_density(),
                'proposal': random_walk_proposal(1.0),
            })

    def test_unknown_name(self):
        with pytest.raises(KeyError, match="Unknown posterior"):
            get_posterior('no_such_target')


# ============================================================================
# DIAGNOSTICS
# ============================================================================

class TestDiagnostics:
    """Acceptance rates, running means and issue detection."""

    def test_acceptance_rate_ignores_initial_state(self):
        chain = make_chain(5)  # accepted = [nan, 1, 0, 1, 0]
        assert acceptance_rate(chain) == 0.5
        assert acceptance_rate(chain, 'x') == 0.5

    def test_acceptance_rate_without_record(self):
        chain = build_chain({'x': np.zeros(3)}, sampler='mixture_gibbs')
        with pytest.raises(ValueError):
            acceptance_rate(chain)

    def test_running_mean(self):
        np.testing.assert_allclose(running_mean([1.0, 2.0, 3.0]), [1.0, 1.5, 2.0])
        np.testing.assert_allclose(
            running_mean(np.array([[0.0, 2.0], [2.0, 4.0]])), [[0.0, 2.0], [1.0, 3.0]]
        )

    def test_compare_chain_means(self):
        result = compare_chain_means([make_chain(3), make_chain(5)], 'x')
        np.testing.assert_allclose(result['means'], [1.0, 2.0])
        np.testing.assert_allclose(result['spread'], 1.0)

    def test_stuck_chain_flagged(self):
        chain = build_chain(
            {'x': np.ones(50)},
            sampler='metropolis_hastings',
            accepted={'x': np.concatenate([[np.nan], np.zeros(49)])},
        )
        diagnostics = diagnose_sampler_issues(chain)
        assert any('stuck' in w for w in diagnostics['warnings'])
        assert any('very low' in w for w in diagnostics['warnings'])
        assert not diagnostics['issues']

    def test_nan_flagged(self):
        chain = build_chain({'x': np.array([0.0, np.nan, 1.0])}, sampler='test')
        diagnostics = diagnose_sampler_issues(chain)
        assert diagnostics['issues']

    def test_summaries_are_logged(self, caplog):
        chain = make_chain(5)
        with caplog.at_level(logging.INFO, logger='mcpost'):
            print_acceptance_summary(chain)
            print_diagnostics(diagnose_sampler_issues(chain))
        assert "0.500 over 4 proposals" in caplog.text
        assert "Sampler: test" in caplog.text
