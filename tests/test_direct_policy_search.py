import math

import numpy as np
import pytest

from ballcapture.envs.core.actions import Action
from ballcapture.envs.core.state import State
from ballcapture.search import DirectPolicySearch, IterationResult
from ballcapture.search.scoring import score_population, score_population_parallel


def make_search(states, **overrides):
    initial, performance = states
    kwargs = dict(
        n_basis_functions=4,
        n_samples=6,
        elite_fraction=0.5,
        n_iterations=2,
        optimization_horizon=5,
        performance_horizon=5,
        seed=0,
        initial_states=initial,
        performance_states=performance,
        progress=False,
    )
    kwargs.update(overrides)
    return DirectPolicySearch(**kwargs)


def test_initial_action_assignment(small_state_sets):
    dps = make_search(small_state_sets, n_basis_functions=14)
    actions = [bf.action_id for bf in dps.basis_functions]
    assert actions[:12] == list(range(11, -1, -1))
    assert actions[12:] == [11, 10]
    # the live basis functions start on the distribution means
    assert np.array_equal(dps.basis_functions[0].centers, dps.distribution.centers_means[0])
    assert np.array_equal(dps.basis_functions[0].radii, dps.distribution.radii_means[0])


def test_default_state_sets():
    dps = DirectPolicySearch(n_basis_functions=2, n_samples=2, seed=0, progress=False)
    assert len(dps.initial_states) == 405
    assert len(dps.performance_states) == 3168


@pytest.mark.parametrize(
    "overrides",
    [
        {"n_basis_functions": 0},
        {"n_samples": 0},
        {"elite_fraction": 0.0},
        {"elite_fraction": 1.5},
        {"optimization_horizon": 0},
        {"initial_states": []},
    ],
)
def test_invalid_configuration(small_state_sets, overrides):
    with pytest.raises(ValueError):
        make_search(small_state_sets, **overrides)


def test_choose_action_delegates_to_policy(small_state_sets):
    dps = make_search(small_state_sets)
    s = State(0.5, 10.0, 0.2, 0.0, 0.0, 4.0, 20.0)
    action = dps.choose_action(s)
    assert isinstance(action, Action)
    assert action.index == dps.policy.choose_action_index(s)


def test_run_iteration_updates_distribution(small_state_sets):
    dps = make_search(small_state_sets)
    result = dps.run_iteration()

    assert isinstance(result, IterationResult)
    assert result.iteration == 1
    assert result.n_elites == 3
    assert result.best_score >= result.elite_mean_score
    assert result.checkpoint_path is None
    assert dps.total_iterations == 1
    assert dps.total_computation_time > 0.0

    assert dps.distribution.centers_means.shape == (4, 7)
    assert dps.distribution.bernoulli_means.shape == (4, 4)
    # live policy carries the refit means
    centers = np.array([bf.centers for bf in dps.basis_functions])
    assert np.allclose(centers, dps.distribution.centers_means)
    assert all(0 <= bf.action_id < 12 for bf in dps.basis_functions)

    assert result.optimization.n_states == 3
    assert result.test.n_states == 2
    assert 0 <= result.optimization.n_bad_states <= 3


def test_run_respects_iteration_budget(small_state_sets):
    dps = make_search(small_state_sets)
    seen = []
    results = dps.run(on_iteration=lambda search, result: seen.append(result.iteration))
    assert [r.iteration for r in results] == [1, 2]
    assert seen == [1, 2]
    assert dps.run() == []
    assert len(dps.run(n_iterations=1)) == 1
    assert dps.total_iterations == 3


def test_same_seed_same_search(small_state_sets):
    a = make_search(small_state_sets)
    b = make_search(small_state_sets)
    ra, rb = a.run_iteration(), b.run_iteration()
    assert ra.best_score == rb.best_score
    assert np.array_equal(a.distribution.centers_means, b.distribution.centers_means)


def test_all_bad_states_give_undefined_average(small_state_sets):
    dps = make_search(small_state_sets)
    report = dps.compute_performance([State(0, 0, 0, 0, 0, 100.0, 0)])
    assert report.n_bad_states == 1
    assert report.all_bad
    assert math.isnan(report.average_score)


def test_captured_states_count_as_good(small_state_sets):
    dps = make_search(small_state_sets)
    report = dps.compute_performance([State(0, 0, 0, 0, 0, 0.3, 0), State(0, 0, 0, 0, 0, 100.0, 0)])
    assert report.n_bad_states == 1
    assert report.average_score == 0.0
    assert report.bad_state_ratio == 0.5


def test_most_likely_actions_fall_back_outside_menu(small_state_sets):
    dps = make_search(small_state_sets)
    dps.distribution.bernoulli_means[:] = [[0.9, 0.1, 0.9, 0.1]] * 4
    dps.distribution.bernoulli_means[3] = 0.9
    actions = dps.most_likely_actions(np.array([0, 1, 2, 3]))
    assert actions.tolist() == [10, 10, 10, 3]


def test_describe_lists_progress(small_state_sets):
    dps = make_search(small_state_sets)
    text = str(dps)
    assert "Nb of samples: 6" in text
    assert "Nb of basis functions: 4" in text
    assert "Nb of discrete actions: 12" in text
    assert "Total number of iterations completed so far: 0" in text


def test_parallel_scoring_matches_serial(small_state_sets):
    dps = make_search(small_state_sets)
    population = dps.sample_population()
    serial = score_population(dps.mdp, dps.policy, population, dps.initial_states, 5)
    parallel = score_population_parallel(dps.params, population, dps.initial_states, 5, num_workers=2)
    assert np.allclose(serial, parallel)
