import numpy as np
import pytest

from ballcapture.envs.core.params import SoccerParams
from ballcapture.envs.core.state import State
from ballcapture.policies import MIN_RADIUS, RadialGaussian, RBFPolicy

EIGHT_ACTIONS = SoccerParams(turn_steps=4, dash_steps=4)
ON_STATE = [0.0, 0.0, 0.0, 0.0, 0.0, 10.0, 0.0]
FAR_AWAY = [0.0, 0.0, 0.0, 0.0, 0.0, 110.0, 0.0]


def test_radial_gaussian_peaks_at_center():
    center = [1.0, 10.0, 0.5, -20.0, 30.0, 5.0, 0.0]
    bf = RadialGaussian(0, centers=center, radii=[1.0] * 7)
    assert np.isclose(bf.score(State(*center)), 1.0)

    previous = 1.0
    for offset in (0.5, 1.0, 2.0, 4.0):
        s = State(*center[:5], center[5] + offset, center[6])
        score = bf.score(s)
        assert 0.0 < score < previous
        previous = score
    assert np.isclose(bf.score(State(*center[:5], center[5] + 1.0, center[6])), np.exp(-1.0))


def test_radial_gaussian_validates_parameters():
    with pytest.raises(ValueError):
        RadialGaussian(0, centers=[0.0] * 6)
    with pytest.raises(ValueError):
        RadialGaussian(0, radii=[1.0] * 6 + [MIN_RADIUS])
    bf = RadialGaussian(0)
    with pytest.raises(ValueError):
        bf.set_radii([0.0] * 7)
    # a rejected update leaves the radii untouched
    assert np.all(bf.radii == 1.0)


def test_single_scoring_action_wins():
    # 50 basis functions over 8 actions, only action 5 sits on the state
    bank = [
        RadialGaussian(i % 8, centers=ON_STATE if i % 8 == 5 else FAR_AWAY, radii=[1.0] * 7)
        for i in range(50)
    ]
    policy = RBFPolicy(bank, EIGHT_ACTIONS)
    s = State(*ON_STATE)
    assert policy.choose_action_index(s) == 5
    assert policy.choose_action(s).index == 5


def test_vectorized_scores_match_each_basis_function():
    rng = np.random.default_rng(11)
    bank = [
        RadialGaussian(int(rng.integers(0, 12)), centers=rng.uniform(-3, 3, 7), radii=rng.uniform(0.5, 40, 7))
        for _ in range(50)
    ]
    policy = RBFPolicy(bank)
    for s in (State(1.0, 20.0, 0.5, 30.0, -40.0, 2.0, 10.0), State(0.2, -90.0, 1.0, 0.0, 60.0, 0.9, -5.0)):
        expected = np.zeros(12)
        for bf in bank:
            expected[bf.action_id] += bf.score(s)
        assert np.allclose(policy.action_scores(s), expected)
        assert np.allclose(policy.basis_scores(s), [bf.score(s) for bf in bank])


def test_ties_go_to_lowest_index():
    bank = [RadialGaussian(a, centers=ON_STATE) for a in (6, 2, 4)]
    policy = RBFPolicy(bank, EIGHT_ACTIONS)
    assert policy.choose_action_index(State(*ON_STATE)) == 2


def test_action_without_basis_functions_scores_zero():
    bank = [RadialGaussian(a, centers=ON_STATE) for a in range(8) if a != 3]
    policy = RBFPolicy(bank, EIGHT_ACTIONS)
    scores = policy.action_scores(State(*ON_STATE))
    assert scores[3] == 0.0
    assert np.all(np.delete(scores, 3) == 1.0)


def test_empty_bank_picks_first_action():
    policy = RBFPolicy([], EIGHT_ACTIONS)
    assert policy.choose_action_index(State(*ON_STATE)) == 0


def test_choice_is_deterministic():
    rng = np.random.default_rng(3)
    bank = [
        RadialGaussian(i % 12, centers=rng.uniform(0, 3, 7), radii=rng.uniform(1, 50, 7))
        for i in range(20)
    ]
    policy = RBFPolicy(bank)
    s = State(1.0, 20.0, 0.5, 30.0, -40.0, 2.0, 10.0)
    first = policy.choose_action_index(s)
    assert all(policy.choose_action_index(s) == first for _ in range(5))


def test_assign_actions_rebuilds_partition():
    bank = [RadialGaussian(0) for _ in range(4)]
    policy = RBFPolicy(bank, EIGHT_ACTIONS)
    assert policy.partition[0] == [0, 1, 2, 3]
    policy.assign_actions([7, 1, 7, 2])
    assert policy.partition[7] == [0, 2]
    assert policy.partition[1] == [1]
    assert policy.partition[0] == []
    assert bank[2].action_id == 7
    with pytest.raises(ValueError):
        policy.assign_actions([8, 0, 0, 0])
    with pytest.raises(ValueError):
        policy.assign_actions([0, 0])


def test_load_parameters_overwrites_in_place():
    bank = [RadialGaussian(0) for _ in range(2)]
    policy = RBFPolicy(bank, EIGHT_ACTIONS)
    centers = np.arange(14, dtype=float).reshape(2, 7)
    radii = np.full((2, 7), 2.0)
    policy.load_parameters(centers, radii, [3, 4])
    assert policy.basis_functions[0] is bank[0]
    assert np.array_equal(bank[1].centers, centers[1])
    assert np.all(bank[0].radii == 2.0)
    assert policy.partition[3] == [0] and policy.partition[4] == [1]

    with pytest.raises(ValueError):
        policy.load_parameters(centers, np.zeros((2, 7)), [3, 4])
    with pytest.raises(ValueError):
        policy.load_parameters(centers[:1], radii[:1], [3])


def test_basis_updates_reach_the_policy():
    bank = [RadialGaussian(1), RadialGaussian(2)]
    policy = RBFPolicy(bank, EIGHT_ACTIONS)
    bank[1].set_centers(ON_STATE)
    assert np.array_equal(policy.centers[1], ON_STATE)
    assert policy.choose_action_index(State(*ON_STATE)) == 2
