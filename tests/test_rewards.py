import numpy as np

from ballcapture.envs.ball_capture_mdp import BallCaptureMDP
from ballcapture.envs.core.actions import Action
from ballcapture.envs.core.movement import next_state
from ballcapture.envs.core.params import BIG_REWARD, DEFAULT_PARAMS, SoccerParams
from ballcapture.envs.core.rewards import INITIAL_DISCOUNT, reward, trajectory_reward, trajectory_trace
from ballcapture.envs.core.state import State

FULL_DASH = DEFAULT_PARAMS.n_discrete_actions - 1


class ConstantPolicy:
    def __init__(self, index):
        self.action = Action.from_index(index)

    def choose_action(self, state):
        return self.action


def test_reward_is_minus_next_distance(still_state):
    assert np.isclose(reward(still_state, Action.from_index(FULL_DASH)), -1.4)
    # turning in place leaves the distance at 2
    assert np.isclose(reward(still_state, Action.from_index(2)), -2.0)


def test_reward_decreases_with_distance():
    dash = Action.from_index(FULL_DASH)
    near = reward(State(0, 0, 0, 0, 0, 3.0, 0), dash)
    far = reward(State(0, 0, 0, 0, 0, 5.0, 0), dash)
    assert far < near


def test_kickable_bonus_regardless_of_other_fields():
    # player dashes into the ball
    assert reward(State(0, 0, 0, 0, 0, 1.2, 0), Action.from_index(FULL_DASH)) == BIG_REWARD
    # ball rolls onto a turning player
    assert reward(State(0.5, 180.0, 0, 0, 0, 1.0, 0), Action.from_index(0)) == BIG_REWARD
    # rotated frame: body at 90, ball straight ahead
    assert reward(State(0, 0, 0, 0, 90.0, 1.2, 0), Action.from_index(FULL_DASH)) == BIG_REWARD


def test_terminal_state_rewards_zero():
    s = State(0, 0, 0, 0, 0, 0.3, 0)
    assert reward(s, Action.from_index(FULL_DASH)) == 0.0


def test_discount_is_squared_each_step(still_state):
    # a turning player keeps a constant distance of 2 from a still ball
    total = trajectory_reward(still_state, ConstantPolicy(1), 4)
    d = INITIAL_DISCOUNT
    expected = -2.0 * (1.0 + d + d**2 + d**4)
    assert np.isclose(total, expected)


def test_single_step_horizon_is_undiscounted(still_state):
    assert np.isclose(trajectory_reward(still_state, ConstantPolicy(FULL_DASH), 1), -1.4)


def test_rollout_stops_after_capture(still_state):
    # -1.4 now, capture bonus on the second step, then the terminal state adds nothing
    total = trajectory_reward(still_state, ConstantPolicy(FULL_DASH), 30)
    assert np.isclose(total, -1.4 + INITIAL_DISCOUNT * BIG_REWARD)


def test_trace_records_each_step(still_state):
    mdp = BallCaptureMDP()
    steps = mdp.trace(still_state, ConstantPolicy(FULL_DASH), 30)
    assert len(steps) == 3
    assert steps[0].state == still_state
    assert np.isclose(steps[0].reward, -1.4)
    assert steps[1].reward == BIG_REWARD
    assert steps[2].state.is_terminal() and steps[2].reward == 0.0
    assert np.isclose(trajectory_trace(still_state, ConstantPolicy(1), 5)[-1].reward, -2.0)


def test_terminal_test_follows_configured_margin():
    tight = SoccerParams(kickable_margin=0.5)
    s = State(0, 0, 0, 0, 0, 0.65, 0)
    assert not s.is_terminal(tight)
    # still live under the tighter margin: turning keeps the distance
    assert np.isclose(reward(s, Action.from_index(1, tight), tight), -0.65)
    assert next_state(s, Action.from_index(FULL_DASH, tight), tight) != s
    assert reward(s, Action.from_index(FULL_DASH, tight), tight) == BIG_REWARD

    loose = SoccerParams(kickable_margin=1.0)
    s = State(0, 0, 0, 0, 0, 0.8, 0)
    assert s.is_terminal(loose)
    assert reward(s, Action.from_index(FULL_DASH, loose), loose) == 0.0
    assert next_state(s, Action.from_index(1, loose), loose) == s
    assert BallCaptureMDP(loose).rollout(s, ConstantPolicy(FULL_DASH), 10) == 0.0
