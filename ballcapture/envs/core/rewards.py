from __future__ import annotations

from typing import List, NamedTuple

from ballcapture.envs.core.actions import Action
from ballcapture.envs.core.movement import next_state
from ballcapture.envs.core.params import BIG_REWARD, DEFAULT_PARAMS, SoccerParams
from ballcapture.envs.core.state import State

INITIAL_DISCOUNT = 0.95


def _step_reward(state: State, successor: State, params: SoccerParams) -> float:
    if state.is_terminal(params):
        return 0.0
    if successor.relative_distance < params.kickable_margin:
        return BIG_REWARD
    return -successor.relative_distance


def reward(
    state: State,
    action: Action,
    params: SoccerParams = DEFAULT_PARAMS,
    discrete: bool = False,
) -> float:
    """Success bonus once the ball is kickable, otherwise minus the next distance."""
    return _step_reward(state, next_state(state, action, params, discrete), params)


def trajectory_reward(
    initial_state: State,
    policy,
    n_steps: int,
    params: SoccerParams = DEFAULT_PARAMS,
    initial_discount: float = INITIAL_DISCOUNT,
    discrete: bool = False,
) -> float:
    """
    Discounted return of `policy` rolled out from `initial_state`.

    The discount factor is squared after every step (0.95, 0.95**2, 0.95**4, ...)
    rather than multiplied by the base factor. This decays much faster than a
    geometric schedule and changes which trajectories score well, so it is kept
    as is.
    """
    s = initial_state
    a = policy.choose_action(s)
    # the successor scored by `reward` is the state the rollout advances to
    successor = next_state(s, a, params, discrete)
    total = _step_reward(s, successor, params)
    discount = initial_discount
    n_iterations = 1
    while not s.is_terminal(params) and n_iterations < n_steps:
        s = successor
        a = policy.choose_action(s)
        successor = next_state(s, a, params, discrete)
        total += discount * _step_reward(s, successor, params)
        discount *= discount
        n_iterations += 1
    return total


class TrajectoryStep(NamedTuple):
    state: State
    action: Action
    reward: float


def trajectory_trace(
    initial_state: State,
    policy,
    n_steps: int,
    params: SoccerParams = DEFAULT_PARAMS,
    discrete: bool = False,
) -> List[TrajectoryStep]:
    """Undiscounted step-by-step record of the rollout scored by `trajectory_reward`."""
    steps: List[TrajectoryStep] = []
    s = initial_state
    for _ in range(max(1, n_steps)):
        a = policy.choose_action(s)
        steps.append(TrajectoryStep(s, a, reward(s, a, params, discrete)))
        if s.is_terminal(params):
            break
        s = next_state(s, a, params, discrete)
    return steps
