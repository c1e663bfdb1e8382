# ball_capture_mdp.py
"""
Ball capture Markov Decision Process.

A single player has to reach a moving ball. The state is expressed relative
to the player (see `State`), the action menu mixes turns and dashes, and the
reward is minus the distance to the ball with a large bonus once it becomes
kickable. The transition and reward functions are pure; this class only binds
them to one set of physical constants.
"""

from __future__ import annotations

from typing import List

from ballcapture.envs.core.actions import Action, action_menu
from ballcapture.envs.core.movement import next_state
from ballcapture.envs.core.params import DEFAULT_PARAMS, SoccerParams
from ballcapture.envs.core.rewards import (
    TrajectoryStep,
    reward,
    trajectory_reward,
    trajectory_trace,
)
from ballcapture.envs.core.state import State


class BallCaptureMDP:
    """Dynamics model bound to a `SoccerParams` table. Holds no mutable state."""

    def __init__(self, params: SoccerParams = DEFAULT_PARAMS, discrete: bool = False):
        self.params = params
        self.discrete = discrete

    @property
    def n_discrete_actions(self) -> int:
        return self.params.n_discrete_actions

    def action(self, index: int) -> Action:
        return Action.from_index(index, self.params)

    def actions(self) -> List[Action]:
        return action_menu(self.params)

    def transition(self, state: State, action: Action) -> State:
        return next_state(state, action, self.params, self.discrete)

    def reward(self, state: State, action: Action) -> float:
        return reward(state, action, self.params, self.discrete)

    def rollout(self, initial_state: State, policy, max_steps: int) -> float:
        return trajectory_reward(
            initial_state, policy, max_steps, self.params, discrete=self.discrete
        )

    def trace(self, initial_state: State, policy, max_steps: int) -> List[TrajectoryStep]:
        return trajectory_trace(initial_state, policy, max_steps, self.params, self.discrete)
