from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List

from ballcapture.envs.core.params import DEFAULT_PARAMS, SoccerParams


class ActionType(Enum):
    TURN = "turn"
    DASH = "dash"


@dataclass(frozen=True)
class Action:
    """A discrete menu entry: turn by `value` degrees or dash with power `value`."""

    action_type: ActionType
    value: float
    index: int

    @property
    def is_turn(self) -> bool:
        return self.action_type is ActionType.TURN

    @property
    def is_dash(self) -> bool:
        return self.action_type is ActionType.DASH

    @classmethod
    def from_index(cls, index: int, params: SoccerParams = DEFAULT_PARAMS) -> "Action":
        """
        Decode a discrete action number.

        Indices [0, turn_steps) are turns spread evenly over the full circle;
        the following dash_steps indices are dashes of increasing power.
        """
        index = int(index)
        n_actions = params.n_discrete_actions
        if not 0 <= index < n_actions:
            raise ValueError(f"Action index must be in [0, {n_actions}), got {index}")
        if index < params.turn_steps:
            angle = -180.0 + 360.0 * (index + 0.5) / params.turn_steps
            return cls(ActionType.TURN, angle, index)
        dash_idx = index - params.turn_steps
        power = params.max_dash_power * (dash_idx + 1) / params.dash_steps
        return cls(ActionType.DASH, power, index)

    def __str__(self) -> str:
        return f"{self.action_type.value}({self.value:g})"


def action_menu(params: SoccerParams = DEFAULT_PARAMS) -> List[Action]:
    """Every discrete action, ordered by index."""
    return [Action.from_index(i, params) for i in range(params.n_discrete_actions)]
