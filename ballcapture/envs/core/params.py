from __future__ import annotations

from dataclasses import dataclass

from ballcapture.utils.stats import n_selector_bits


@dataclass(frozen=True)
class SoccerParams:
    """Physical constants of the simulated soccer server (RoboCup defaults)."""

    ball_decay: float = 0.94
    player_decay: float = 0.4
    ball_speed_max: float = 3.0
    player_speed_max: float = 1.05
    player_accel_max: float = 1.0
    dash_power_rate: float = 0.006
    kickable_margin: float = 0.7
    max_dash_power: float = 100.0
    # Furthest relative distance the evaluation grids and center samples cover
    max_distance: float = 125.0
    turn_steps: int = 8
    dash_steps: int = 4

    def __post_init__(self):
        if self.turn_steps < 0 or self.dash_steps < 0:
            raise ValueError("turn_steps and dash_steps must be non-negative")
        if self.turn_steps + self.dash_steps < 2:
            raise ValueError("The action menu needs at least two discrete actions")

    @property
    def n_discrete_actions(self) -> int:
        return self.turn_steps + self.dash_steps

    @property
    def n_selector_bits(self) -> int:
        return n_selector_bits(self.n_discrete_actions)


DEFAULT_PARAMS = SoccerParams()

BIG_REWARD = 1_000_000.0
