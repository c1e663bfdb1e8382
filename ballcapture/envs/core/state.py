from __future__ import annotations

import itertools
from dataclasses import dataclass, replace
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from ballcapture.envs.core.geometry import normalize_angle
from ballcapture.envs.core.params import DEFAULT_PARAMS, SoccerParams

STATE_DIMENSIONS = 7

STATE_FIELD_NAMES: Tuple[str, ...] = (
    "ball_velocity_norm",
    "ball_velocity_direction",
    "player_velocity_norm",
    "player_velocity_direction",
    "player_body_direction",
    "relative_distance",
    "relative_direction",
)

ANGLE_FIELDS = frozenset(
    {
        "ball_velocity_direction",
        "player_velocity_direction",
        "player_body_direction",
        "relative_direction",
    }
)

# Grid step per state dimension used by `discretize`
DISCRETIZATION_STEPS: Tuple[float, ...] = (0.3, 15.0, 0.15, 15.0, 15.0, 0.5, 15.0)

# (start, stop, step) per dimension, stop exclusive
OPTIMIZATION_GRID: Tuple[Tuple[float, float, float], ...] = (
    (0.0, 3.0, 3.0),
    (-180.0, 180.0, 120.0),
    (0.0, 1.05, 1.05),
    (-180.0, 180.0, 120.0),
    (-180.0, 180.0, 120.0),
    (0.0, 125.0, 25.0),
    (-180.0, 180.0, 120.0),
)

PERFORMANCE_TEST_GRID: Tuple[Tuple[float, float, float], ...] = (
    (1.5, 3.0, 3.0),
    (-155.0, 180.0, 105.0),
    (0.9, 1.05, 1.05),
    (-164.0, 180.0, 130.0),
    (-145.0, 180.0, 96.0),
    (0.9, 125.0, 12.0),
    (-170.0, 180.0, 60.0),
)


@dataclass(frozen=True)
class State:
    """Relative ball-capture state seen from the player.

    Angles are in degrees and are normalized to (-180, 180] on construction.
    """

    ball_velocity_norm: float
    ball_velocity_direction: float
    player_velocity_norm: float
    player_velocity_direction: float
    player_body_direction: float
    relative_distance: float
    relative_direction: float
    terminal: bool = False

    def __post_init__(self):
        for name in STATE_FIELD_NAMES:
            value = float(getattr(self, name))
            if name in ANGLE_FIELDS:
                value = normalize_angle(value)
            object.__setattr__(self, name, value)

    def is_terminal(self, params: SoccerParams = DEFAULT_PARAMS) -> bool:
        """Terminal once flagged by the dynamics or when the ball is within `params.kickable_margin`."""
        return self.terminal or self.relative_distance < params.kickable_margin

    def as_array(self) -> np.ndarray:
        return np.array([getattr(self, name) for name in STATE_FIELD_NAMES], dtype=np.float64)

    @classmethod
    def from_array(cls, values: Sequence[float], terminal: bool = False) -> "State":
        if len(values) != STATE_DIMENSIONS:
            raise ValueError(f"Expected {STATE_DIMENSIONS} state values, got {len(values)}")
        return cls(*(float(v) for v in values), terminal=terminal)

    def __str__(self) -> str:
        values = ", ".join(f"{getattr(self, name):.3f}" for name in STATE_FIELD_NAMES)
        return f"State({values}{', terminal' if self.terminal else ''})"


def discretize(state: State, steps: Sequence[float] = DISCRETIZATION_STEPS) -> State:
    """Snap every field onto its grid step. Lossy and one-way."""
    snapped = {}
    for name, step in zip(STATE_FIELD_NAMES, steps):
        value = getattr(state, name)
        snapped[name] = round(value / step) * step if step > 0 else value
    return replace(state, **snapped)


def _grid_axis(start: float, stop: float, step: float) -> List[float]:
    if step <= 0:
        raise ValueError(f"Grid step must be positive, got {step}")
    return [float(v) for v in np.arange(start, stop, step)]


def enumerate_states(grid: Iterable[Tuple[float, float, float]]) -> List[State]:
    """Cartesian product of per-dimension (start, stop, step) ranges."""
    axes = [_grid_axis(*axis) for axis in grid]
    if len(axes) != STATE_DIMENSIONS:
        raise ValueError(f"A state grid needs {STATE_DIMENSIONS} axes, got {len(axes)}")
    return [State(*values) for values in itertools.product(*axes)]


def optimization_states() -> List[State]:
    """Fixed initial states the search scores its samples on."""
    return enumerate_states(OPTIMIZATION_GRID)


def performance_test_states() -> List[State]:
    """Held-out states, disjoint from `optimization_states`, used only for reporting."""
    return enumerate_states(PERFORMANCE_TEST_GRID)
