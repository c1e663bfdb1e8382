from __future__ import annotations

from ballcapture.envs.core.actions import Action
from ballcapture.envs.core.geometry import Vector2D, normalize_angle
from ballcapture.envs.core.params import DEFAULT_PARAMS, SoccerParams
from ballcapture.envs.core.state import State, discretize


def player_velocity_after(state: State, action: Action, params: SoccerParams = DEFAULT_PARAMS) -> Vector2D:
    """Player velocity once the action's acceleration is applied, capped at max speed."""
    old_velocity = Vector2D.from_polar(state.player_velocity_norm, state.player_velocity_direction)
    if action.is_turn:
        return old_velocity

    acceleration = Vector2D.from_polar(
        action.value * params.dash_power_rate, state.player_body_direction
    ).clamp(params.player_accel_max)
    return old_velocity.add(acceleration).clamp(params.player_speed_max)


def next_state(
    state: State,
    action: Action,
    params: SoccerParams = DEFAULT_PARAMS,
    discrete: bool = False,
) -> State:
    """
    Closed-form one-step transition of the ball capture MDP.

    Terminal states are absorbing and returned unchanged. The new body
    direction is computed first; the relative bearing of the ball is then
    expressed against that new facing.
    """
    if state.is_terminal(params):
        return state

    ball_velocity = Vector2D.from_polar(state.ball_velocity_norm, state.ball_velocity_direction)
    new_player_velocity = player_velocity_after(state, action, params)

    old_rel_position = Vector2D.from_polar(
        state.relative_distance,
        normalize_angle(state.relative_direction + state.player_body_direction),
    )
    new_rel_position = old_rel_position.add(ball_velocity).subtract(new_player_velocity)

    body_direction = normalize_angle(
        state.player_body_direction + (action.value if action.is_turn else 0.0)
    )
    relative_distance = new_rel_position.polar_radius()

    result = State(
        ball_velocity_norm=state.ball_velocity_norm * params.ball_decay,
        ball_velocity_direction=state.ball_velocity_direction,
        player_velocity_norm=new_player_velocity.polar_radius() * params.player_decay,
        player_velocity_direction=new_player_velocity.polar_angle(),
        player_body_direction=body_direction,
        relative_distance=relative_distance,
        relative_direction=normalize_angle(new_rel_position.polar_angle() - body_direction),
        terminal=relative_distance < params.kickable_margin,
    )
    if discrete:
        result = discretize(result)
    return result
