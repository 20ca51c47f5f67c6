from __future__ import annotations

from pygame.math import Vector2

from ..core.agent import AgentMood
from ..core.config import SimulationConfig
from ..core.state import GameState
from ..utils.math2d import _clamp_length


def begin_aim(state: GameState, pointer: Vector2, config: SimulationConfig) -> bool:
    """Start aiming when the pointer is on the hand and the ball is in it.

    A press away from the hand is refused even while an aim is pending; the
    pending aim is kept as it was.
    """
    if Vector2(pointer).distance_to(state.anchor) >= config.throw.aim_radius:
        return False
    if state.aim.active:
        return True
    if not state.ball_at_anchor(config) or state.dog.has_ball:
        return False
    state.aim.active = True
    state.aim.vector = Vector2()
    return True


def update_aim(state: GameState, drag: Vector2, config: SimulationConfig) -> None:
    if not state.aim.active:
        return
    state.aim.vector = _clamp_length(Vector2(drag), config.throw.max_drag)


def aim_power(state: GameState, config: SimulationConfig) -> float:
    return min(state.aim.vector.length(), config.throw.max_drag)


def release_throw(state: GameState, config: SimulationConfig) -> bool:
    """Launch the ball from the hand along the pending aim vector.

    Returns False without touching the state when no aim was started or the
    ball is already airborne or carried.
    """
    ball = state.ball
    if not state.aim.active or ball.in_air or ball.carried:
        return False

    ball.position = Vector2(state.anchor)
    ball.velocity = state.aim.vector * config.throw.power_scale
    ball.in_air = True
    ball.at_rest = False
    ball.carried = False
    state.dog.mood = AgentMood.READY
    state.guard.arm()
    state.aim.active = False
    state.throws += 1
    return True
