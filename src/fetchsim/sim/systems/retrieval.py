from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict

from pygame.math import Vector2

from ..core.agent import AgentMood, Dog
from ..core.config import DogConfig, SimulationConfig
from ..core.state import GameState
from ..utils.math2d import _distance, move_toward


@dataclass(slots=True)
class RetrievalEvents:
    started_chase: bool = False
    picked_up: bool = False
    delivered: bool = False
    scored: bool = False


def update_dog(state: GameState, config: SimulationConfig) -> RetrievalEvents:
    """Advance the dog's state machine by one tick.

    Must run after the ball has been integrated for the tick. A mood entered
    during the tick is handled in the same tick, but each mood runs at most
    once per tick.
    """
    events = RetrievalEvents()
    dog = state.dog
    dog.wiggle_phase += 1
    handled: set[AgentMood] = set()
    while dog.mood not in handled:
        mood = dog.mood
        handled.add(mood)
        _MOOD_HANDLERS[mood](state, config, events)
        if dog.mood is mood:
            break
    return events


def _update_ready(state: GameState, config: SimulationConfig, events: RetrievalEvents) -> None:
    dog = state.dog
    ball = state.ball
    if not dog.has_ball and ball.at_rest and not ball.carried and not state.ball_at_anchor(config):
        dog.mood = AgentMood.CHASING
        events.started_chase = True
        return
    ground_line = config.physics.ground_y - config.dog.stand_height
    move_toward(dog.position, Vector2(dog.position.x, ground_line), dog.speed)


def _update_chasing(state: GameState, config: SimulationConfig, events: RetrievalEvents) -> None:
    dog = state.dog
    ball = state.ball
    if dog.has_ball:
        dog.mood = AgentMood.RETURNING
        return
    move_toward(dog.position, ball.position, dog.speed)
    if _distance(dog.position, ball.position) < config.dog.pickup_radius:
        dog.has_ball = True
        ball.carried = True
        ball.in_air = False
        dog.mood = AgentMood.RETURNING
        events.picked_up = True


def _update_returning(state: GameState, config: SimulationConfig, events: RetrievalEvents) -> None:
    dog = state.dog
    ball = state.ball
    if not dog.has_ball:
        dog.mood = AgentMood.READY
        return
    move_toward(dog.position, state.anchor, dog.speed * config.dog.return_speed_multiplier)
    ball.position = dog.position + Vector2(config.dog.mouth_offset)
    if _distance(dog.position, state.anchor) >= config.dog.drop_radius:
        return

    dog.has_ball = False
    ball.carried = False
    ball.at_rest = True
    ball.in_air = False
    ball.velocity = Vector2()
    ball.position = state.anchor + Vector2(config.throw.handoff_offset)
    dog.mood = AgentMood.READY
    state.retrievals += 1
    events.delivered = True
    if state.guard.try_score():
        state.score += 1
        events.scored = True


_MOOD_HANDLERS: Dict[AgentMood, Callable[[GameState, SimulationConfig, RetrievalEvents], None]] = {
    AgentMood.READY: _update_ready,
    AgentMood.CHASING: _update_chasing,
    AgentMood.RETURNING: _update_returning,
}


def display_position(dog: Dog, config: DogConfig) -> Vector2:
    """Position to draw the dog at, including the idle wiggle.

    The wiggle is cosmetic; state transitions only ever read ``dog.position``.
    """
    if dog.mood is not AgentMood.READY:
        return Vector2(dog.position)
    offset = math.sin(dog.wiggle_phase * config.wiggle_frequency) * config.wiggle_amplitude
    return Vector2(dog.position.x, dog.position.y + offset)
