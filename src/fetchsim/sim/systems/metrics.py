from __future__ import annotations

from ..core.state import GameState
from ..types.metrics import TickMetrics


def create_metrics(tick: int, state: GameState, duration_ms: float) -> TickMetrics:
    ball = state.ball
    dog = state.dog
    return TickMetrics(
        tick=tick,
        score=state.score,
        mood=dog.mood.value,
        ball_x=ball.position.x,
        ball_y=ball.position.y,
        ball_speed=ball.velocity.length(),
        in_air=ball.in_air,
        at_rest=ball.at_rest,
        carried=ball.carried,
        dog_x=dog.position.x,
        dog_y=dog.position.y,
        throws=state.throws,
        retrievals=state.retrievals,
        tick_duration_ms=duration_ms,
    )
