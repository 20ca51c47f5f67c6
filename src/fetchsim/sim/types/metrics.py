from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    score: int
    mood: str
    ball_x: float
    ball_y: float
    ball_speed: float
    in_air: bool
    at_rest: bool
    carried: bool
    dog_x: float
    dog_y: float
    throws: int
    retrievals: int
    tick_duration_ms: float = 0.0
