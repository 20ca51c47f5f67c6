from __future__ import annotations

from dataclasses import dataclass, field

from pygame.math import Vector2

from .agent import AgentMood, Dog
from .ball import Ball
from .config import SimulationConfig
from ..systems.scoring import ScoringGuard


@dataclass(slots=True)
class AimState:
    active: bool = False
    vector: Vector2 = field(default_factory=Vector2)


@dataclass(slots=True)
class GameState:
    ball: Ball
    dog: Dog
    anchor: Vector2
    score: int = 0
    guard: ScoringGuard = field(default_factory=ScoringGuard)
    aim: AimState = field(default_factory=AimState)
    throws: int = 0
    retrievals: int = 0

    @classmethod
    def initial(cls, config: SimulationConfig, score: int = 0) -> "GameState":
        throw = config.throw
        player_x, player_y = throw.player_position
        anchor = Vector2(player_x, player_y - throw.hand_height)
        ball = Ball(position=anchor + Vector2(throw.handoff_offset))
        dog = Dog(
            position=Vector2(config.dog.start_position),
            speed=config.dog.speed,
            mood=AgentMood.READY,
        )
        return cls(ball=ball, dog=dog, anchor=anchor, score=max(0, int(score)))

    def ball_at_anchor(self, config: SimulationConfig) -> bool:
        if not self.ball.idle:
            return False
        return self.ball.position.distance_to(self.anchor) < config.dog.drop_radius
