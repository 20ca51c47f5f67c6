from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pygame.math import Vector2


class AgentMood(str, Enum):
    READY = "ready"
    CHASING = "chasing"
    RETURNING = "returning"


@dataclass(slots=True)
class Dog:
    position: Vector2
    speed: float
    has_ball: bool = False
    mood: AgentMood = AgentMood.READY
    wiggle_phase: int = 0
