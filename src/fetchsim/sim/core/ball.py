from __future__ import annotations

from dataclasses import dataclass, field

from pygame.math import Vector2


@dataclass(slots=True)
class Ball:
    position: Vector2
    velocity: Vector2 = field(default_factory=Vector2)
    in_air: bool = False
    at_rest: bool = True
    carried: bool = False

    @property
    def idle(self) -> bool:
        return not self.in_air and not self.carried
