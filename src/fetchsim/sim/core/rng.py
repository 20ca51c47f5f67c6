from __future__ import annotations

import random

from pygame.math import Vector2


class DeterministicRng:
    def __init__(self, seed: int):
        self._seed = seed
        self._random = random.Random(seed)

    @property
    def seed(self) -> int:
        return self._seed

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_range(self, low: float, high: float) -> float:
        return self._random.uniform(low, high)

    def next_throw(self, max_drag: float) -> Vector2:
        """Random drag vector aimed forward and upward, at 25-100% of ``max_drag``."""
        angle = self.next_range(-80.0, -10.0)
        length = self.next_range(0.25, 1.0) * max_drag
        vector = Vector2()
        vector.from_polar((length, angle))
        return vector
