from __future__ import annotations

import math

from pygame.math import Vector2


def _safe_normalize_xy(x: float, y: float) -> Vector2:
    magnitude_sq = x * x + y * y
    if magnitude_sq < 1e-10:
        return Vector2()
    inv = 1.0 / math.sqrt(magnitude_sq)
    return Vector2(x * inv, y * inv)


def _clamp_length(vector: Vector2, max_length: float) -> Vector2:
    if max_length <= 0:
        return Vector2()
    magnitude_sq = vector.length_squared()
    if magnitude_sq <= max_length * max_length:
        return Vector2(vector)
    if magnitude_sq == 0:
        return Vector2()
    return vector.normalize() * max_length


def _distance(a: Vector2, b: Vector2) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def move_toward(position: Vector2, target: Vector2, speed: float) -> None:
    """Step ``position`` in place toward ``target`` by at most ``speed`` units.

    When the remaining distance is shorter than one step the position lands
    exactly on the target, so a zero-length offset is never normalized.
    """
    offset_x = target.x - position.x
    offset_y = target.y - position.y
    distance = math.hypot(offset_x, offset_y)
    if distance < speed or distance <= 0.0:
        position.update(target.x, target.y)
        return
    step = _safe_normalize_xy(offset_x, offset_y) * speed
    position.x += step.x
    position.y += step.y
