from __future__ import annotations

from typing import TYPE_CHECKING

from pygame.math import Vector2

from ..core.ball import Ball
from ..core.config import PhysicsConfig

if TYPE_CHECKING:
    from ..core.agent import Dog


def integrate_ball(ball: Ball, dog: "Dog", physics: PhysicsConfig, mouth_offset: tuple[float, float]) -> None:
    """Advance the ball by one tick.

    A carried ball follows the dog's mouth and skips physics entirely. A ball
    that is neither carried nor in the air is left untouched.
    """
    if ball.carried:
        attach_to_mouth(ball, dog, mouth_offset)
        return
    if not ball.in_air:
        return

    apply_gravity(ball, physics)
    ball.position += ball.velocity
    resolve_ground_contact(ball, physics)
    apply_rolling_friction(ball, physics)
    detect_rest(ball, physics)
    clamp_to_world(ball, physics)


def attach_to_mouth(ball: Ball, dog: "Dog", mouth_offset: tuple[float, float]) -> None:
    ball.position = dog.position + Vector2(mouth_offset)
    ball.velocity = Vector2()
    ball.in_air = False
    ball.at_rest = True


def apply_gravity(ball: Ball, physics: PhysicsConfig) -> None:
    ball.velocity.y += physics.gravity


def _rest_height(physics: PhysicsConfig) -> float:
    return physics.ground_y - physics.ball_radius


def resolve_ground_contact(ball: Ball, physics: PhysicsConfig) -> None:
    if ball.position.y + physics.ball_radius < physics.ground_y:
        return
    ball.position.y = _rest_height(physics)
    ball.velocity.y *= physics.ground_restitution
    ball.velocity.x *= physics.bounce_damping
    # kill micro-bounces
    if abs(ball.velocity.y) < physics.bounce_cutoff:
        ball.velocity.y = 0.0


def apply_rolling_friction(ball: Ball, physics: PhysicsConfig) -> None:
    settled = abs(ball.position.y - _rest_height(physics)) < physics.settle_tolerance
    if not settled or ball.velocity.y != 0.0:
        return
    ball.velocity.x *= physics.roll_friction
    if abs(ball.velocity.x) < physics.roll_stop_speed:
        ball.velocity.x = 0.0


def detect_rest(ball: Ball, physics: PhysicsConfig) -> bool:
    grounded = ball.position.y >= _rest_height(physics) - physics.settle_tolerance
    if ball.velocity.length() < physics.rest_speed and grounded:
        ball.in_air = False
        ball.at_rest = True
        ball.velocity = Vector2()
        return True
    return False


def clamp_to_world(ball: Ball, physics: PhysicsConfig) -> None:
    radius = physics.ball_radius
    if ball.position.x < radius:
        ball.position.x = radius
        ball.velocity.x *= physics.wall_restitution
    elif ball.position.x > physics.world_width - radius:
        ball.position.x = physics.world_width - radius
        ball.velocity.x *= physics.wall_restitution
