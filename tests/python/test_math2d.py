from __future__ import annotations

from pygame.math import Vector2
from pytest import approx

from fetchsim.sim.utils.math2d import _clamp_length, _distance, _safe_normalize_xy, move_toward


def test_move_toward_steps_by_speed_along_direction():
    position = Vector2(0.0, 0.0)
    move_toward(position, Vector2(100.0, 0.0), 4.6)
    assert position.x == approx(4.6)
    assert position.y == approx(0.0)

    diagonal = Vector2(0.0, 0.0)
    move_toward(diagonal, Vector2(30.0, 40.0), 5.0)
    assert diagonal.x == approx(3.0)
    assert diagonal.y == approx(4.0)


def test_move_toward_snaps_when_closer_than_one_step():
    position = Vector2(10.0, 10.0)
    target = Vector2(13.0, 10.0)
    move_toward(position, target, 4.6)
    assert (position.x, position.y) == (13.0, 10.0)
    # the target itself is never aliased
    position.x = 0.0
    assert target.x == 13.0


def test_move_toward_identical_target_does_not_normalize_zero():
    position = Vector2(5.0, 5.0)
    move_toward(position, Vector2(5.0, 5.0), 4.6)
    assert (position.x, position.y) == (5.0, 5.0)

    move_toward(position, Vector2(5.0, 5.0), 0.0)
    assert (position.x, position.y) == (5.0, 5.0)


def test_clamp_length_limits_magnitude_and_copies():
    clamped = _clamp_length(Vector2(300.0, -400.0), 420.0)
    assert clamped.length() == approx(420.0)
    assert clamped.x == approx(252.0)
    assert clamped.y == approx(-336.0)

    short = Vector2(1.0, 1.0)
    result = _clamp_length(short, 10.0)
    result.x = 5.0
    assert short.x == 1.0

    assert _clamp_length(Vector2(3.0, 4.0), 0.0) == Vector2()


def test_safe_normalize_and_distance():
    assert _safe_normalize_xy(0.0, 0.0) == Vector2()
    unit = _safe_normalize_xy(0.0, -8.0)
    assert unit.y == approx(-1.0)
    assert _distance(Vector2(0.0, 0.0), Vector2(3.0, 4.0)) == approx(5.0)
