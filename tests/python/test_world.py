from __future__ import annotations

from dataclasses import fields
from pathlib import Path

import pytest
import yaml
from pygame.math import Vector2
from pytest import approx

from fetchsim.sim.core.agent import AgentMood
from fetchsim.sim.core.config import SimulationConfig, load_config
from fetchsim.sim.core.world import World

ROOT = Path(__file__).resolve().parents[2]


def _assert_invariants(world: World) -> None:
    ball = world.state.ball
    dog = world.state.dog
    assert not (ball.carried and ball.in_air)
    assert dog.has_ball == ball.carried
    if dog.mood is AgentMood.CHASING:
        assert not dog.has_ball
    if dog.mood is AgentMood.RETURNING:
        assert dog.has_ball


def _play_until_scored(world: World, start_tick: int, target_score: int, limit: int = 4000) -> int:
    tick = start_tick
    for tick in range(start_tick, start_tick + limit):
        previous = world.score
        world.step(tick)
        _assert_invariants(world)
        assert world.score >= previous
        if world.score >= target_score:
            return tick + 1
    raise AssertionError(f"score {target_score} not reached within {limit} ticks")


def test_full_fetch_cycle_scores_once():
    world = World(SimulationConfig())
    assert world.ready_to_throw()
    assert world.throw(Vector2(300.0, -100.0))
    assert not world.ready_to_throw()

    tick = _play_until_scored(world, 0, 1)
    state = world.state
    assert state.score == 1
    assert state.retrievals == 1
    assert state.ball.position == Vector2(128.0, 450.0)
    assert state.dog.mood is AgentMood.READY

    for extra in range(tick, tick + 200):
        world.step(extra)
        _assert_invariants(world)
    assert world.score == 1
    assert world.ready_to_throw()


def test_consecutive_throws_and_reset():
    world = World(SimulationConfig())
    tick = 0
    for expected, drag in enumerate([Vector2(250.0, -250.0), Vector2(-60.0, -300.0)], start=1):
        assert world.throw(drag)
        tick = _play_until_scored(world, tick, expected)
        assert world.score == expected

    old_state = world.state
    world.reset(preserve_score=True)
    assert world.state is not old_state
    assert world.score == 2
    assert not world.state.guard.just_scored
    assert world.metrics is None

    world.reset()
    assert world.score == 0
    assert world.state.dog.position == Vector2(180.0, 470.0)
    assert world.state.throws == 0


def test_throw_refused_while_ball_in_play():
    world = World(SimulationConfig())
    assert world.throw(Vector2(200.0, -150.0))
    world.step(0)
    velocity = Vector2(world.state.ball.velocity)
    position = Vector2(world.state.ball.position)

    assert not world.throw(Vector2(-400.0, 0.0))
    assert not world.release_throw()
    assert world.state.ball.velocity == velocity
    assert world.state.ball.position == position
    assert world.state.throws == 1


def test_step_metrics_and_snapshot():
    config = SimulationConfig()
    world = World(config)
    assert world.begin_aim(Vector2(130.0, 440.0))
    world.update_aim(Vector2(600.0, -800.0))

    snapshot = world.snapshot(0)
    assert snapshot.aim.active
    assert snapshot.aim.power == approx(420.0)
    assert snapshot.score == 0
    assert snapshot.world.anchor_x == approx(120.0)
    assert snapshot.world.anchor_y == approx(450.0)
    assert snapshot.metadata.tick_rate == approx(60.0)
    assert snapshot.metadata.sim_dt == approx(1.0 / 60.0)

    assert world.release_throw()
    metrics = world.step(0)
    assert metrics.tick == 0
    assert metrics.in_air
    assert metrics.mood == "ready"
    assert metrics.throws == 1
    assert metrics.ball_speed > 0.0
    assert world.metrics is metrics

    snapshot = world.snapshot(1)
    assert snapshot.metrics is metrics
    assert not snapshot.aim.active
    for key in ["x", "y", "vx", "vy", "in_air", "at_rest", "carried"]:
        assert key in snapshot.ball
    for key in ["x", "y", "display_x", "display_y", "mood", "has_ball"]:
        assert key in snapshot.dog
    assert snapshot.ball["in_air"] is True
    assert snapshot.dog["mood"] == "ready"


def test_load_config_overrides_nested_values():
    config = load_config(
        {
            "tick_rate": 30,
            "physics": {"gravity": 0.8},
            "dog": {"start_position": [200, 470], "speed": 5.0},
            "throw": {"power_scale": 0.1},
        }
    )
    assert config.tick_rate == 30
    assert config.physics.gravity == approx(0.8)
    assert config.physics.ball_radius == approx(10.0)
    assert config.dog.start_position == (200.0, 470.0)
    assert config.dog.mouth_offset == (12.0, -18.0)
    assert config.dog.speed == approx(5.0)
    assert config.throw.power_scale == approx(0.1)
    assert config.throw.player_position == (120.0, 480.0)

    world = World(config)
    assert world.state.dog.position == Vector2(200.0, 470.0)
    assert world.state.dog.speed == approx(5.0)


def test_load_config_rejects_unknown_keys():
    with pytest.raises(TypeError):
        load_config({"physics": {"gravitee": 1.0}})


def test_default_yaml_matches_dataclass_defaults():
    path = ROOT / "config" / "default.yaml"
    config = SimulationConfig.from_yaml(path)
    assert config == SimulationConfig()

    raw = yaml.safe_load(path.read_text())
    for section, defaults in (
        ("physics", config.physics),
        ("dog", config.dog),
        ("throw", config.throw),
    ):
        assert set(raw[section]) == {f.name for f in fields(defaults)}, section


@pytest.mark.parametrize("tick_rate", [0, 0.0, -30])
def test_non_positive_tick_rate_is_rejected(tick_rate):
    with pytest.raises(ValueError, match="tick_rate"):
        load_config({"tick_rate": tick_rate})
    with pytest.raises(ValueError, match="tick_rate"):
        SimulationConfig(tick_rate=tick_rate)


def test_tick_rate_from_yaml_sets_time_step(tmp_path):
    path = tmp_path / "slow.yaml"
    path.write_text("tick_rate: 20\n")
    config = SimulationConfig.from_yaml(path)
    assert config.tick_rate == approx(20.0)
    assert config.time_step == approx(0.05)

    path.write_text("tick_rate: 0\n")
    with pytest.raises(ValueError):
        SimulationConfig.from_yaml(path)
