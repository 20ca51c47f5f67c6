from __future__ import annotations

from time import perf_counter
from typing import Any, Dict

from loguru import logger
from pygame.math import Vector2

from .config import SimulationConfig
from .state import GameState
from ..systems import ballistics, retrieval, throwing, metrics as metrics_system
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotAim, SnapshotMetadata, SnapshotWorld


class World:
    """Owns the game state and runs the fixed-order simulation step.

    Input (aim, release, reset) is applied between calls to :meth:`step`;
    within a step the ball is always integrated before the dog reacts to it.
    """

    def __init__(self, config: SimulationConfig):
        self._config = config
        self._state = GameState.initial(config)
        self._metrics: TickMetrics | None = None
        self._last_events = retrieval.RetrievalEvents()

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def score(self) -> int:
        return self._state.score

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    @property
    def last_events(self) -> retrieval.RetrievalEvents:
        """What the dog did during the most recent :meth:`step`."""
        return self._last_events

    def reset(self, preserve_score: bool = False) -> None:
        score = self._state.score if preserve_score else 0
        self._state = GameState.initial(self._config, score=score)
        self._metrics = None
        self._last_events = retrieval.RetrievalEvents()
        logger.info("World reset (score={}, preserved={})", score, preserve_score)

    def begin_aim(self, pointer: Vector2) -> bool:
        return throwing.begin_aim(self._state, pointer, self._config)

    def update_aim(self, drag: Vector2) -> None:
        throwing.update_aim(self._state, drag, self._config)

    def release_throw(self) -> bool:
        released = throwing.release_throw(self._state, self._config)
        if released:
            velocity = self._state.ball.velocity
            logger.debug("Throw {} released at velocity ({:.2f}, {:.2f})", self._state.throws, velocity.x, velocity.y)
        return released

    def throw(self, drag: Vector2) -> bool:
        """Aim from the hand and release in one call."""
        if not self.begin_aim(self._state.anchor):
            return False
        self.update_aim(drag)
        return self.release_throw()

    def ready_to_throw(self) -> bool:
        return self._state.ball_at_anchor(self._config) and not self._state.dog.has_ball

    def step(self, tick: int) -> TickMetrics:
        start = perf_counter()
        state = self._state
        config = self._config

        ballistics.integrate_ball(state.ball, state.dog, config.physics, config.dog.mouth_offset)
        events = retrieval.update_dog(state, config)
        self._last_events = events

        if events.picked_up:
            logger.debug("Tick {}: dog picked up the ball", tick)
        if events.delivered:
            logger.debug("Tick {}: ball delivered (scored={}, score={})", tick, events.scored, state.score)

        duration_ms = (perf_counter() - start) * 1000.0
        self._metrics = metrics_system.create_metrics(tick, state, duration_ms)
        return self._metrics

    def snapshot(self, tick: int) -> Snapshot:
        state = self._state
        config = self._config
        metrics = self._metrics if self._metrics is not None else metrics_system.create_metrics(tick, state, 0.0)
        aim = SnapshotAim(
            active=state.aim.active,
            x=state.aim.vector.x,
            y=state.aim.vector.y,
            power=throwing.aim_power(state, config),
        )
        world = SnapshotWorld(
            width=config.physics.world_width,
            height=config.physics.world_height,
            ground_y=config.physics.ground_y,
            anchor_x=state.anchor.x,
            anchor_y=state.anchor.y,
            ball_radius=config.physics.ball_radius,
        )
        metadata = SnapshotMetadata(
            sim_dt=config.time_step,
            tick_rate=config.tick_rate,
            config_version=config.config_version,
        )
        return Snapshot(
            tick=tick,
            metrics=metrics,
            ball=self._ball_snapshot(),
            dog=self._dog_snapshot(),
            aim=aim,
            score=state.score,
            world=world,
            metadata=metadata,
        )

    def _ball_snapshot(self) -> Dict[str, Any]:
        ball = self._state.ball
        return {
            "x": ball.position.x,
            "y": ball.position.y,
            "vx": ball.velocity.x,
            "vy": ball.velocity.y,
            "in_air": ball.in_air,
            "at_rest": ball.at_rest,
            "carried": ball.carried,
        }

    def _dog_snapshot(self) -> Dict[str, Any]:
        dog = self._state.dog
        display = retrieval.display_position(dog, self._config.dog)
        return {
            "x": dog.position.x,
            "y": dog.position.y,
            "display_x": display.x,
            "display_y": display.y,
            "mood": dog.mood.value,
            "has_ball": dog.has_ball,
        }
