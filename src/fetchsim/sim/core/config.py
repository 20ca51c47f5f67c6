from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass
class PhysicsConfig:
    gravity: float = 0.5
    ball_radius: float = 10.0
    ground_y: float = 480.0
    world_width: float = 900.0
    world_height: float = 560.0
    ground_restitution: float = -0.55
    bounce_damping: float = 0.985
    bounce_cutoff: float = 1.2
    roll_friction: float = 0.985
    roll_stop_speed: float = 0.08
    settle_tolerance: float = 0.5
    rest_speed: float = 0.12
    wall_restitution: float = -0.4


@dataclass
class DogConfig:
    speed: float = 4.6
    return_speed_multiplier: float = 1.08
    pickup_radius: float = 16.0
    drop_radius: float = 18.0
    start_position: tuple[float, float] = (180.0, 470.0)
    # Height of the dog's logical position above the ground line.
    stand_height: float = 10.0
    mouth_offset: tuple[float, float] = (12.0, -18.0)
    # Presentation only; never applied to the logical position.
    wiggle_amplitude: float = 1.2
    wiggle_frequency: float = 0.07


@dataclass
class ThrowConfig:
    player_position: tuple[float, float] = (120.0, 480.0)
    hand_height: float = 30.0
    aim_radius: float = 100.0
    max_drag: float = 420.0
    power_scale: float = 0.12
    handoff_offset: tuple[float, float] = (8.0, 0.0)


@dataclass
class SimulationConfig:
    tick_rate: float = 60.0
    config_version: str = "v1"
    physics: PhysicsConfig = field(default_factory=PhysicsConfig)
    dog: DogConfig = field(default_factory=DogConfig)
    throw: ThrowConfig = field(default_factory=ThrowConfig)

    def __post_init__(self) -> None:
        self.tick_rate = float(self.tick_rate)
        if self.tick_rate <= 0:
            raise ValueError(f"tick_rate must be positive, got {self.tick_rate}")

    @property
    def time_step(self) -> float:
        return 1.0 / self.tick_rate

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)


def load_config(raw: dict) -> SimulationConfig:
    def _pair(value: tuple[float, float] | list[float] | None, default: tuple[float, float]) -> tuple[float, float]:
        if isinstance(value, (tuple, list)) and len(value) == 2:
            return (float(value[0]), float(value[1]))
        return default

    physics = PhysicsConfig(**raw.get("physics", {}))

    default_dog = DogConfig()
    dog_raw = dict(raw.get("dog", {}))
    dog_raw["start_position"] = _pair(dog_raw.get("start_position"), default_dog.start_position)
    dog_raw["mouth_offset"] = _pair(dog_raw.get("mouth_offset"), default_dog.mouth_offset)
    dog = DogConfig(**dog_raw)

    default_throw = ThrowConfig()
    throw_raw = dict(raw.get("throw", {}))
    throw_raw["player_position"] = _pair(throw_raw.get("player_position"), default_throw.player_position)
    throw_raw["handoff_offset"] = _pair(throw_raw.get("handoff_offset"), default_throw.handoff_offset)
    throw = ThrowConfig(**throw_raw)

    sim_values = {k: v for k, v in raw.items() if k not in {"physics", "dog", "throw"}}
    return SimulationConfig(physics=physics, dog=dog, throw=throw, **sim_values)
