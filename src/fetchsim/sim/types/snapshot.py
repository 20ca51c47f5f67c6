from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from .metrics import TickMetrics


@dataclass(slots=True)
class Snapshot:
    tick: int
    metrics: TickMetrics
    ball: Dict[str, Any]
    dog: Dict[str, Any]
    aim: "SnapshotAim"
    score: int
    world: "SnapshotWorld"
    metadata: "SnapshotMetadata"


@dataclass(slots=True)
class SnapshotAim:
    active: bool
    x: float
    y: float
    power: float


@dataclass(slots=True)
class SnapshotWorld:
    width: float
    height: float
    ground_y: float
    anchor_x: float
    anchor_y: float
    ball_radius: float


@dataclass(slots=True)
class SnapshotMetadata:
    sim_dt: float
    tick_rate: float
    config_version: str
