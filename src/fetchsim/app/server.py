from __future__ import annotations

import asyncio
import json
from collections import deque
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from loguru import logger
from pygame.math import Vector2

from ..sim.core.config import SimulationConfig
from ..sim.core.world import World

# A closed Starlette socket raises RuntimeError on send; a peer dropping
# mid-send surfaces from the ASGI server as an OSError.
_SEND_ERRORS = (WebSocketDisconnect, RuntimeError, OSError)


@dataclass(frozen=True)
class GameEvent:
    """A gameplay moment every client must see, replayed until acknowledged."""

    seq: int
    tick: int
    kind: str
    payload: str


class SimulationController:
    """Runs the world on a background task and fans frames out to clients.

    Two kinds of frame go out. Live ``snapshot`` frames are best-effort and
    never queued. ``event`` frames (reset, throw, pickup, retrieval) carry a
    sequence number, stay queued until acknowledged, and are replayed to a
    client that joined late or missed them.
    """

    def __init__(self, config: SimulationConfig, broadcast_interval: int = 1, max_events: int = 64):
        self.config = config
        self.world = World(config)
        self.broadcast_interval = max(1, broadcast_interval)
        self.running = False
        self.tick = 0
        self.speed_multiplier = 1.0
        self.clients: Set[WebSocket] = set()
        self._client_seq: Dict[WebSocket, int] = {}
        self._client_ack: Dict[WebSocket, int] = {}
        self._events: deque[GameEvent] = deque(maxlen=max(1, max_events))
        self._next_seq = 1
        self._lock = asyncio.Lock()
        self._loop_task: asyncio.Task | None = None

    async def start(self) -> None:
        if self._loop_task is None or self._loop_task.done():
            self._loop_task = asyncio.create_task(self._loop())
            self._loop_task.add_done_callback(_log_loop_exit)
        self.running = True
        logger.info("Simulation loop started at {} ticks/s", self.config.tick_rate)

    async def stop(self) -> None:
        self.running = False

    async def shutdown(self) -> None:
        self.running = False
        if self._loop_task is not None:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None

    async def reset(self, preserve_score: bool = False) -> None:
        async with self._lock:
            self.world.reset(preserve_score=preserve_score)
            self.tick = 0
            self._events.clear()
            self._record_event("reset", preserved=preserve_score)
        await self.publish()

    async def begin_aim(self, pointer: Vector2) -> bool:
        async with self._lock:
            return self.world.begin_aim(pointer)

    async def update_aim(self, drag: Vector2) -> None:
        async with self._lock:
            self.world.update_aim(drag)

    async def release_throw(self) -> bool:
        async with self._lock:
            released = self.world.release_throw()
            if released:
                self._record_event("throw", throws=self.world.state.throws)
        if released:
            await self.publish()
        return released

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.time_step / self.speed_multiplier)
            if not self.running:
                continue
            async with self._lock:
                self.step_once()
            if self.tick % self.broadcast_interval == 0 or self._has_unsent_events():
                await self.publish()

    def step_once(self) -> None:
        """Advance one tick and queue whatever the dog did. Caller holds the lock."""
        self.world.step(self.tick)
        self.tick += 1
        events = self.world.last_events
        if events.picked_up:
            self._record_event("pickup")
        if events.delivered:
            self._record_event("retrieval", scored=events.scored, score=self.world.score)

    def acknowledge(self, seq: int, client: WebSocket | None = None) -> None:
        """Drop events every connected client has acknowledged."""
        if client is None:
            floor = seq
        elif client in self._client_ack:
            self._client_ack[client] = max(self._client_ack[client], seq)
            floor = min(self._client_ack.values())
        else:
            return
        while self._events and self._events[0].seq <= floor:
            self._events.popleft()

    def pending_events(self) -> List[GameEvent]:
        return list(self._events)

    def _has_unsent_events(self) -> bool:
        if not self._events:
            return False
        newest = self._events[-1].seq
        return any(seq < newest for seq in self._client_seq.values())

    def _record_event(self, kind: str, **details: Any) -> GameEvent:
        snapshot = self._snapshot_payload()
        frame = {
            "type": "event",
            "kind": kind,
            "seq": self._next_seq,
            "tick": self.tick,
            "details": details,
            "payload": snapshot,
        }
        event = GameEvent(seq=self._next_seq, tick=self.tick, kind=kind, payload=json.dumps(frame))
        self._next_seq += 1
        self._events.append(event)
        logger.debug("Queued {} event #{} at tick {}", kind, event.seq, event.tick)
        return event

    def _snapshot_payload(self) -> Dict[str, Any]:
        snapshot = self.world.snapshot(self.tick)
        return {
            "tick": snapshot.tick,
            "score": snapshot.score,
            "metrics": asdict(snapshot.metrics),
            "ball": snapshot.ball,
            "dog": snapshot.dog,
            "aim": asdict(snapshot.aim),
            "world": asdict(snapshot.world),
            "metadata": asdict(snapshot.metadata),
        }

    def _live_frame(self) -> str:
        return json.dumps({"type": "snapshot", "tick": self.tick, "payload": self._snapshot_payload()})

    async def connect(self, client: WebSocket) -> None:
        self.clients.add(client)
        self._client_seq[client] = 0
        self._client_ack[client] = 0
        await self._deliver(client, self._live_frame(), self.pending_events())

    def disconnect(self, client: WebSocket) -> None:
        self.clients.discard(client)
        self._client_seq.pop(client, None)
        self._client_ack.pop(client, None)

    async def publish(self) -> None:
        frame = self._live_frame()
        events = self.pending_events()
        stale: List[WebSocket] = []
        # Clients may join or leave while a send is awaited.
        for client in list(self.clients):
            try:
                await self._deliver(client, frame, events)
            except _SEND_ERRORS as exc:
                logger.debug("Dropping client after failed send: {!r}", exc)
                stale.append(client)
        for client in stale:
            self.disconnect(client)

    async def _deliver(self, client: WebSocket, frame: str, events: List[GameEvent]) -> None:
        last_seq = self._client_seq.get(client, 0)
        for event in events:
            if event.seq <= last_seq:
                continue
            await client.send_text(event.payload)
            last_seq = event.seq
            if client in self._client_seq:
                self._client_seq[client] = last_seq
        await client.send_text(frame)


def _log_loop_exit(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.opt(exception=exc).error("Simulation loop stopped")


def _vector_from_payload(payload: dict, x_key: str, y_key: str) -> Vector2:
    try:
        return Vector2(float(payload[x_key]), float(payload[y_key]))
    except (KeyError, TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f"Expected numeric '{x_key}' and '{y_key}'") from exc


app = FastAPI(title="Fetch Simulation")
controller = SimulationController(SimulationConfig())


@app.on_event("startup")
async def _startup() -> None:
    await controller.start()


@app.on_event("shutdown")
async def _shutdown() -> None:
    await controller.shutdown()


@app.get("/api/status")
async def status() -> JSONResponse:
    world = controller.world
    state = world.state
    return JSONResponse(
        {
            "running": controller.running,
            "tick": controller.tick,
            "score": state.score,
            "mood": state.dog.mood.value,
            "throws": state.throws,
            "retrievals": state.retrievals,
            "ready_to_throw": world.ready_to_throw(),
            "pending_events": len(controller.pending_events()),
        }
    )


@app.post("/api/control/{action}")
async def control(action: str, payload: dict | None = None) -> JSONResponse:
    body = payload or {}
    if action == "start":
        controller.running = True
    elif action == "stop":
        controller.running = False
    elif action == "reset":
        await controller.reset(preserve_score=bool(body.get("preserve_score", False)))
    elif action == "speed":
        try:
            speed = float(body.get("multiplier", 1.0))
        except (TypeError, ValueError) as exc:
            raise HTTPException(status_code=400, detail="Expected numeric 'multiplier'") from exc
        controller.speed_multiplier = max(0.1, min(5.0, speed))
    else:
        raise HTTPException(status_code=404, detail=f"Unknown control action: {action}")
    return JSONResponse(
        {
            "running": controller.running,
            "tick": controller.tick,
            "score": controller.world.score,
            "multiplier": controller.speed_multiplier,
        }
    )


@app.post("/api/aim/begin")
async def begin_aim(payload: dict) -> JSONResponse:
    pointer = _vector_from_payload(payload, "x", "y")
    aiming = await controller.begin_aim(pointer)
    return JSONResponse({"aiming": aiming})


@app.post("/api/aim/update")
async def update_aim(payload: dict) -> JSONResponse:
    drag = _vector_from_payload(payload, "dx", "dy")
    await controller.update_aim(drag)
    aim = controller.world.state.aim
    return JSONResponse({"aiming": aim.active, "dx": aim.vector.x, "dy": aim.vector.y})


@app.post("/api/aim/release")
async def release_throw() -> JSONResponse:
    released = await controller.release_throw()
    return JSONResponse({"released": released})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    try:
        await controller.connect(websocket)
        while True:
            message = await websocket.receive_text()
            try:
                payload = json.loads(message)
            except json.JSONDecodeError:
                continue
            if not isinstance(payload, dict) or payload.get("type") != "ack":
                continue
            seq = payload.get("seq")
            if isinstance(seq, int):
                controller.acknowledge(seq, websocket)
    except _SEND_ERRORS:
        pass
    finally:
        controller.disconnect(websocket)


__all__ = ["app", "controller"]
