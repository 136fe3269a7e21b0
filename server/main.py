from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import os
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from duelbrain import (
    Difficulty,
    EngineSettings,
    IllegalStateError,
    InvalidMoveError,
    MatchEngine,
    Snapshot,
    get_store,
)
from duelbrain.core import Phase
from duelbrain.logging_config import configure_logging

logger = logging.getLogger("duelbrain.server")

TICK_SECONDS = 0.1


class MoveReq(BaseModel):
    move: str


class DifficultyReq(BaseModel):
    difficulty: Difficulty


class StateRes(BaseModel):
    phase: str
    difficulty: str
    user_hp: int
    bot_hp: int
    round: int
    streak: int
    has_shield: bool
    shield_armed: bool
    score: int
    message: str
    last_human_move: Optional[str] = None
    last_bot_move: Optional[str] = None
    fast: bool
    remaining_ms: int
    match_result: Optional[str] = None
    best_score: int
    best_rounds: int
    user_wins: int
    bot_wins: int
    bot_probs: Dict[str, float] = {}


class RecordRes(BaseModel):
    best_score: int
    best_rounds: int


def _state(snap: Snapshot) -> StateRes:
    return StateRes(**snap.to_dict())


def build_engine(settings: Optional[EngineSettings] = None) -> MatchEngine:
    settings = settings or EngineSettings.from_env()
    store = get_store(settings.state_dir, settings.redis_url)
    return MatchEngine.from_settings(settings, store=store)


def create_app(engine: Optional[MatchEngine] = None) -> FastAPI:
    engine = engine if engine is not None else build_engine()

    app = FastAPI(title="DuelBrain RPS API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in os.getenv("ALLOW_ORIGINS", "*").split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.engine = engine

    @app.exception_handler(InvalidMoveError)
    async def invalid_move_handler(request: Request, exc: InvalidMoveError):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(IllegalStateError)
    async def illegal_state_handler(request: Request, exc: IllegalStateError):
        return JSONResponse(status_code=409, content={"error": str(exc), "phase": exc.phase})

    @app.get("/")
    async def root():
        return {"ok": True, "service": "DuelBrain backend"}

    @app.get("/healthz")
    async def healthz():
        return {"status": "healthy"}

    @app.get("/state", response_model=StateRes)
    async def get_state():
        return _state(engine.snapshot())

    @app.post("/move", response_model=StateRes)
    async def move(req: MoveReq):
        return _state(engine.submit_human_move(req.move))

    @app.post("/shield", response_model=StateRes)
    async def shield():
        return _state(engine.arm_shield())

    @app.post("/reset", response_model=StateRes)
    async def reset():
        return _state(engine.reset())

    @app.post("/difficulty", response_model=StateRes)
    async def difficulty(req: DifficultyReq):
        return _state(engine.set_difficulty(req.difficulty))

    @app.get("/record", response_model=RecordRes)
    async def record():
        return RecordRes(**engine.records.best.to_dict())

    @app.websocket("/ws")
    async def ws_endpoint(ws: WebSocket):
        """Push snapshots after every transition plus a countdown tick; accept intents back."""
        await ws.accept()
        queue: "asyncio.Queue[Dict[str, Any]]" = asyncio.Queue()

        def on_snapshot(snap: Snapshot) -> None:
            queue.put_nowait({"type": "state", "state": snap.to_dict()})

        async def pump() -> None:
            while True:
                try:
                    msg = await asyncio.wait_for(queue.get(), timeout=TICK_SECONDS)
                except asyncio.TimeoutError:
                    if engine.phase != Phase.AWAITING_PICK:
                        continue
                    msg = {"type": "tick", "remaining_ms": engine.remaining_ms()}
                await ws.send_json(msg)

        engine.subscribe(on_snapshot)
        await ws.send_json({"type": "state", "state": engine.snapshot().to_dict()})
        sender = asyncio.create_task(pump())
        try:
            while True:
                raw = await ws.receive_text()
                try:
                    _dispatch(engine, json.loads(raw))
                except (InvalidMoveError, IllegalStateError, ValueError) as e:
                    # JSONDecodeError is a ValueError too; the socket stays open
                    await ws.send_json({"type": "error", "error": str(e)})
        except WebSocketDisconnect:
            pass
        finally:
            engine.unsubscribe(on_snapshot)
            sender.cancel()
            with contextlib.suppress(asyncio.CancelledError, WebSocketDisconnect, RuntimeError):
                await sender

    return app


def _dispatch(engine: MatchEngine, data: Dict[str, Any]) -> Snapshot:
    if not isinstance(data, dict):
        raise ValueError("Expected a JSON object with an 'action' field")
    action = data.get("action")
    if action == "move":
        return engine.submit_human_move(data.get("move"))
    if action == "shield":
        return engine.arm_shield()
    if action == "reset":
        return engine.reset()
    if action == "difficulty":
        return engine.set_difficulty(data.get("difficulty"))
    raise ValueError(f"Unknown action {action!r}")


settings = EngineSettings.from_env()
configure_logging(settings.log_level)
app = create_app(build_engine(settings))
