"""FastAPI service wrapping a scan session for a Web UI.

The browser (or any frame source) extracts the mean brightness of the skin
region per frame and POSTs batches of samples to `/ingest`; `null` marks a
frame without a usable region. A background task ticks the session clock,
and the final vitals are served from `/result` once the scan completes.
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from .config import ScanConfig
from .controller import ScanController

logger = logging.getLogger(__name__)


class ConfigModel(BaseModel):
    duration_sec: Optional[float] = Field(None, ge=5.0, le=120.0)
    fps: Optional[int] = Field(None, ge=10, le=120)
    buffer_sec: Optional[float] = Field(None, ge=5.0, le=60.0)
    stride: Optional[int] = Field(None, ge=1, le=30)
    artifact_threshold: Optional[float] = Field(None, gt=0.0, le=255.0)
    bpm_min: Optional[int] = Field(None, ge=30, le=100)
    bpm_max: Optional[int] = Field(None, ge=100, le=240)
    bpm_fallback: Optional[int] = Field(None, ge=30, le=240)
    hrv_scale: Optional[float] = Field(None, gt=0.0, le=500.0)
    rr_divisor: Optional[float] = Field(None, gt=0.0, le=10.0)
    rr_method: Optional[str] = Field(None, pattern=r"^(ratio|envelope)$")


class IngestModel(BaseModel):
    samples: list[Optional[float]]


class ErrorModel(BaseModel):
    reason: str = "Video source unavailable"


@dataclass
class State:
    base: ScanConfig
    controller: Optional[ScanController] = None


def metrics(ctrl: Optional[ScanController]) -> dict:
    if ctrl is None:
        return {"state": "idle"}
    prog = ctrl.progress
    return {
        "state": ctrl.state.value,
        "bpm": ctrl.heart_rate,
        "quality": round(ctrl.quality, 1),
        "waveform": ctrl.waveform,
        "progress": dataclasses.asdict(prog) if prog is not None else None,
        "result": ctrl.result.to_dict() if ctrl.result is not None else None,
        "error": ctrl.error,
    }


def make_app(cfg: ScanConfig | None = None) -> FastAPI:
    app = FastAPI(title="Vitals Scan Service", version="0.1.0")
    state = State(base=cfg or ScanConfig())

    loop_task: Optional[asyncio.Task] = None
    lock = asyncio.Lock()
    ws_clients: set[WebSocket] = set()

    @app.on_event("startup")
    async def _startup() -> None:  # pragma: no cover - integration
        nonlocal loop_task
        loop_task = asyncio.create_task(tick_loop())

    @app.on_event("shutdown")
    async def _shutdown() -> None:  # pragma: no cover - integration
        nonlocal loop_task
        if loop_task:
            loop_task.cancel()
            try:
                await loop_task
            except asyncio.CancelledError:
                pass
            loop_task = None

    async def tick_loop() -> None:  # pragma: no cover - integration
        while True:
            try:
                await asyncio.sleep(state.base.tick_interval)
                async with lock:
                    if state.controller is not None:
                        state.controller.tick()
                    msg = json.dumps(metrics(state.controller))
                if ws_clients:
                    dead: list[WebSocket] = []
                    for w in ws_clients:
                        try:
                            await w.send_text(msg)
                        except Exception:
                            dead.append(w)
                    for w in dead:
                        ws_clients.discard(w)
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Tick loop iteration failed")
                await asyncio.sleep(0.5)

    @app.get("/health")
    async def health() -> dict[str, str]:  # pragma: no cover - trivial
        return {"status": "ok"}

    @app.post("/scan/start")
    async def start_scan(overrides: Optional[ConfigModel] = None) -> dict:
        async with lock:
            if state.controller is not None:
                state.controller.cancel()
            data = overrides.model_dump(exclude_none=True) if overrides else {}
            try:
                scan_cfg = dataclasses.replace(state.base, **data)
            except ValueError as exc:
                raise HTTPException(status_code=422, detail=str(exc)) from exc
            state.controller = ScanController(scan_cfg)
            return {"status": "ok", "config": dataclasses.asdict(scan_cfg)}

    @app.post("/ingest")
    async def post_ingest(payload: IngestModel) -> dict:
        async with lock:
            ctrl = state.controller
            if ctrl is None or not ctrl.is_active():
                raise HTTPException(status_code=409, detail="No active scan")
            for v in payload.samples:
                ctrl.ingest(v)
            return {"status": "ok", "count": len(payload.samples), "state": ctrl.state.value}

    @app.post("/scan/cancel")
    async def cancel_scan() -> dict:
        async with lock:
            if state.controller is not None:
                state.controller.cancel()
            return metrics(state.controller)

    @app.post("/scan/error")
    async def report_error(payload: ErrorModel) -> dict:
        async with lock:
            if state.controller is not None:
                state.controller.fail(payload.reason)
            return metrics(state.controller)

    @app.get("/metrics")
    async def get_metrics() -> dict:
        async with lock:
            return metrics(state.controller)

    @app.get("/result")
    async def get_result() -> dict:
        async with lock:
            ctrl = state.controller
            if ctrl is None or ctrl.result is None:
                raise HTTPException(status_code=404, detail="No completed scan")
            return ctrl.result.to_dict()

    @app.websocket("/ws")
    async def ws_metrics(ws: WebSocket) -> None:  # pragma: no cover - integration
        await ws.accept()
        ws_clients.add(ws)
        try:
            while True:
                # keep alive; updates are pushed from the tick loop
                await asyncio.sleep(30)
        except WebSocketDisconnect:
            ws_clients.discard(ws)
        except Exception:
            ws_clients.discard(ws)

    return app


app = make_app()


def main() -> None:  # pragma: no cover - manual run helper
    from pathlib import Path

    import uvicorn

    logs_dir = Path("logs")
    logs_dir.mkdir(exist_ok=True)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        handlers=[
            logging.FileHandler(logs_dir / "service.log", encoding="utf-8"),
            logging.StreamHandler(),
        ],
    )
    uvicorn.run(app, host="127.0.0.1", port=8000)


if __name__ == "__main__":  # pragma: no cover
    main()
