from __future__ import annotations
import asyncio
import json
import logging
from typing import List, Optional, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field, ValidationError

from pushup_pro.counter.pose_core import PoseContractError
from pushup_pro.counter.session import RepSessionManager, SessionNotActiveError

logger = logging.getLogger(__name__)

app = FastAPI(title="Pushup Pro")

MANAGER = RepSessionManager()

def ACTIVE_MANAGER() -> RepSessionManager:
    return MANAGER


class Keypoint(BaseModel):
    name: str
    x: float
    y: float
    score: float = Field(1.0, ge=0.0, le=1.0)


class PoseMessage(BaseModel):
    type: str = "pose"
    ts: Optional[float] = None
    keypoints: List[Keypoint]


WS_CLIENTS: Set[WebSocket] = set()
_LOOP: Optional[asyncio.AbstractEventLoop] = None
_BROADCASTS: Set[asyncio.Task] = set()

# let the manager emit reps/coaching/traces to all WS clients
def _sink(ev: dict):
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None
    if loop is not None:
        task = loop.create_task(broadcast(ev))
        _BROADCASTS.add(task)
        task.add_done_callback(_BROADCASTS.discard)
    elif _LOOP is not None and _LOOP.is_running():
        # camera pipeline thread
        asyncio.run_coroutine_threadsafe(broadcast(ev), _LOOP)

MANAGER.set_event_sink(_sink)


@app.get("/favicon.ico")
async def favicon():
    return Response(status_code=204)

@app.get("/sessions/current")
async def current():
    st = ACTIVE_MANAGER().status()
    return JSONResponse({
        "state": st.state,
        "session_id": st.session_id or None,
        "total": st.total,
        "running_average": st.running_average,
        "source": ACTIVE_MANAGER().source,
    })

@app.post("/session/start")
async def start():
    sid, status = ACTIVE_MANAGER().start(source="web")
    return {"session_id": sid, "status": status}

@app.post("/session/end")
async def end():
    m = ACTIVE_MANAGER()
    if m.active_id is None:
        raise HTTPException(status_code=409, detail="no active session")
    final = m.stop(m.active_id)
    return JSONResponse(final.as_payload())

@app.post("/session/pause")
async def pause():
    return {"session_id": ACTIVE_MANAGER().pause(), "state": "paused"}

@app.post("/session/resume")
async def resume():
    return {"session_id": ACTIVE_MANAGER().resume(), "state": "running"}

@app.websocket("/ws/poses")
async def ws_poses(ws: WebSocket):
    global _LOOP
    await ws.accept()
    _LOOP = asyncio.get_running_loop()
    WS_CLIENTS.add(ws)
    logger.info("ws: client connected (%d open)", len(WS_CLIENTS))
    try:
        while True:
            raw = await ws.receive_text()
            try:
                msg = PoseMessage.model_validate(json.loads(raw))
            except (json.JSONDecodeError, ValidationError) as e:
                await ws.send_json({"type": "error", "msg": f"bad pose message: {e}"})
                continue
            if msg.type != "pose":
                continue
            try:
                res = ACTIVE_MANAGER().push_keypoints([kp.model_dump() for kp in msg.keypoints])
            except (SessionNotActiveError, PoseContractError) as e:
                await ws.send_json({"type": "error", "msg": str(e)})
                continue
            if res is None:
                continue  # paused
            payload = res.as_payload()
            payload["ts"] = msg.ts
            await ws.send_json(payload)
    except WebSocketDisconnect:
        pass
    finally:
        WS_CLIENTS.discard(ws)
        logger.info("ws: client closed (%d open)", len(WS_CLIENTS))

async def broadcast(obj: dict):
    dead = []
    for ws in list(WS_CLIENTS):
        try:
            await ws.send_text(json.dumps(obj))
        except Exception:
            logger.debug("ws: dropping dead client")
            dead.append(ws)
    for d in dead:
        WS_CLIENTS.discard(d)
