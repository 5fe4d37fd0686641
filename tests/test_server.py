from __future__ import annotations
import asyncio

import pytest
from fastapi.testclient import TestClient

from pushup_pro.runtime import server

TRACE = [170, 150, 100, 80, 75, 90, 140, 165]


@pytest.fixture
def client(tmp_db):
    with TestClient(server.app) as c:
        yield c
    if server.MANAGER.active_id:
        server.MANAGER.stop()


def next_of(ws, kind):
    # broadcasts (trace/coach/rep) interleave with per-frame replies
    while True:
        msg = ws.receive_json()
        if msg["type"] == kind:
            return msg


def test_idle_status(client):
    body = client.get("/sessions/current").json()
    assert body["state"] == "stopped"
    assert body["session_id"] is None


def test_end_without_session_is_conflict(client):
    assert client.post("/session/end").status_code == 409


def test_session_over_websocket(client, keypoints):
    sid = client.post("/session/start").json()["session_id"]
    assert client.get("/sessions/current").json()["session_id"] == sid

    with client.websocket_connect("/ws/poses") as ws:
        frames = []
        for i, a in enumerate(TRACE):
            ws.send_json({"type": "pose", "ts": float(i), "keypoints": keypoints(elbow_angle=a, body_angle=170)})
            frames.append(next_of(ws, "frame"))

    assert [f["ts"] for f in frames] == [float(i) for i in range(len(TRACE))]
    assert frames[0]["gate"] == "ok"
    assert frames[2]["phase"] == "DOWN"
    rep = frames[-1]["rep"]
    assert rep["classification"] == "good"
    assert rep["total"] == 1
    assert rep["running_average"] == 10.0

    summary = client.post("/session/end").json()
    assert summary["session_id"] == sid
    assert summary["stats"]["total"] == 1
    assert summary["score_history"] == [10]


def test_gate_status_is_reported(client, keypoints):
    client.post("/session/start")
    with client.websocket_connect("/ws/poses") as ws:
        ws.send_json({"type": "pose", "keypoints": keypoints(vertical=True)})
        frame = next_of(ws, "frame")
    assert frame["gate"] == "get_into_position"
    assert frame["elbow_angle"] is None


def test_bad_messages_keep_socket_open(client, keypoints):
    client.post("/session/start")
    with client.websocket_connect("/ws/poses") as ws:
        ws.send_text("not json")
        assert next_of(ws, "error")["msg"].startswith("bad pose message")
        ws.send_json({"type": "pose", "keypoints": [{"name": "left_elbow", "x": 1, "y": 1, "score": 2.0}]})
        assert next_of(ws, "error")
        ws.send_json({"type": "pose", "keypoints": [{"name": "left_elbow", "x": 1, "y": 1, "score": 0.9}]})
        assert "missing required joints" in next_of(ws, "error")["msg"]
        ws.send_json({"type": "pose", "keypoints": keypoints()})
        assert next_of(ws, "frame")["gate"] == "ok"


def test_frames_without_session_get_error(client, keypoints):
    with client.websocket_connect("/ws/poses") as ws:
        ws.send_json({"type": "pose", "keypoints": keypoints()})
        assert next_of(ws, "error")["msg"] == "no active web session"


def test_broadcast_task_is_held_until_done(monkeypatch):
    monkeypatch.setattr(server, "WS_CLIENTS", set())
    monkeypatch.setattr(server, "_BROADCASTS", set())

    async def scenario():
        server._sink({"type": "trace", "msg": "hello"})
        assert len(server._BROADCASTS) == 1
        await next(iter(server._BROADCASTS))
        await asyncio.sleep(0)
        assert not server._BROADCASTS

    asyncio.run(scenario())
