from __future__ import annotations
import os
import sqlite3
import threading
from pathlib import Path
from typing import List, Optional

_DB_PATH = Path(os.getenv("PUSHUP_DB_PATH", "./pushups.db"))

SCHEMA = r"""
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS sessions (
  id TEXT PRIMARY KEY,
  started_at REAL NOT NULL,
  stopped_at REAL,
  thresholds_json TEXT,
  total INTEGER NOT NULL DEFAULT 0,
  good INTEGER NOT NULL DEFAULT 0,
  bad_form INTEGER NOT NULL DEFAULT 0,
  sag INTEGER NOT NULL DEFAULT 0,
  pike INTEGER NOT NULL DEFAULT 0,
  shallow INTEGER NOT NULL DEFAULT 0,
  avg_score REAL
);

CREATE TABLE IF NOT EXISTS reps (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  session_id TEXT NOT NULL,
  rep_index INTEGER NOT NULL,
  ts REAL NOT NULL,
  classification TEXT NOT NULL,
  score INTEGER NOT NULL,
  min_elbow_angle REAL,
  running_average REAL,
  FOREIGN KEY(session_id) REFERENCES sessions(id)
);
"""

_conn: Optional[sqlite3.Connection] = None
_lock = threading.Lock()

def configure(path) -> None:
    """Point the module at another database file (closes any open connection)."""
    global _DB_PATH
    close()
    _DB_PATH = Path(path)

def close() -> None:
    global _conn
    if _conn is not None:
        _conn.close()
        _conn = None

def get_conn() -> sqlite3.Connection:
    global _conn
    if _conn is None:
        _DB_PATH.parent.mkdir(parents=True, exist_ok=True)
        _conn = sqlite3.connect(_DB_PATH.as_posix(), check_same_thread=False)
        _conn.row_factory = sqlite3.Row
        _conn.execute("PRAGMA foreign_keys=ON;")
        _conn.executescript(SCHEMA)
        _conn.commit()
    return _conn

# Session-level writes

def insert_session(session_id: str, started_at: float, thresholds_json: str = ""):
    with _lock:
        conn = get_conn()
        conn.execute(
            "INSERT OR REPLACE INTO sessions (id, started_at, thresholds_json) VALUES (?,?,?)",
            (session_id, started_at, thresholds_json),
        )
        conn.commit()


def stop_session(session_id: str, stopped_at: float, stats: dict, avg_score: Optional[float]):
    with _lock:
        conn = get_conn()
        conn.execute(
            """
            UPDATE sessions SET stopped_at=?, total=?, good=?, bad_form=?, sag=?, pike=?, shallow=?, avg_score=?
            WHERE id=?
            """,
            (
                stopped_at,
                stats.get("total", 0),
                stats.get("good", 0),
                stats.get("bad_form", 0),
                stats.get("sag", 0),
                stats.get("pike", 0),
                stats.get("shallow", 0),
                avg_score,
                session_id,
            ),
        )
        conn.commit()

# Rep writes

def insert_rep(
    session_id: str,
    rep_index: int,
    ts: float,
    classification: str,
    score: int,
    min_elbow_angle: float,
    running_average: float,
):
    with _lock:
        conn = get_conn()
        conn.execute(
            """
            INSERT INTO reps (
              session_id, rep_index, ts, classification, score, min_elbow_angle, running_average
            ) VALUES (?,?,?,?,?,?,?)
            """,
            (session_id, rep_index, ts, classification, score, min_elbow_angle, running_average),
        )
        conn.commit()

# Reads

def get_session(session_id: str) -> Optional[dict]:
    row = get_conn().execute("SELECT * FROM sessions WHERE id=?", (session_id,)).fetchone()
    return dict(row) if row is not None else None

def list_reps(session_id: str) -> List[dict]:
    rows = get_conn().execute(
        "SELECT * FROM reps WHERE session_id=? ORDER BY rep_index", (session_id,)
    ).fetchall()
    return [dict(r) for r in rows]
