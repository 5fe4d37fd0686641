# pushup_pro/runtime/cli.py
from __future__ import annotations
import argparse
import json
import logging
import sys
import time
from typing import List, Optional

from pushup_pro.counter.pose_core import PoseContractError
from pushup_pro.counter.session import RepSessionManager
from pushup_pro.data import db


def _print_event(ev: dict):
    kind = ev.get("type")
    if kind == "rep":
        print(
            f"rep {ev['total']}: {ev['classification']} "
            f"(score {ev['rep_score']}, avg {ev['running_average']:.1f})",
            flush=True,
        )
    elif kind == "coach":
        print(f"coach: {ev['msg']}", flush=True)


def replay(path: str, mgr: RepSessionManager) -> dict:
    """Run a JSON-lines file of {"keypoints": [...]} frames through one session."""
    mgr.set_event_sink(_print_event)
    mgr.start(source="web")
    try:
        with open(path, "r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    frame = json.loads(line)
                    mgr.push_keypoints(frame["keypoints"])
                except (json.JSONDecodeError, KeyError, TypeError, PoseContractError) as e:
                    raise SystemExit(f"{path}:{lineno}: bad frame: {e}")
    finally:
        # close the session row even when a frame aborts the replay
        final = mgr.stop()
    return final.as_payload()


def camera(mgr: RepSessionManager, camera_id: int, show_window: bool):
    mgr.set_event_sink(_print_event)
    mgr.start(source="camera", camera_id=camera_id, show_window=show_window)
    print("Camera running. Press Ctrl+C to finish the set.", flush=True)
    try:
        while mgr.active_pipeline is not None and mgr.active_pipeline.is_alive():
            time.sleep(0.2)
    except KeyboardInterrupt:
        print("\nExiting…", flush=True)
    if mgr.active_id is None:
        return None
    return mgr.stop().as_payload()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pushup-pro", description="Push-up rep counter and form coach")
    parser.add_argument("--db", type=str, default=None, help="sqlite file (default: $PUSHUP_DB_PATH or ./pushups.db)")
    parser.add_argument("--no-db", action="store_true", help="Do not persist sessions")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("replay", help="Analyze a recorded JSON-lines keypoint file")
    p.add_argument("path")

    p = sub.add_parser("camera", help="Analyze the local webcam (needs the camera extra)")
    p.add_argument("--camera", type=int, default=0, help="Camera device ID")
    p.add_argument("--show", action="store_true", help="Show a preview window")

    p = sub.add_parser("serve", help="Run the HTTP/WebSocket server")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.db:
        db.configure(args.db)

    if args.command == "serve":
        import uvicorn
        uvicorn.run("pushup_pro.runtime.server:app", host=args.host, port=args.port)
        return 0

    try:
        mgr = RepSessionManager(persist=not args.no_db)
        if args.command == "replay":
            summary = replay(args.path, mgr)
        else:
            summary = camera(mgr, args.camera, args.show)
    except ValueError as e:
        print("Error:", e, file=sys.stderr)
        return 1
    finally:
        db.close()

    if summary is None:
        print("Session ended by pipeline error.", file=sys.stderr)
        return 1
    print(json.dumps(summary, indent=2), flush=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
