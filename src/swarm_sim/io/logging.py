from __future__ import annotations
import csv, json, time, asyncio, threading, queue, pathlib, datetime
from typing import Any, Dict, List, Optional

import websockets
from websockets.exceptions import WebSocketException


def flatten_frame(frame: Dict[str, Any], prefix: str = "") -> Dict[str, object]:
    """Dotted-key view of a frame: {"stats": {"A": {"ore": 3}}} -> {"stats.A.ore": 3}.

    Lists and other non-scalar values are left out of the CSV.
    """
    out: Dict[str, object] = {}
    for k, v in frame.items():
        key = f"{prefix}{k}"
        if isinstance(v, dict):
            out.update(flatten_frame(v, prefix=f"{key}."))
        elif v is None or isinstance(v, (int, float, str, bool)):
            out[key] = v
    return out


class RunLogger:
    """Per-tick match logger.

    Files under runs/<run_id>/:
    - meta.json    run parameters, written up front
    - frames.csv   one row per tick; columns fixed by the first frame
    - faults.jsonl one line per agent fault
    - summary.json row count and the last frame, written on stop()

    With ``ws_url`` set, every frame is also pushed as JSON to that websocket.
    """
    STREAM_BACKLOG = 256

    def __init__(self, root: str = "runs", run_id: Optional[str] = None, ws_url: Optional[str] = None,
                 token: Optional[str] = None, meta: Optional[Dict] = None):
        self.run_id = run_id or datetime.datetime.now().strftime("%Y%m%d-%H%M%S")
        self.dir = pathlib.Path(root) / self.run_id
        self.dir.mkdir(parents=True, exist_ok=True)
        self.ws_url = ws_url; self.token = token

        self.rows_written = 0
        self.last_frame: Optional[Dict] = None
        self._columns: Optional[List[str]] = None
        self._frames: "queue.Queue[dict]" = queue.Queue()
        self._outbox: "queue.Queue[dict]" = queue.Queue(maxsize=self.STREAM_BACKLOG)
        self._done = threading.Event()
        self._threads: List[threading.Thread] = []

        info = {"run_id": self.run_id, "created": time.time(), "ws_url": ws_url}
        info.update(meta or {})
        (self.dir / "meta.json").write_text(json.dumps(info, indent=2))

    @property
    def csv_path(self) -> pathlib.Path:
        return self.dir / "frames.csv"

    # ---- lifecycle ---------------------------------------------------------
    def start(self) -> None:
        self._done.clear()
        workers = [self._csv_worker]
        if self.ws_url:
            workers.append(self._stream_worker)
        self._threads = [threading.Thread(target=w, daemon=True) for w in workers]
        for t in self._threads:
            t.start()

    def stop(self) -> None:
        """Drain the CSV queue, then write summary.json.

        The stream worker gets a bounded wait; the CSV writer is waited for in
        full so the summary counts every logged frame.
        """
        self._done.set()
        if self._threads:
            writer, *streams = self._threads
            writer.join()
            for t in streams:
                t.join(timeout=2)
        self._threads = []
        summary = {"run_id": self.run_id, "rows": self.rows_written, "last_frame": self.last_frame}
        (self.dir / "summary.json").write_text(json.dumps(summary, indent=2))

    # ---- producers ---------------------------------------------------------
    def log(self, frame: Dict) -> None:
        """Queue one tick's frame for the CSV (and the stream, if any)."""
        self._frames.put(frame)
        if self.ws_url:
            try:
                self._outbox.put_nowait(frame)
            except queue.Full:
                pass  # stream fell behind; drop the frame

    def log_fault(self, fault: Dict) -> None:
        with open(self.dir / "faults.jsonl", "a", encoding="utf-8") as f:
            f.write(json.dumps(fault) + "\n")

    # ---- workers -----------------------------------------------------------
    def _write_row(self, writer: csv.DictWriter, frame: Dict) -> None:
        writer.writerow(flatten_frame(frame))
        self.rows_written += 1
        self.last_frame = frame

    def _csv_worker(self) -> None:
        fh = None; writer = None
        try:
            while not (self._done.is_set() and self._frames.empty()):
                try:
                    frame = self._frames.get(timeout=0.2)
                except queue.Empty:
                    continue
                if writer is None:
                    self._columns = sorted(flatten_frame(frame))
                    fh = open(self.csv_path, "w", newline="", encoding="utf-8")
                    writer = csv.DictWriter(fh, fieldnames=self._columns, extrasaction="ignore")
                    writer.writeheader()
                self._write_row(writer, frame)
                fh.flush()
        finally:
            if fh: fh.close()

    def _stream_url(self) -> str:
        url = self.ws_url or ""
        url += ("&" if "?" in url else "?") + f"run_id={self.run_id}"
        if self.token:
            url += f"&token={self.token}"
        return url

    def _stream_worker(self) -> None:
        asyncio.run(self._stream(self._stream_url()))

    async def _stream(self, url: str) -> None:
        delay = 0.5
        while not self._done.is_set():
            try:
                async with websockets.connect(url, max_queue=32) as ws:
                    delay = 0.5
                    while not self._done.is_set():
                        try:
                            frame = self._outbox.get_nowait()
                        except queue.Empty:
                            await asyncio.sleep(0.05)
                            continue
                        await ws.send(json.dumps(frame))
            except (OSError, WebSocketException) as e:
                print("[log] stream error:", repr(e))
                await asyncio.sleep(delay)
                delay = min(5.0, delay * 1.7)
