"""
Structured JSON run logger — append-only, one object per line (.jsonl).

Usage:
    from modules.observability.logger import StructuredLogger

    run_log = StructuredLogger(enabled=True)
    run_log.log("run_abc123", "generation_start", {"days": 5})
    with run_log.timed("run_abc123", "zone_clustering", city="kyoto"):
        ...

Logs are written to  <LOGS_DIR>/<run_id>.jsonl. A disabled logger accepts
every call and writes nothing.
"""

from __future__ import annotations

import json
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Iterator

import config


class StructuredLogger:
    """Thread-safe, append-only JSONL logger."""

    def __init__(self, logs_dir: Path | str | None = None, enabled: bool | None = None) -> None:
        self._logs_dir = Path(logs_dir or config.LOGS_DIR)
        self.enabled = config.ENABLE_RUN_LOG if enabled is None else enabled
        self._lock = threading.Lock()
        self._handles: dict[str, IO[str]] = {}

    # ── public API ────────────────────────────────────────────────────────

    def log(self, run_id: str, event_type: str, payload: dict) -> None:
        """Append one structured JSON record to ``<run_id>.jsonl``."""
        if not self.enabled:
            return
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "run_id": run_id,
            "event_type": event_type,
            "payload": payload,
        }
        line = json.dumps(record, default=str, ensure_ascii=False) + "\n"

        with self._lock:
            fh = self._handles.get(run_id) or self._open(run_id)
            fh.write(line)
            fh.flush()

    @contextmanager
    def timed(self, run_id: str, stage: str, **fields) -> Iterator[None]:
        """Log a PERFORMANCE event with the block's wall-clock duration."""
        t0 = time.perf_counter()
        try:
            yield
        finally:
            self.log(run_id, "PERFORMANCE", {
                "stage": stage,
                "duration_ms": round((time.perf_counter() - t0) * 1000, 2),
                **fields,
            })

    def close(self, run_id: str | None = None) -> None:
        """Close one or all open file handles."""
        with self._lock:
            if run_id:
                fh = self._handles.pop(run_id, None)
                if fh:
                    fh.close()
            else:
                for fh in self._handles.values():
                    fh.close()
                self._handles.clear()

    # ── internals ─────────────────────────────────────────────────────────

    def _open(self, run_id: str) -> IO[str]:
        self._logs_dir.mkdir(parents=True, exist_ok=True)
        fh = open(self._logs_dir / f"{run_id}.jsonl", "a", encoding="utf-8")  # noqa: SIM115
        self._handles[run_id] = fh
        return fh
