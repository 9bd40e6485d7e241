"""
Structured JSON event log: append-only, one object per line (.jsonl).

Usage:
    from tripopt.modules.observability.logger import StructuredLogger

    events = StructuredLogger()
    events.log("opt_1718000000000_ab12cd34ef56", "STAGE_START", {"stage": "selecting"})

Records go to  <STRUCTURED_LOG_DIR>/<correlation_id>.jsonl, one file per run.
The handle stays open until close(correlation_id); the pipeline closes it when
a run completes or fails, and a later log() for the same id reopens in append mode.
Setting TRIPOPT_STRUCTURED_LOG_ENABLED=false turns every call into a no-op.
"""

from __future__ import annotations

import json
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from tripopt import config


class StructuredLogger:
    """Thread-safe, append-only JSONL logger."""

    def __init__(
        self,
        logs_dir: Path | str | None = None,
        enabled: bool | None = None,
    ) -> None:
        self._logs_dir = Path(logs_dir) if logs_dir else Path(config.STRUCTURED_LOG_DIR)
        self.enabled = config.STRUCTURED_LOG_ENABLED if enabled is None else enabled
        self._lock = threading.Lock()
        self._handles: dict[str, Any] = {}  # correlation_id -> file handle

    # ── public API ────────────────────────────────────────────────────────

    def log(self, correlation_id: str, event_type: str, payload: dict) -> None:
        """Append one structured JSON record to ``<correlation_id>.jsonl``."""
        if not self.enabled:
            return
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "correlation_id": correlation_id,
            "event_type": event_type,
            "payload": payload,
        }
        line = json.dumps(record, default=str, ensure_ascii=False) + "\n"

        with self._lock:
            fh = self._handles.get(correlation_id)
            if fh is None:
                fh = self._open(correlation_id)
            fh.write(line)
            fh.flush()

    def close(self, correlation_id: str | None = None) -> None:
        """Close one or all open file handles."""
        with self._lock:
            if correlation_id:
                fh = self._handles.pop(correlation_id, None)
                if fh:
                    fh.close()
            else:
                for fh in self._handles.values():
                    fh.close()
                self._handles.clear()

    def path_for(self, correlation_id: str) -> Path:
        return self._logs_dir / f"{correlation_id}.jsonl"

    # ── internals ─────────────────────────────────────────────────────────

    def _open(self, correlation_id: str):  # noqa: ANN202
        os.makedirs(self._logs_dir, exist_ok=True)
        fh = open(self.path_for(correlation_id), "a", encoding="utf-8")  # noqa: SIM115
        self._handles[correlation_id] = fh
        return fh
