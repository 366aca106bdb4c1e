"""Run directories, the engine log and the status snapshot read by `autoscroll status`."""

from __future__ import annotations

import json
import os
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


RUNS_DIR = Path("runs")
STATUS_PATH = RUNS_DIR / "status.json"
MAX_RUN_DIR_ATTEMPTS = 100


@dataclass(frozen=True)
class RunContext:
    run_id: str
    run_dir: Path
    engine_log: Path


def create_run_context(runs_dir: Path | None = None) -> RunContext:
    base_dir = RUNS_DIR if runs_dir is None else runs_dir
    base_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    for attempt in range(MAX_RUN_DIR_ATTEMPTS):
        run_id = f"{stamp}-{attempt:02d}" if attempt else stamp
        run_dir = base_dir / run_id
        try:
            run_dir.mkdir(parents=False, exist_ok=False)
        except FileExistsError:
            continue
        return RunContext(run_id=run_id, run_dir=run_dir, engine_log=run_dir / "autoscroll.log")
    raise RuntimeError(f"Could not allocate a run directory under {base_dir}")


def append_log(path: Path, message: str) -> None:
    with path.open("a", encoding="utf-8") as fh:
        fh.write(message.rstrip() + "\n")


def write_json(path: Path, payload: dict[str, Any]) -> None:
    # Readers poll the status file while the run rewrites it.
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp")
    with tmp_path.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2, ensure_ascii=False)
        fh.write("\n")
    os.replace(tmp_path, path)


def write_status(
    *,
    run_id: str,
    run_dir: Path,
    state: str,
    url: str = "",
    engine: dict[str, Any] | None = None,
) -> None:
    payload: dict[str, Any] = {
        "run_id": run_id,
        "run_dir": str(run_dir),
        "state": state,
        "updated_at_utc": datetime.now(timezone.utc).isoformat(),
    }
    if url:
        payload["url"] = url
    if engine is not None:
        payload["engine"] = engine
    write_json(STATUS_PATH, payload)


def status_payload() -> dict[str, Any]:
    if not STATUS_PATH.exists():
        return {"status": "no-runs"}
    with STATUS_PATH.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def tail_lines(path: Path, line_count: int) -> list[str]:
    if line_count <= 0 or not path.exists():
        return []
    with path.open("r", encoding="utf-8") as fh:
        return [line.rstrip("\n") for line in deque(fh, maxlen=line_count)]
