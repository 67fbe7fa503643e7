"""Run-log files for pipeline runs.

- dated_log_path: one text log per run, named after its start time
- RunLog: JSON-lines file with one record per pipeline stage
- config_block: YAML rendering of a run configuration for the text log
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

PathLike = Union[str, Path]

STAMP_FORMAT = "%Y%m%d_%H%M%S"


def dated_log_path(directory: PathLike, name: str = "run", started: Optional[datetime] = None) -> Path:
    """Return ``<directory>/<name>_<YYYYmmdd_HHMMSS>.log`` for a run start time.

    Example: dated_log_path("out/logs", started=datetime(2024, 3, 1, 9, 5))
    -> out/logs/run_20240301_090500.log
    """
    started = started or datetime.now()
    return Path(directory) / f"{name}_{started.strftime(STAMP_FORMAT)}.log"


class RunLog:
    """Append-only JSON-lines record of pipeline stages.

    Parameters
    ----------
    path : PathLike
        JSON-lines file; created with its parent directory on first append

    Example
    -------
    >>> run_log = RunLog("out/run_log.jsonl")
    >>> run_log.append("annotate", "success", 1.234, n_succeeded=3)
    >>> [r["stage"] for r in run_log.records()]
    ['annotate']
    """

    def __init__(self, path: PathLike):
        self.path = Path(path)

    def append(self, stage: str, status: str, duration: float, **extra: Any) -> Dict[str, Any]:
        """Write one stage record and return it."""
        record: Dict[str, Any] = {
            "timestamp": datetime.now().isoformat(),
            "stage": stage,
            "status": status,
            "duration_seconds": round(duration, 3),
        }
        record.update(extra)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, default=str) + "\n")
        return record

    def records(self) -> List[Dict[str, Any]]:
        """Read back all records in write order (empty if nothing was logged)."""
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8") as handle:
            return [json.loads(line) for line in handle if line.strip()]


def config_block(config: Dict[str, Any], title: str = "Run configuration") -> str:
    """Render a configuration dictionary as an indented YAML block."""
    text = yaml.safe_dump(config, sort_keys=False, default_flow_style=False).rstrip("\n")
    body = "\n".join(f"  {line}" for line in text.splitlines())
    return f"{title}:\n{body}"
