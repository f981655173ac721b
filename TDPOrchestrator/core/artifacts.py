from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

_UNSAFE_CHARS_RE = re.compile(r"[^\w.-]+")


@dataclass(frozen=True)
class TDPArtifactPaths:
    """Files written for one diagnosis run, all under `run_dir`."""

    run_dir: Path
    config_json: Path
    outcome_json: Path
    events_jsonl: Path
    ranking_json: Path


def run_dir_name(label: Optional[str] = None) -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    if not label:
        return stamp
    return f"{stamp}_{_UNSAFE_CHARS_RE.sub('_', label).strip('_') or 'run'}"


def prepare_artifacts(
    base_dir: str | Path,
    *,
    run_name: Optional[str] = None,
    label: Optional[str] = None,
) -> TDPArtifactPaths:
    """Create a fresh run directory; a taken name gets a numeric suffix."""
    base = Path(base_dir)
    name = run_name or run_dir_name(label)
    run_dir = base / name
    suffix = 1
    while run_dir.exists():
        suffix += 1
        run_dir = base / f"{name}-{suffix}"
    run_dir.mkdir(parents=True)

    return TDPArtifactPaths(
        run_dir=run_dir,
        config_json=run_dir / "config.json",
        outcome_json=run_dir / "outcome.json",
        events_jsonl=run_dir / "events.jsonl",
        ranking_json=run_dir / "ranking.json",
    )


def write_json(path: Path, payload: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(payload, indent=2, sort_keys=True, default=str)
    path.write_text(text + "\n", encoding="utf-8")
