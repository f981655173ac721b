from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class TDPConfig:
    """Configuration surface for a Test-Diagnose-Plan run.

    Notes:
    - `convergence_threshold`: a run is complete when one diagnosis remains or
      the most likely one reaches this probability. `None` requires a single
      remaining diagnosis.
    - `max_candidates` / `max_cardinality` bound the hitting-set enumeration;
      `max_diagnoses` is the top-K kept after scoring.
    - `oracle_timeout_seconds` bounds each oracle call; `None` waits forever. A
      timed-out call is abandoned on a daemon thread and may keep running.
    """

    max_iterations: int = 10
    max_diagnoses: int = 20
    convergence_threshold: Optional[float] = 0.95

    max_candidates: int = 10_000
    max_cardinality: Optional[int] = None

    # Planner: thread pool size for candidate scoring; seed for the random fallback.
    max_workers: int = 1
    seed: Optional[int] = 42

    oracle_timeout_seconds: Optional[float] = None

    work_dir: str = "runs/tdp"

    def __post_init__(self) -> None:
        if int(self.max_iterations) < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if int(self.max_diagnoses) < 1:
            raise ValueError(f"max_diagnoses must be >= 1, got {self.max_diagnoses}")
        if int(self.max_candidates) < 1:
            raise ValueError(f"max_candidates must be >= 1, got {self.max_candidates}")
        if self.max_cardinality is not None and int(self.max_cardinality) < 1:
            raise ValueError(f"max_cardinality must be >= 1, got {self.max_cardinality}")
        if self.convergence_threshold is not None and not (0.0 < float(self.convergence_threshold) <= 1.0):
            raise ValueError(f"convergence_threshold must be in (0, 1], got {self.convergence_threshold}")
        if int(self.max_workers) < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.oracle_timeout_seconds is not None and float(self.oracle_timeout_seconds) <= 0:
            raise ValueError(f"oracle_timeout_seconds must be positive, got {self.oracle_timeout_seconds}")

    def to_json_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def resolved_work_dir(self) -> Path:
        return Path(self.work_dir)
