"""
Shared helpers for the command line: selection parsing and logging setup.
"""

from typing import List, Optional, Union
import logging
import re
import time
from pathlib import Path

Selection = List[Union[int, str]]


def parse_selection(text: Optional[str]) -> Optional[Selection]:
    """Parse `1,5,7` / `pkg.FooTest#testA,3` into 1-based indices and test names.

    An empty or missing value means "observe every test".
    """
    raw = (text or "").strip()
    if not raw:
        return None
    out: Selection = []
    for part in (p.strip() for p in raw.split(",")):
        if not part:
            continue
        if re.fullmatch(r"\d+", part):
            out.append(int(part))
        else:
            out.append(part)
    return out


def setup_logging(log_type: str, run_name: str, log_dir: str = 'logs', session_id: Optional[int] = None, level: int = logging.INFO) -> logging.Logger:
    """Sets up the package logger for a diagnosis run (file + console)."""
    log_dir_path = Path(log_dir)
    log_dir_path.mkdir(parents=True, exist_ok=True)

    log_file = log_dir_path / f"{log_type}_logs.log"

    logger = logging.getLogger("TDPOrchestrator")
    logger.setLevel(level)

    # Prevent adding multiple handlers if the logger already exists
    if not logger.handlers:
        file_handler = logging.FileHandler(log_file, mode='a')
        stream_handler = logging.StreamHandler()

        session = int(session_id) if session_id is not None else int(time.time())
        formatter = logging.Formatter(
            f'%(asctime)s - %(levelname)s - [Session: {session}]-[Run: {run_name}] - %(message)s'
        )
        file_handler.setFormatter(formatter)
        stream_handler.setFormatter(formatter)

        logger.addHandler(file_handler)
        logger.addHandler(stream_handler)

    return logger
