"""Per-release log files and the run report.

Both live in the run's log directory, which is cleared together with the
rest of the cache at the start of the next run.

File naming::

    <release>.log
    run_<release>_<run_id>.json
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from helm_deploy.state.models import RunReport

logger = logging.getLogger(__name__)


def _safe_name(name: Optional[str]) -> str:
    """Sanitise a release name for use in a filename."""
    if not name:
        return "unknown"
    return "".join(c if (c.isalnum() or c in "-_.") else "_" for c in name)


def log_path_for(log_dir: Path, release: str) -> Path:
    return log_dir / f"{_safe_name(release)}.log"


def write_release_log(log_dir: Path, release: str, entries: Iterable[str]) -> Path:
    """Truncate and write the log of *release*; return its path."""
    log_dir.mkdir(parents=True, exist_ok=True)
    dest = log_path_for(log_dir, release)
    text = "\n".join(e.rstrip("\n") for e in entries if e)
    dest.write_text(text + "\n" if text else "", encoding="utf-8")
    return dest


def write_run_report(report: RunReport, log_dir: Path) -> Path:
    """Persist *report* as sorted-key JSON and return the written path."""
    log_dir.mkdir(parents=True, exist_ok=True)
    dest = log_dir / f"run_{_safe_name(report.release)}_{report.run_id}.json"
    dest.write_text(report.to_sorted_json() + "\n", encoding="utf-8")
    logger.info("Run report written to %s", dest)
    return dest


def load_run_report(path: str | Path) -> RunReport:
    return RunReport.model_validate_json(Path(path).read_text(encoding="utf-8"))
