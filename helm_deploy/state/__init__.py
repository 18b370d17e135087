"""Release records, run reports, and their on-disk storage."""

from helm_deploy.state.models import (
    DesiredState,
    Outcome,
    ReleaseRecord,
    RunReport,
    TargetKind,
)
from helm_deploy.state.store import (
    load_run_report,
    log_path_for,
    write_release_log,
    write_run_report,
)

__all__ = [
    "DesiredState",
    "Outcome",
    "ReleaseRecord",
    "RunReport",
    "TargetKind",
    "load_run_report",
    "log_path_for",
    "write_release_log",
    "write_run_report",
]
