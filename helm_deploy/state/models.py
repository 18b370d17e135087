"""Release record and run report models.

A :class:`RunReport` is written after every deploy run::

    {
      "run_id": "YYYYMMDDHHMMSS",
      "release": "demo",
      "chart": "local/onap",
      "namespace": "onap",
      "scoped_subchart": null,
      "records": [
        {
          "name": "demo-so",
          "kind": "subchart",
          "desired": "present",
          "outcome": "succeeded",
          ...
        }
      ],
      "failed_releases": []
    }

Records are built fresh on every run; the helm release store is the
source of truth for what is actually deployed.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class TargetKind(str, Enum):
    """Which part of the umbrella chart a release comes from."""

    PARENT = "parent"
    SUBCHART = "subchart"


class DesiredState(str, Enum):
    """Whether the release should exist after the run."""

    PRESENT = "present"
    ABSENT = "absent"


class Outcome(str, Enum):
    """Last observed result of applying a release transition."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    UNKNOWN = "unknown"


class ReleaseRecord(BaseModel):
    """One release transition.

    Attributes:
        name: Release name (``<release>`` or ``<release>-<subchart>``).
        kind: Parent or subchart.
        subchart: Subchart name, empty for the parent.
        chart_dir: Chart directory passed to helm.
        value_files: Override files, lowest priority first.
        desired: PRESENT installs/upgrades, ABSENT removes.
        outcome: Result once applied.
        removed: Releases deleted while reconciling an ABSENT record.
        error: Failure description when ``outcome`` is FAILED.
        log_path: Per-release log file.
    """

    name: str
    kind: TargetKind
    subchart: str = ""
    chart_dir: str = ""
    value_files: List[str] = Field(default_factory=list)
    desired: DesiredState = DesiredState.PRESENT
    outcome: Outcome = Outcome.UNKNOWN
    removed: List[str] = Field(default_factory=list)
    error: str = ""
    log_path: str = ""

    @property
    def failed(self) -> bool:
        return self.outcome == Outcome.FAILED


class RunReport(BaseModel):
    """Summary of one deploy run, written next to the release logs."""

    run_id: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S"),
    )
    release: str = ""
    chart: str = ""
    namespace: Optional[str] = None
    scoped_subchart: Optional[str] = None
    records: List[ReleaseRecord] = Field(default_factory=list)
    failed_releases: List[str] = Field(default_factory=list)

    # -- convenience helpers ------------------------------------------------

    @property
    def failed_records(self) -> List[ReleaseRecord]:
        return [r for r in self.records if r.failed]

    @property
    def has_failures(self) -> bool:
        """True when any record failed or helm lists a FAILED release."""
        return bool(self.failed_records or self.failed_releases)

    def to_sorted_json(self, indent: int = 2) -> str:
        """Serialise with sorted keys for deterministic output."""
        return json.dumps(
            self.model_dump(mode="json"),
            indent=indent,
            sort_keys=True,
        )
