"""Run-scoped context passed to every workflow step.

Holds the working set, the operator's flags, and the documents computed
from them, so no step reads or writes global state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from helm_deploy.chart.workspace import WorkingSet
from helm_deploy.config.models import DeployConfig
from helm_deploy.overrides.enablement import EnablementTable
from helm_deploy.overrides.flags import ResolvedFlags
from helm_deploy.overrides.partition import PartitionResult


def resolve_scope(release: str, working_set: WorkingSet) -> Tuple[str, Optional[str]]:
    """Split a composite ``<release>-<subchart>`` name.

    Split points are tried left to right; the first suffix naming a
    subchart directory wins and ``(prefix, suffix)`` is returned.  Without
    a match the whole string is the release and no subchart is targeted.
    """
    for idx, char in enumerate(release):
        if char != "-" or idx == 0:
            continue
        prefix, suffix = release[:idx], release[idx + 1:]
        if suffix and working_set.has_subchart(suffix):
            return prefix, suffix
    return release, None


@dataclass
class RunContext:
    """Everything one deploy run knows.

    Attributes:
        release: Parent release name (composite names already resolved).
        chart: Chart reference as given by the operator.
        config: Effective settings.
        flags: Operator flags split into overrides and pass-through.
        working_set: Unpacked chart and subchart directories.
        scoped_subchart: Only this subchart is reconciled when set.
        verbose: Echo each release log once it completes.
        computed_document: Merged values from the dry-run render.
        partition: Override files written for the release calls.
        enablement: Dotted-path lookup of the merged values.
    """

    release: str
    chart: str
    config: DeployConfig
    flags: ResolvedFlags
    working_set: WorkingSet
    scoped_subchart: Optional[str] = None
    verbose: bool = False
    computed_document: str = ""
    partition: PartitionResult = field(default_factory=PartitionResult)
    enablement: EnablementTable = field(default_factory=EnablementTable)

    @property
    def includes_parent(self) -> bool:
        return self.scoped_subchart is None

    def subchart_release(self, subchart: str) -> str:
        return f"{self.release}-{subchart}"

    def target_subcharts(self) -> List[str]:
        """Subcharts reconciled by this run, in directory order."""
        if self.scoped_subchart is not None:
            return [self.scoped_subchart]
        return self.working_set.subchart_names()
