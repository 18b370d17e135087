"""Release status listing - the post-run FAILED report.

Parses the table printed by ``helm ls`` and filters it to releases left in
a failed state.  Observational only: nothing here retries or remediates.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from helm_deploy.helm.runner import list_releases

logger = logging.getLogger(__name__)

#: Release status reported by helm for a failed install/upgrade.
STATUS_FAILED: str = "FAILED"

_WIDE_GAP = re.compile(r"\s{2,}")


@dataclass
class ReleaseStatus:
    """One row of ``helm ls`` output."""

    name: str
    status: str
    line: str = ""

    @property
    def failed(self) -> bool:
        return self.status.upper() == STATUS_FAILED


def _column_offsets(header: str) -> List[int]:
    """Start offsets of the columns of a space-aligned header."""
    offsets = [0]
    offsets.extend(m.end() for m in _WIDE_GAP.finditer(header.rstrip()))
    return offsets


def _split_row(line: str, tabbed: bool, offsets: Optional[List[int]] = None) -> List[str]:
    if tabbed:
        return [col.strip() for col in line.split("\t")]
    if offsets is None:
        return [col.strip() for col in _WIDE_GAP.split(line.strip())]
    bounds = offsets[1:] + [len(line)]
    return [line[start:end].strip() for start, end in zip(offsets, bounds)]


def parse_release_table(text: str) -> List[ReleaseStatus]:
    """Parse ``helm ls`` output into :class:`ReleaseStatus` rows.

    Column positions come from the ``NAME ... STATUS`` header.  Without a
    header each line is kept with its first token as the name and
    ``FAILED`` as the status when that token appears on the line.
    """
    lines = [ln for ln in text.splitlines() if ln.strip()]
    header_idx: Optional[int] = None
    for idx, line in enumerate(lines):
        if line.strip().upper().startswith("NAME"):
            header_idx = idx
            break

    rows: List[ReleaseStatus] = []
    if header_idx is None:
        for line in lines:
            tokens = line.split()
            status = STATUS_FAILED if STATUS_FAILED in tokens else ""
            rows.append(ReleaseStatus(name=tokens[0], status=status, line=line))
        return rows

    header = lines[header_idx]
    tabbed = "\t" in header
    offsets = None if tabbed else _column_offsets(header)
    columns = [c.upper() for c in _split_row(header, tabbed, offsets)]
    name_col = columns.index("NAME")
    status_col = columns.index("STATUS") if "STATUS" in columns else None

    for line in lines[header_idx + 1:]:
        cols = _split_row(line, tabbed, offsets)
        if len(cols) <= name_col:
            continue
        status = ""
        if status_col is not None and len(cols) > status_col:
            status = cols[status_col]
        rows.append(ReleaseStatus(name=cols[name_col], status=status, line=line))
    return rows


def filter_failed(rows: List[ReleaseStatus], release: str) -> List[ReleaseStatus]:
    """Keep rows in FAILED state whose name contains *release*."""
    return [r for r in rows if r.failed and release in r.name]


def failed_releases(release: str, *, helm_binary: str = "helm") -> List[ReleaseStatus]:
    """Query ``helm ls`` and return failed releases belonging to *release*.

    A listing failure is logged and reported as an empty list.
    """
    result = list_releases(helm_binary=helm_binary)
    if not result.success:
        logger.warning(
            "helm ls failed (rc=%d): %s",
            result.returncode,
            result.stderr or "(no stderr)",
        )
        return []
    failed = filter_failed(parse_release_table(result.stdout), release)
    for row in failed:
        logger.warning("Release %s is in %s state", row.name, row.status)
    return failed
