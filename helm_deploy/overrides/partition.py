"""Override partitioning - split the merged document per release.

The merged values of the umbrella chart are cut at top-level key
boundaries into:

* ``global-overrides.yaml`` - the ``global:`` block, applied to every
  subchart release.  The child range from ``common:`` up to ``consul:``
  is withheld because it configures shared infrastructure subcharts.
* ``<subchart>/subchart-overrides.yaml`` - the block under each
  top-level key that names a subchart directory, de-indented one level.

Top-level keys with no subchart directory (plain values, lists) are
skipped.  Partitioning is pure text slicing: given the same document and
subchart directories the output files are byte-identical.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from helm_deploy.config.models import DeployConfig
from helm_deploy.errors import RenderError
from helm_deploy.overrides.document import join_lines, parse_key_line, split_lines

logger = logging.getLogger(__name__)

#: File name of the global slice inside the parent chart directory.
GLOBAL_OVERRIDES_FILE: str = "global-overrides.yaml"

#: File name of a subchart slice inside its subchart directory.
SUBCHART_OVERRIDES_FILE: str = "subchart-overrides.yaml"


@dataclass(frozen=True)
class TopLevelEntry:
    """A top-level key and its line range ``[start, end)``."""

    key: str
    start: int
    end: int
    container: bool = True


@dataclass
class PartitionResult:
    """Files written by :func:`partition_overrides`."""

    global_overrides: Optional[Path] = None
    subchart_overrides: Dict[str, Path] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Boundary detection
# ---------------------------------------------------------------------------


def top_level_entries(lines: List[str]) -> List[TopLevelEntry]:
    """Return top-level keys in document order with their line ranges.

    The last entry runs to the end of the document.
    """
    starts: List[tuple[int, str, bool]] = []
    for idx, line in enumerate(lines):
        parsed = parse_key_line(line)
        if parsed is not None and parsed.indent == 0:
            starts.append((idx, parsed.key, parsed.is_container))

    entries: List[TopLevelEntry] = []
    for pos, (start, key, container) in enumerate(starts):
        end = starts[pos + 1][0] if pos + 1 < len(starts) else len(lines)
        entries.append(TopLevelEntry(key=key, start=start, end=end, container=container))
    return entries


# ---------------------------------------------------------------------------
# Slices
# ---------------------------------------------------------------------------


def _child_keys(body: List[str]) -> List[tuple[int, str]]:
    """Direct child keys of a block as ``(line index, key)`` pairs."""
    child_indent: Optional[int] = None
    for line in body:
        if line.strip() and not line.lstrip().startswith("#"):
            child_indent = len(line) - len(line.lstrip(" "))
            break
    if child_indent is None:
        return []

    children: List[tuple[int, str]] = []
    for idx, line in enumerate(body):
        parsed = parse_key_line(line)
        if parsed is not None and parsed.indent == child_indent:
            children.append((idx, parsed.key))
    return children


def exclude_child_range(body: List[str], from_key: str, until_key: str) -> List[str]:
    """Drop child lines from *from_key* up to (not including) *until_key*.

    Without a following *until_key* only the *from_key* block is dropped.
    """
    children = _child_keys(body)
    for pos, (start, key) in enumerate(children):
        if key != from_key:
            continue
        end: Optional[int] = None
        for idx, other in children[pos + 1:]:
            if other == until_key:
                end = idx
                break
        if end is None:
            end = children[pos + 1][0] if pos + 1 < len(children) else len(body)
        return body[:start] + body[end:]
    return list(body)


def global_slice(
    lines: List[str],
    entry: TopLevelEntry,
    *,
    exclude_from: str = "common",
    exclude_until: str = "consul",
) -> str:
    """Render the global override document for *entry*."""
    body = exclude_child_range(lines[entry.start + 1:entry.end], exclude_from, exclude_until)
    return join_lines([lines[entry.start].rstrip()] + body)


def _dedent(line: str, width: int) -> str:
    prefix = len(line) - len(line.lstrip(" "))
    return line[min(prefix, width):]


def subchart_slice(lines: List[str], entry: TopLevelEntry, *, indent_width: int = 2) -> str:
    """Render the lines under *entry* with one indentation level removed."""
    return join_lines([_dedent(line, indent_width) for line in lines[entry.start + 1:entry.end]])


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def _write(path: Path, text: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise RenderError(f"cannot write overrides to {path}: {exc}") from exc


def partition_overrides(
    document: str,
    config: DeployConfig,
    *,
    subcharts_dir: Path,
    global_path: Path,
) -> PartitionResult:
    """Write the global slice to *global_path* and each subchart slice
    into ``<subcharts_dir>/<key>/subchart-overrides.yaml``.

    Raises:
        RenderError: an override file cannot be written.
    """
    lines = split_lines(document)
    result = PartitionResult()

    for entry in top_level_entries(lines):
        if entry.key == config.global_key:
            text = global_slice(
                lines,
                entry,
                exclude_from=config.global_exclude_from,
                exclude_until=config.global_exclude_until,
            )
            _write(global_path, text)
            result.global_overrides = global_path
            logger.debug("Global overrides written to %s", global_path)
            continue

        subchart_dir = subcharts_dir / entry.key
        if not entry.container or not subchart_dir.is_dir():
            result.skipped.append(entry.key)
            continue

        dest = subchart_dir / SUBCHART_OVERRIDES_FILE
        _write(dest, subchart_slice(lines, entry, indent_width=config.indent_width))
        result.subchart_overrides[entry.key] = dest
        logger.debug("Overrides for subchart %s written to %s", entry.key, dest)

    logger.info(
        "Partitioned overrides: global=%s subcharts=%d skipped=%d",
        "yes" if result.global_overrides else "no",
        len(result.subchart_overrides),
        len(result.skipped),
    )
    return result
