"""Working set preparation - fetch and split the umbrella chart.

Layout under the cache directory (cleared at the start of every run)::

    <cache>/<chart>/                    parent chart, dependencies disabled
    <cache>/<chart>/charts/common/      subcharts the parent keeps
    <cache>/<chart>-subcharts/<name>/   one directory per subchart release
    <cache>/<chart>-logs/               one log file per release

The cache is exclusively owned by the current run; concurrent runs against
the same cache directory are not supported.
"""

from __future__ import annotations

import logging
import shutil
import tarfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from helm_deploy.config.models import DeployConfig
from helm_deploy.errors import ChartFetchError
from helm_deploy.helm.runner import fetch_chart
from helm_deploy.overrides.compiler import COMPUTED_OVERRIDES_FILE
from helm_deploy.overrides.partition import GLOBAL_OVERRIDES_FILE

logger = logging.getLogger(__name__)

_ARCHIVE_SUFFIXES = (".tgz", ".tar.gz")


# ---------------------------------------------------------------------------
# WorkingSet
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WorkingSet:
    """Paths of one run's unpacked umbrella chart."""

    cache_dir: Path
    chart_name: str

    @property
    def chart_dir(self) -> Path:
        return self.cache_dir / self.chart_name

    @property
    def subcharts_dir(self) -> Path:
        return self.cache_dir / f"{self.chart_name}-subcharts"

    @property
    def log_dir(self) -> Path:
        return self.cache_dir / f"{self.chart_name}-logs"

    @property
    def computed_overrides_path(self) -> Path:
        return self.chart_dir / COMPUTED_OVERRIDES_FILE

    @property
    def global_overrides_path(self) -> Path:
        return self.chart_dir / GLOBAL_OVERRIDES_FILE

    def subchart_dir(self, name: str) -> Path:
        return self.subcharts_dir / name

    def has_subchart(self, name: str) -> bool:
        return bool(name) and self.subchart_dir(name).is_dir()

    def subchart_names(self) -> List[str]:
        """Subchart directory names in sorted order."""
        if not self.subcharts_dir.is_dir():
            return []
        return sorted(p.name for p in self.subcharts_dir.iterdir() if p.is_dir())


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _is_archive(path: Path) -> bool:
    return path.is_file() and path.name.endswith(_ARCHIVE_SUFFIXES)


def _extract(archive: Path, dest: Path) -> None:
    with tarfile.open(archive, "r:*") as tar:
        if hasattr(tarfile, "data_filter"):
            tar.extractall(dest, filter="data")
        else:
            tar.extractall(dest)


def chart_name_for(reference: str) -> str:
    """Best-effort chart name for a reference, path, or URL.

    ``stable/onap`` → ``onap``; ``./charts/onap/`` → ``onap``;
    ``https://host/onap-1.0.0.tgz`` → ``onap-1.0.0``.
    """
    name = reference.rstrip("/").split("/")[-1]
    for suffix in _ARCHIVE_SUFFIXES:
        if name.endswith(suffix):
            return name[: -len(suffix)]
    return name


def clear_cache(cache_dir: Path) -> None:
    """Remove and recreate *cache_dir*.

    Raises:
        ValueError: *cache_dir* is the filesystem root or the home directory.
    """
    resolved = cache_dir.expanduser().resolve()
    if resolved == Path(resolved.anchor) or resolved == Path.home().resolve():
        raise ValueError(f"refusing to clear {resolved} as a cache directory")
    if cache_dir.exists():
        shutil.rmtree(cache_dir)
    cache_dir.mkdir(parents=True, exist_ok=True)


def _single_child_dir(parent: Path) -> Optional[Path]:
    dirs = [p for p in parent.iterdir() if p.is_dir()]
    if len(dirs) == 1:
        return dirs[0]
    return None


def expand_subchart_archives(charts_dir: Path) -> List[str]:
    """Extract packaged subcharts in *charts_dir* and delete the archives."""
    if not charts_dir.is_dir():
        return []
    expanded: List[str] = []
    for archive in sorted(charts_dir.iterdir()):
        if not _is_archive(archive):
            continue
        _extract(archive, charts_dir)
        archive.unlink()
        expanded.append(archive.name)
    if expanded:
        logger.debug("Expanded subchart archives: %s", ", ".join(expanded))
    return expanded


def split_subcharts(ws: WorkingSet, retained: List[str]) -> List[str]:
    """Move subcharts out of the parent, keeping *retained* in place."""
    charts_dir = ws.chart_dir / "charts"
    ws.subcharts_dir.mkdir(parents=True, exist_ok=True)
    if not charts_dir.is_dir():
        return []
    moved: List[str] = []
    for entry in sorted(charts_dir.iterdir()):
        if entry.name in retained:
            continue
        shutil.move(str(entry), str(ws.subcharts_dir / entry.name))
        moved.append(entry.name)
    return moved


def disable_dependencies(chart_dir: Path) -> None:
    """Stop helm from resolving the parent's dependencies itself."""
    lock = chart_dir / "requirements.lock"
    if lock.exists():
        lock.unlink()
    requirements = chart_dir / "requirements.yaml"
    if requirements.exists():
        requirements.rename(chart_dir / "requirements.deploy")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def prepare_working_set(
    reference: str,
    config: DeployConfig,
    *,
    version: Optional[str] = None,
) -> WorkingSet:
    """Clear the cache and unpack *reference* into a fresh working set.

    *reference* may be a chart directory, a packaged chart, or anything
    ``helm fetch`` understands (``repo/name`` or a URL).

    Raises:
        ChartFetchError: the chart cannot be found, fetched, or unpacked.
    """
    cache_dir = config.cache_dir
    try:
        clear_cache(cache_dir)
    except (ValueError, OSError) as exc:
        raise ChartFetchError(f"cannot prepare cache directory: {exc}") from exc

    source = Path(reference).expanduser()
    if source.is_dir():
        ws = WorkingSet(cache_dir=cache_dir, chart_name=chart_name_for(str(source.resolve())))
        try:
            shutil.copytree(source, ws.chart_dir)
        except OSError as exc:
            raise ChartFetchError(f"cannot copy {reference}: {exc}") from exc
    elif _is_archive(source):
        staging = cache_dir / ".unpack"
        try:
            staging.mkdir()
            _extract(source, staging)
        except (tarfile.TarError, OSError) as exc:
            raise ChartFetchError(f"cannot unpack {reference}: {exc}") from exc
        unpacked = _single_child_dir(staging)
        if unpacked is None:
            raise ChartFetchError(f"{reference} does not contain a single chart directory")
        ws = WorkingSet(cache_dir=cache_dir, chart_name=unpacked.name)
        try:
            shutil.move(str(unpacked), str(ws.chart_dir))
            shutil.rmtree(staging)
        except OSError as exc:
            raise ChartFetchError(f"cannot stage {reference}: {exc}") from exc
    else:
        logger.info("Fetching %s", reference)
        result = fetch_chart(
            reference, cache_dir, version=version, helm_binary=config.helm_binary,
        )
        if not result.success:
            raise ChartFetchError(
                f"helm fetch {reference} failed (rc={result.returncode}): "
                f"{result.stderr or '(no stderr)'}",
                hint="Check the chart reference and that the repository is added.",
            )
        fetched = _single_child_dir(cache_dir)
        name = fetched.name if fetched is not None else chart_name_for(reference)
        ws = WorkingSet(cache_dir=cache_dir, chart_name=name)
        if not ws.chart_dir.is_dir():
            raise ChartFetchError(f"helm fetch produced no chart directory for {reference}")

    try:
        expand_subchart_archives(ws.chart_dir / "charts")
        moved = split_subcharts(ws, config.parent_retained_subcharts)
        disable_dependencies(ws.chart_dir)
        ws.log_dir.mkdir(parents=True, exist_ok=True)
    except (tarfile.TarError, OSError) as exc:
        raise ChartFetchError(
            f"cannot unpack subcharts of {ws.chart_name}: {exc}",
            hint="Rebuild the chart package (helm package) and retry.",
        ) from exc

    logger.info(
        "Working set ready: chart=%s subcharts=%d (%s)",
        ws.chart_name, len(moved), ws.cache_dir,
    )
    return ws
