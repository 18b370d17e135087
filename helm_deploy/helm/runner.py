"""Helm CLI wrapper - dry-run render, upgrade/install, delete, list, fetch.

Wraps the ``helm`` binary as a subprocess so the deploy workflow never
reimplements chart rendering or release bookkeeping.  Every public
function returns a :class:`HelmResult` and callers decide what a non-zero
exit code means.  The exception is :func:`list_release_names`, which
raises :class:`~helm_deploy.errors.ReleaseListError` when the listing
fails.
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from helm_deploy.errors import ReleaseListError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

#: Return code reported when the helm binary cannot be executed.
HELM_NOT_FOUND_RC: int = 127

# ---------------------------------------------------------------------------
# Result dataclass
# ---------------------------------------------------------------------------


@dataclass
class HelmResult:
    """Outcome of a ``helm`` CLI invocation."""

    command: str
    returncode: int
    stdout: str = ""
    stderr: str = ""
    success: bool = False

    @property
    def output(self) -> str:
        """stdout followed by stderr, as a log file would show them."""
        parts = [p for p in (self.stdout, self.stderr) if p]
        return "\n".join(parts)


# ---------------------------------------------------------------------------
# Internal helper
# ---------------------------------------------------------------------------


def _run_helm(
    args: Sequence[str],
    *,
    helm_binary: str = "helm",
    extra_env: Optional[Dict[str, str]] = None,
) -> HelmResult:
    """Run ``helm`` with *args* and return a :class:`HelmResult`.

    ``success`` is set when the process exits 0.
    """
    cmd = [helm_binary, *args]
    env = {**os.environ}
    if extra_env:
        env.update(extra_env)

    logger.debug("Running: %s", " ".join(cmd))

    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            env=env,
        )
    except FileNotFoundError:
        return HelmResult(
            command=" ".join(cmd),
            returncode=HELM_NOT_FOUND_RC,
            stderr=f"{helm_binary} CLI not found on PATH",
        )

    return HelmResult(
        command=" ".join(cmd),
        returncode=proc.returncode,
        stdout=(proc.stdout or "").rstrip("\n"),
        stderr=(proc.stderr or "").strip(),
        success=proc.returncode == 0,
    )


def _value_file_args(value_files: Sequence[str | Path]) -> List[str]:
    args: List[str] = []
    for path in value_files:
        args.extend(["-f", str(path)])
    return args


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def dry_run_render(
    release: str,
    chart_dir: str | Path,
    flags: Sequence[str],
    *,
    helm_binary: str = "helm",
) -> HelmResult:
    """Execute ``helm upgrade -i <release> <chart> <flags> --dry-run --debug``.

    *flags* are the operator's original flags, value-bearing ones included,
    so the trace contains the fully merged values.
    """
    result = _run_helm(
        [
            "upgrade", "-i", release, str(chart_dir),
            *flags,
            "--dry-run", "--debug",
        ],
        helm_binary=helm_binary,
    )
    if not result.success:
        logger.warning(
            "Dry-run render failed for %s (rc=%d): %s",
            release,
            result.returncode,
            result.stderr or "(no stderr)",
        )
    return result


def upgrade_install(
    release: str,
    chart_dir: str | Path,
    *,
    value_files: Sequence[str | Path] = (),
    flags: Sequence[str] = (),
    helm_binary: str = "helm",
) -> HelmResult:
    """Execute ``helm upgrade -i`` for one release.

    Value files are passed in increasing priority, followed by the
    pass-through *flags*.
    """
    result = _run_helm(
        [
            "upgrade", "-i", release, str(chart_dir),
            *_value_file_args(value_files),
            *flags,
        ],
        helm_binary=helm_binary,
    )
    if result.success:
        logger.info("Release %s upgraded/installed", release)
    else:
        logger.error(
            "Release %s failed (rc=%d): %s",
            release,
            result.returncode,
            result.stderr or "(no stderr)",
        )
    return result


def delete_release(
    release: str,
    *,
    purge: bool = True,
    helm_binary: str = "helm",
) -> HelmResult:
    """Execute ``helm del <release> [--purge]``."""
    args = ["del", release]
    if purge:
        args.append("--purge")
    result = _run_helm(args, helm_binary=helm_binary)
    if result.success:
        logger.info("Release %s deleted", release)
    else:
        logger.error(
            "Delete of %s failed (rc=%d): %s",
            release,
            result.returncode,
            result.stderr or "(no stderr)",
        )
    return result


def list_release_names(*, helm_binary: str = "helm") -> List[str]:
    """Return release names from ``helm ls -q`` in listing order.

    Raises:
        ReleaseListError: ``helm ls -q`` exited non-zero.
    """
    result = _run_helm(["ls", "-q"], helm_binary=helm_binary)
    if not result.success:
        detail = result.stderr.strip() or "(no stderr)"
        logger.warning("helm ls -q failed (rc=%d): %s", result.returncode, detail)
        raise ReleaseListError(
            f"helm ls -q failed (rc={result.returncode}): {detail}",
            hint="Check that helm can reach the cluster (helm ls).",
        )
    return [line.strip() for line in result.stdout.splitlines() if line.strip()]


def list_releases(*, helm_binary: str = "helm") -> HelmResult:
    """Execute ``helm ls`` and return the raw table."""
    return _run_helm(["ls"], helm_binary=helm_binary)


def fetch_chart(
    reference: str,
    untar_dir: str | Path,
    *,
    version: Optional[str] = None,
    helm_binary: str = "helm",
) -> HelmResult:
    """Execute ``helm fetch <reference> --untar --untardir <dir>``."""
    args = ["fetch", reference, "--untar", "--untardir", str(untar_dir)]
    if version:
        args.extend(["--version", version])
    result = _run_helm(args, helm_binary=helm_binary)
    if not result.success:
        logger.error(
            "helm fetch %s failed (rc=%d): %s",
            reference,
            result.returncode,
            result.stderr or "(no stderr)",
        )
    return result
