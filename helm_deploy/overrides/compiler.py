"""Override compilation - merged values from a ``--dry-run --debug`` render.

Helm prints the fully merged values of the parent chart between two
banner lines of its debug trace::

    COMPUTED VALUES:
    global:
      repository: nexus3.example.org:10001
    log:
      enabled: false
    HOOKS:

The block between the banners (both excluded) is the merged configuration
document every later step works from.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from helm_deploy.config.models import COMPUTED_VALUES_BANNER, HOOKS_BANNER, DeployConfig
from helm_deploy.errors import RenderError
from helm_deploy.helm.runner import dry_run_render
from helm_deploy.overrides.flags import ResolvedFlags

logger = logging.getLogger(__name__)

#: File name of the merged document inside the parent chart directory.
COMPUTED_OVERRIDES_FILE: str = "computed-overrides.yaml"


def extract_computed_values(
    trace: str,
    *,
    start_banner: str = COMPUTED_VALUES_BANNER,
    end_banner: str = HOOKS_BANNER,
) -> str:
    """Return the lines strictly between *start_banner* and *end_banner*.

    When the end banner is missing the block runs to the end of the trace.

    Raises:
        RenderError: *start_banner* does not occur in *trace*.
    """
    lines = trace.splitlines()
    start: Optional[int] = None
    for idx, line in enumerate(lines):
        if line.strip() == start_banner:
            start = idx
            break
    if start is None:
        raise RenderError(
            f"'{start_banner}' not found in dry-run output",
            hint="Check that the helm client prints computed values with --debug.",
        )

    end = len(lines)
    for idx in range(start + 1, len(lines)):
        if lines[idx].strip() == end_banner:
            end = idx
            break

    body = lines[start + 1:end]
    if not body:
        return ""
    return "\n".join(body) + "\n"


def compile_overrides(
    release: str,
    chart_dir: Path,
    flags: ResolvedFlags,
    config: DeployConfig,
    *,
    dest: Optional[Path] = None,
) -> str:
    """Render *chart_dir* in dry-run mode and return the merged document.

    The operator's flags are passed exactly as given so helm applies its own
    right-most-wins precedence.  The document is also written to *dest*
    (default ``<chart_dir>/computed-overrides.yaml``).

    Raises:
        RenderError: helm reported an error or the trace has no values block.
    """
    result = dry_run_render(
        release,
        chart_dir,
        flags.original,
        helm_binary=config.helm_binary,
    )
    if not result.success:
        raise RenderError(
            f"dry-run render of {chart_dir.name} failed (rc={result.returncode}): "
            f"{result.stderr or result.stdout or '(no output)'}",
        )

    document = extract_computed_values(
        result.stdout,
        start_banner=config.computed_values_banner,
        end_banner=config.hooks_banner,
    )

    out = dest if dest is not None else chart_dir / COMPUTED_OVERRIDES_FILE
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(document, encoding="utf-8")
    except OSError as exc:
        raise RenderError(f"cannot write computed overrides to {out}: {exc}") from exc
    logger.info("Computed overrides written to %s (%d lines)", out, document.count("\n"))
    return document
