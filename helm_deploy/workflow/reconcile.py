"""Release reconciliation - install, upgrade, or remove every target.

Each target (the parent release, then one release per subchart) moves
``UNKNOWN -> SUCCEEDED | FAILED`` independently:

* parent: always upgrade/install with the computed overrides file;
* enabled subchart: upgrade/install with the global overrides, then the
  subchart overrides, then the pass-through flags;
* disabled subchart: delete (with ``--purge``) every deployed release
  matching ``<release>-<subchart>``, most recently listed first.

A failed target never stops the loop and nothing is rolled back.  Targets
are built as a list of zero-argument tasks and handed to a scheduler; the
default scheduler runs them one after another.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional, Sequence, Set, Tuple

from helm_deploy.errors import ApplyError, ReleaseListError
from helm_deploy.helm.runner import delete_release, list_release_names, upgrade_install
from helm_deploy.state.models import DesiredState, Outcome, ReleaseRecord, TargetKind
from helm_deploy.state.store import log_path_for, write_release_log
from helm_deploy.workflow.context import RunContext

logger = logging.getLogger(__name__)

ReleaseTask = Callable[[], ReleaseRecord]
Scheduler = Callable[[Sequence[ReleaseTask]], List[ReleaseRecord]]
CompletionHook = Callable[[ReleaseRecord], None]


def run_sequential(tasks: Sequence[ReleaseTask]) -> List[ReleaseRecord]:
    """Run *tasks* one at a time, in order."""
    return [task() for task in tasks]


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------


def _subchart_value_files(ctx: RunContext, subchart: str) -> List[str]:
    files: List[str] = []
    if ctx.partition.global_overrides is not None:
        files.append(str(ctx.partition.global_overrides))
    own = ctx.partition.subchart_overrides.get(subchart)
    if own is not None:
        files.append(str(own))
    return files


def plan_releases(ctx: RunContext) -> List[ReleaseRecord]:
    """Build the release records for this run, parent first."""
    ws = ctx.working_set
    records: List[ReleaseRecord] = []

    if ctx.includes_parent:
        records.append(
            ReleaseRecord(
                name=ctx.release,
                kind=TargetKind.PARENT,
                chart_dir=str(ws.chart_dir),
                value_files=[str(ws.computed_overrides_path)],
                desired=DesiredState.PRESENT,
                log_path=str(log_path_for(ws.log_dir, ctx.release)),
            )
        )

    for subchart in ctx.target_subcharts():
        name = ctx.subchart_release(subchart)
        enabled = ctx.enablement.is_enabled(subchart)
        records.append(
            ReleaseRecord(
                name=name,
                kind=TargetKind.SUBCHART,
                subchart=subchart,
                chart_dir=str(ws.subchart_dir(subchart)),
                value_files=_subchart_value_files(ctx, subchart) if enabled else [],
                desired=DesiredState.PRESENT if enabled else DesiredState.ABSENT,
                log_path=str(log_path_for(ws.log_dir, name)),
            )
        )
    return records


# ---------------------------------------------------------------------------
# Removal helpers
# ---------------------------------------------------------------------------


def matching_releases(
    deployed: Iterable[str],
    target: str,
    *,
    exclude: Optional[Set[str]] = None,
) -> List[str]:
    """Deployed names containing *target*, minus names in *exclude*."""
    exclude = exclude or set()
    return [name for name in deployed if target in name and name not in exclude]


def remove_releases(
    names: Sequence[str],
    *,
    helm_binary: str = "helm",
) -> Tuple[List[str], List[str], List[str]]:
    """Delete *names* from last to first.

    Every name is attempted.  Returns ``(removed, failed, log entries)``.
    """
    removed: List[str] = []
    entries: List[str] = []
    failures: List[str] = []
    for name in reversed(list(names)):
        result = delete_release(name, purge=True, helm_binary=helm_binary)
        entries.extend([f"$ {result.command}", result.output])
        if result.success:
            removed.append(name)
        else:
            failures.append(name)
    return removed, failures, entries


# ---------------------------------------------------------------------------
# Apply
# ---------------------------------------------------------------------------


def _apply_present(record: ReleaseRecord, ctx: RunContext) -> List[str]:
    result = upgrade_install(
        record.name,
        record.chart_dir,
        value_files=record.value_files,
        flags=ctx.flags.passthrough,
        helm_binary=ctx.config.helm_binary,
    )
    entries = [f"$ {result.command}", result.output]
    if not result.success:
        write_release_log(ctx.working_set.log_dir, record.name, entries)
        raise ApplyError(
            record.name,
            result.stderr or f"helm exited with {result.returncode}",
            returncode=result.returncode,
        )
    return entries


def _apply_absent(record: ReleaseRecord, ctx: RunContext) -> List[str]:
    siblings = {
        ctx.subchart_release(s)
        for s in ctx.working_set.subchart_names()
        if s != record.subchart
    }
    siblings.add(ctx.release)
    try:
        deployed = list_release_names(helm_binary=ctx.config.helm_binary)
    except ReleaseListError as exc:
        raise ApplyError(
            record.name, f"cannot list deployed releases: {exc}", hint=exc.hint,
        ) from exc
    targets = matching_releases(deployed, record.name, exclude=siblings)
    if not targets:
        logger.debug("Subchart %s disabled and not deployed", record.subchart)
        return [f"{record.subchart} disabled; no release to remove"]

    removed, failures, entries = remove_releases(
        targets, helm_binary=ctx.config.helm_binary,
    )
    record.removed = removed
    if failures:
        write_release_log(ctx.working_set.log_dir, record.name, entries)
        raise ApplyError(record.name, f"delete failed for {', '.join(failures)}")
    return entries


def apply_release(
    record: ReleaseRecord,
    ctx: RunContext,
    *,
    on_complete: Optional[CompletionHook] = None,
) -> ReleaseRecord:
    """Apply one record, capturing its outcome instead of raising."""
    try:
        if record.desired == DesiredState.PRESENT:
            entries = _apply_present(record, ctx)
        else:
            entries = _apply_absent(record, ctx)
        write_release_log(ctx.working_set.log_dir, record.name, entries)
        record.outcome = Outcome.SUCCEEDED
    except ApplyError as exc:
        logger.error("Release %s failed: %s", record.name, exc)
        record.outcome = Outcome.FAILED
        record.error = str(exc)
    except OSError as exc:
        logger.error("Release %s: cannot write log: %s", record.name, exc)
        record.outcome = Outcome.FAILED
        record.error = f"log write failed: {exc}"

    if on_complete is not None:
        on_complete(record)
    return record


def reconcile(
    ctx: RunContext,
    *,
    scheduler: Scheduler = run_sequential,
    on_complete: Optional[CompletionHook] = None,
) -> List[ReleaseRecord]:
    """Plan and apply every release target of *ctx*."""
    records = plan_releases(ctx)
    tasks: List[ReleaseTask] = [
        (lambda r=record: apply_release(r, ctx, on_complete=on_complete))
        for record in records
    ]
    results = scheduler(tasks)
    failed = sum(1 for r in results if r.failed)
    logger.info("Reconciled %d release(s), %d failed", len(results), failed)
    return results
