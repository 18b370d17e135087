"""Orchestrator for umbrella chart deploys.

Run order::

    1. Resolve flags       override-bearing vs pass-through
    2. Working set         clear cache, fetch/unpack, split subcharts
    3. Scope               <release>-<subchart> targets a single subchart
    4. Compute overrides   helm --dry-run --debug, COMPUTED VALUES block
    5. Partition           global + per-subchart override files
    6. Reconcile           parent, then every subchart (no fail-fast)
    7. Report              FAILED releases from helm ls, run report JSON

Only a fetch or render failure aborts the run.  Individual release
failures are reported but, unless ``fail_on_target_failure`` is set, the
run still exits ``EXIT_SUCCESS``.
"""

from __future__ import annotations

import logging
import time
from typing import List, Optional, Sequence

import yaml

from helm_deploy import ui
from helm_deploy.chart.workspace import prepare_working_set
from helm_deploy.config.loader import load_config
from helm_deploy.config.models import DeployConfig
from helm_deploy.errors import ChartFetchError, DeployError, ReleaseListError, RenderError
from helm_deploy.helm.runner import list_release_names
from helm_deploy.helm.status import failed_releases
from helm_deploy.overrides.compiler import compile_overrides
from helm_deploy.overrides.enablement import EnablementTable
from helm_deploy.overrides.flags import resolve_flags
from helm_deploy.overrides.partition import partition_overrides
from helm_deploy.state.models import ReleaseRecord, RunReport
from helm_deploy.state.store import write_run_report
from helm_deploy.workflow.context import RunContext, resolve_scope
from helm_deploy.workflow.reconcile import Scheduler, reconcile, remove_releases, run_sequential

logger = logging.getLogger(__name__)

# Exit codes
EXIT_SUCCESS = 0
EXIT_TARGET_FAILURE = 1
EXIT_RENDER_FAILURE = 2
EXIT_FETCH_FAILURE = 3
EXIT_CONFIG_FAILURE = 4


def exit_code_for(report: RunReport, config: DeployConfig) -> int:
    """Map a finished run to its exit code."""
    if report.has_failures and config.fail_on_target_failure:
        return EXIT_TARGET_FAILURE
    return EXIT_SUCCESS


def _load(config_path: Optional[str], debug: bool) -> Optional[DeployConfig]:
    if debug:
        logging.getLogger("helm_deploy").setLevel(logging.DEBUG)
    try:
        return load_config(config_path)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as exc:
        logger.error("Config load failed: %s", exc)
        ui.fatal(DeployError(
            f"cannot load config: {exc}",
            hint="See --config and the HELM_DEPLOY_* environment settings.",
        ))
        return None


def _announce(ctx: RunContext):
    """Build the per-release completion hook."""

    def _hook(record: ReleaseRecord) -> None:
        ui.release_result(record)
        if ctx.verbose and record.log_path:
            try:
                with open(record.log_path, encoding="utf-8") as fh:
                    ui.release_log(record.name, fh.read())
            except OSError as exc:
                logger.warning("Cannot read log %s: %s", record.log_path, exc)

    return _hook


# ---------------------------------------------------------------------------
# Deploy workflow
# ---------------------------------------------------------------------------


def run_deploy(
    release: str,
    chart: str,
    flags: Sequence[str] = (),
    *,
    verbose: bool = False,
    config_path: Optional[str] = None,
    debug: bool = False,
    config: Optional[DeployConfig] = None,
    scheduler: Scheduler = run_sequential,
) -> int:
    """Deploy *chart* as a parent release plus one release per subchart.

    Returns one of the ``EXIT_*`` constants.
    """
    started = time.monotonic()
    cfg = config if config is not None else _load(config_path, debug)
    if cfg is None:
        return EXIT_CONFIG_FAILURE

    resolved = resolve_flags(flags)

    # -- 1. Working set -------------------------------------------------------
    ui.phase("FETCH")
    try:
        ws = prepare_working_set(chart, cfg, version=resolved.version)
    except ChartFetchError as exc:
        logger.error("Chart fetch failed: %s", exc)
        ui.fatal(exc)
        return EXIT_FETCH_FAILURE
    ui.ok(f"chart {ws.chart_name} unpacked ({len(ws.subchart_names())} subcharts)")
    ui.detail("namespace", resolved.namespace or "(helm default)")
    ui.detail("working set", str(ws.cache_dir))

    # -- 2. Scope -------------------------------------------------------------
    parent_release, scoped = resolve_scope(release, ws)
    if scoped is not None:
        ui.info(f"updating subchart {scoped} of release {parent_release} only")

    ctx = RunContext(
        release=parent_release,
        chart=chart,
        config=cfg,
        flags=resolved,
        working_set=ws,
        scoped_subchart=scoped,
        verbose=verbose,
    )

    # -- 3. Computed overrides ------------------------------------------------
    ui.phase("OVERRIDES")
    try:
        ctx.computed_document = compile_overrides(
            ctx.release, ws.chart_dir, resolved, cfg,
            dest=ws.computed_overrides_path,
        )
        ctx.partition = partition_overrides(
            ctx.computed_document,
            cfg,
            subcharts_dir=ws.subcharts_dir,
            global_path=ws.global_overrides_path,
        )
    except RenderError as exc:
        logger.error("Override computation failed: %s", exc)
        ui.fatal(exc)
        return EXIT_RENDER_FAILURE

    ctx.enablement = EnablementTable.from_document(ctx.computed_document)
    ui.ok(
        f"computed overrides for {len(ctx.partition.subchart_overrides)} subchart(s)"
    )

    # -- 4. Reconcile ---------------------------------------------------------
    ui.phase("RELEASES")
    records = reconcile(ctx, scheduler=scheduler, on_complete=_announce(ctx))

    # -- 5. Report ------------------------------------------------------------
    failed = failed_releases(ctx.release, helm_binary=cfg.helm_binary)
    report = RunReport(
        release=ctx.release,
        chart=chart,
        namespace=resolved.namespace,
        scoped_subchart=scoped,
        records=records,
        failed_releases=[row.name for row in failed],
    )
    try:
        write_run_report(report, ws.log_dir)
    except OSError as exc:
        logger.warning("Run report not written: %s", exc)

    if failed:
        ui.failed_table([(row.name, row.status) for row in failed])

    logger.info(
        "Deploy of %s finished in %s (%d release(s), %d failed)",
        ctx.release,
        ui.elapsed_str(time.monotonic() - started),
        len(records),
        len(report.failed_records),
    )
    return exit_code_for(report, cfg)


# ---------------------------------------------------------------------------
# Undeploy workflow
# ---------------------------------------------------------------------------


def undeploy_targets(release: str, deployed: Sequence[str]) -> List[str]:
    """Deployed names belonging to *release*: itself and ``<release>-*``."""
    return [n for n in deployed if n == release or n.startswith(f"{release}-")]


def run_undeploy(
    release: str,
    *,
    config_path: Optional[str] = None,
    debug: bool = False,
    config: Optional[DeployConfig] = None,
) -> int:
    """Delete the parent release and all of its subchart releases."""
    cfg = config if config is not None else _load(config_path, debug)
    if cfg is None:
        return EXIT_CONFIG_FAILURE

    ui.phase("UNDEPLOY")
    try:
        deployed = list_release_names(helm_binary=cfg.helm_binary)
    except ReleaseListError as exc:
        ui.fatal(exc)
        return EXIT_TARGET_FAILURE
    targets = undeploy_targets(release, deployed)
    if not targets:
        ui.warn(f"no releases found for {release}")
        return EXIT_SUCCESS

    removed, failures, _entries = remove_releases(targets, helm_binary=cfg.helm_binary)
    for name in removed:
        ui.ok(f"release {name} removed")
    for name in failures:
        ui.fail(f"release {name} removal failed")

    if failures and cfg.fail_on_target_failure:
        return EXIT_TARGET_FAILURE
    return EXIT_SUCCESS
