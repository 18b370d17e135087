"""CLI entry point for helm-deploy, built on Typer.

Provides ``deploy`` and ``undeploy`` commands for umbrella Helm charts.

Usage::

    helm-deploy --help
    helm-deploy deploy demo local/onap --namespace onap -f overrides.yaml
    helm-deploy deploy demo-so local/onap --namespace onap
    helm-deploy undeploy demo
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import typer

from helm_deploy import __version__, ui

app = typer.Typer(
    name="helm-deploy",
    help="Deploy an umbrella Helm chart as one release per subchart.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


# ── Root callback ────────────────────────────────────────────────────────────


@app.callback(invoke_without_command=True)
def _root_callback(ctx: typer.Context) -> None:
    """Umbrella chart deployer for Helm."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)


def _setup_logging(debug: bool) -> None:
    if debug:
        logging.basicConfig(level=logging.DEBUG)


# ── deploy command ───────────────────────────────────────────────────────────


@app.command(
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def deploy(
    ctx: typer.Context,
    release: Optional[str] = typer.Argument(
        None,
        help="Release name, or <release>-<subchart> to update one subchart.",
    ),
    chart: Optional[str] = typer.Argument(
        None,
        help="Chart reference: repo/name, a .tgz archive, or a chart directory.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Print each release's helm output once it completes.",
    ),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to helm-deploy config YAML.",
    ),
    debug: bool = typer.Option(
        False,
        "--log-debug",
        help="Enable helm-deploy debug logging (--debug itself is passed to helm).",
    ),
) -> None:
    """Install or upgrade an umbrella chart and each of its subcharts.

    Any other flags (--namespace, -f/--values, --set, --set-string, ...) are
    handed to helm.  Value overrides given for the parent chart are
    propagated to every subchart release.

    Exit codes: 0 = success, 1 = release failures (only with
    fail_on_target_failure), 2 = override computation failed,
    3 = chart fetch failed, 4 = bad config.
    """
    if release is None or release == "help" or chart is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)

    from helm_deploy.workflow.deploy import run_deploy

    _setup_logging(debug)

    ui.step(f"Deploying {chart} as release {release} ...")
    rc = run_deploy(
        release,
        chart,
        list(ctx.args),
        verbose=verbose,
        config_path=config,
        debug=debug,
    )
    raise typer.Exit(rc)


# ── undeploy command ─────────────────────────────────────────────────────────


@app.command()
def undeploy(
    release: str = typer.Argument(..., help="Parent release name."),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to helm-deploy config YAML.",
    ),
    debug: bool = typer.Option(
        False,
        "--log-debug",
        help="Enable helm-deploy debug logging.",
    ),
) -> None:
    """Delete a release and every <release>-* subchart release (purged)."""
    from helm_deploy.workflow.deploy import run_undeploy

    _setup_logging(debug)

    ui.step(f"Removing release {release} and its subchart releases ...")
    rc = run_undeploy(release, config_path=config, debug=debug)
    raise typer.Exit(rc)


# ── help / version commands ──────────────────────────────────────────────────


@app.command("help")
def help_(ctx: typer.Context) -> None:
    """Show this message and exit."""
    typer.echo(ctx.parent.get_help() if ctx.parent is not None else ctx.get_help())


@app.command()
def version() -> None:
    """Print the helm-deploy version."""
    typer.echo(__version__)


# ── Entry point ──────────────────────────────────────────────────────────────


def main() -> int:
    """Run the CLI and return an exit code."""
    try:
        app()
        return 0
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 0


if __name__ == "__main__":
    sys.exit(main())
