"""Deploy orchestration (scope, reconcile, report)."""

from helm_deploy.workflow.context import RunContext, resolve_scope
from helm_deploy.workflow.deploy import (
    EXIT_CONFIG_FAILURE,
    EXIT_FETCH_FAILURE,
    EXIT_RENDER_FAILURE,
    EXIT_SUCCESS,
    EXIT_TARGET_FAILURE,
    exit_code_for,
    run_deploy,
    run_undeploy,
    undeploy_targets,
)
from helm_deploy.workflow.reconcile import (
    apply_release,
    matching_releases,
    plan_releases,
    reconcile,
    remove_releases,
    run_sequential,
)

__all__ = [
    "EXIT_CONFIG_FAILURE",
    "EXIT_FETCH_FAILURE",
    "EXIT_RENDER_FAILURE",
    "EXIT_SUCCESS",
    "EXIT_TARGET_FAILURE",
    "RunContext",
    "apply_release",
    "exit_code_for",
    "matching_releases",
    "plan_releases",
    "reconcile",
    "remove_releases",
    "resolve_scope",
    "run_deploy",
    "run_sequential",
    "run_undeploy",
    "undeploy_targets",
]
