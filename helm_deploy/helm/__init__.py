"""Helm CLI invocation and release status listing."""

from helm_deploy.helm.runner import (
    HELM_NOT_FOUND_RC,
    HelmResult,
    delete_release,
    dry_run_render,
    fetch_chart,
    list_release_names,
    list_releases,
    upgrade_install,
)
from helm_deploy.helm.status import (
    STATUS_FAILED,
    ReleaseStatus,
    failed_releases,
    filter_failed,
    parse_release_table,
)

__all__ = [
    "HELM_NOT_FOUND_RC",
    "HelmResult",
    "ReleaseStatus",
    "STATUS_FAILED",
    "delete_release",
    "dry_run_render",
    "failed_releases",
    "fetch_chart",
    "filter_failed",
    "list_release_names",
    "list_releases",
    "parse_release_table",
    "upgrade_install",
]
