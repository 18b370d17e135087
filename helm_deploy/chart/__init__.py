"""Umbrella chart working set (fetch, unpack, split subcharts)."""

from helm_deploy.chart.workspace import (
    WorkingSet,
    chart_name_for,
    clear_cache,
    disable_dependencies,
    expand_subchart_archives,
    prepare_working_set,
    split_subcharts,
)

__all__ = [
    "WorkingSet",
    "chart_name_for",
    "clear_cache",
    "disable_dependencies",
    "expand_subchart_archives",
    "prepare_working_set",
    "split_subcharts",
]
