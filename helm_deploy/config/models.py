"""Pydantic model for helm-deploy settings.

Structure of ``config.yaml``::

    helm_deploy:
      helm_binary: helm
      cache_dir: ~/.cache/helm-deploy/cache
      global_exclude_from: common
      global_exclude_until: consul
      parent_retained_subcharts: [common]
      fail_on_target_failure: false
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, List

from pydantic import BaseModel, Field, field_validator

#: Banner that precedes the merged values in ``helm --dry-run --debug`` output.
COMPUTED_VALUES_BANNER: str = "COMPUTED VALUES:"

#: Banner that follows the merged values block.
HOOKS_BANNER: str = "HOOKS:"


def default_cache_dir() -> Path:
    """Return ``$XDG_CACHE_HOME/helm-deploy/cache`` (``~/.cache`` fallback)."""
    base = os.environ.get("XDG_CACHE_HOME", "")
    if not base:
        base = str(Path.home() / ".cache")
    return Path(base) / "helm-deploy" / "cache"


class DeployConfig(BaseModel):
    """Effective settings for one deploy run.

    Attributes:
        helm_binary: Executable used for every helm invocation.
        cache_dir: Working directory root, cleared at the start of each run.
        global_key: Top-level key holding values shared by every subchart.
        global_exclude_from: Child of ``global`` where the range withheld
            from subcharts starts.
        global_exclude_until: Child of ``global`` that ends the withheld
            range (the key itself is kept).
        parent_retained_subcharts: Subcharts left inside the parent chart
            because the parent templates depend on them.
        indent_width: Columns stripped from each line of a subchart slice.
        computed_values_banner: Start sentinel in the dry-run trace.
        hooks_banner: End sentinel in the dry-run trace.
        fail_on_target_failure: Exit non-zero when any release failed.
    """

    helm_binary: str = "helm"
    cache_dir: Path = Field(default_factory=default_cache_dir)
    global_key: str = "global"
    global_exclude_from: str = "common"
    global_exclude_until: str = "consul"
    parent_retained_subcharts: List[str] = Field(
        default_factory=lambda: ["common"],
    )
    indent_width: int = 2
    computed_values_banner: str = COMPUTED_VALUES_BANNER
    hooks_banner: str = HOOKS_BANNER
    fail_on_target_failure: bool = False

    @field_validator("cache_dir", mode="before")
    @classmethod
    def _expand_cache_dir(cls, value: Any) -> Any:
        if value is None or value == "":
            return default_cache_dir()
        return Path(str(value)).expanduser()

    @field_validator("parent_retained_subcharts", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> Any:
        """Accept a comma-separated string as well as a list."""
        if value is None:
            return []
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @field_validator("indent_width")
    @classmethod
    def _positive_indent(cls, value: int) -> int:
        if value < 1:
            raise ValueError("indent_width must be >= 1")
        return value


class ConfigFile(BaseModel):
    """Root model wrapping the ``helm_deploy:`` key."""

    helm_deploy: DeployConfig = Field(default_factory=DeployConfig)
