"""Settings loading for helm-deploy.

Resolution order for every setting (later wins):

1. Model defaults (:class:`~helm_deploy.config.models.DeployConfig`)
2. ``config.yaml`` (``--config PATH`` or ``$XDG_CONFIG_HOME/helm-deploy``)
3. ``HELM_DEPLOY_*`` environment variables
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from helm_deploy.config.models import ConfigFile, DeployConfig

logger = logging.getLogger(__name__)

_APP_DIR = "helm-deploy"

#: Environment variable → config field.
ENV_OVERRIDES: Dict[str, str] = {
    "HELM_DEPLOY_HELM_BINARY": "helm_binary",
    "HELM_DEPLOY_CACHE_DIR": "cache_dir",
    "HELM_DEPLOY_FAIL_ON_TARGET_FAILURE": "fail_on_target_failure",
}

_TRUTHY = ("1", "true", "yes", "on")


def config_dir() -> Path:
    """Return the XDG config directory for helm-deploy (not created)."""
    base = os.environ.get("XDG_CONFIG_HOME", "")
    if not base:
        base = str(Path.home() / ".config")
    return Path(base) / _APP_DIR


def default_config_path() -> Path:
    return config_dir() / "config.yaml"


def _env_overrides() -> Dict[str, Any]:
    found: Dict[str, Any] = {}
    for env_name, field_name in ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw is None or raw == "":
            continue
        if field_name == "fail_on_target_failure":
            found[field_name] = raw.strip().lower() in _TRUTHY
        else:
            found[field_name] = raw
    return found


def load_config(path: Optional[str | Path] = None) -> DeployConfig:
    """Load settings from YAML and the environment.

    A missing file is not an error: defaults apply.  An explicitly given
    *path* that does not exist raises :class:`FileNotFoundError`.
    """
    explicit = path is not None
    cfg_path = Path(path).expanduser() if path is not None else default_config_path()

    raw: Dict[str, Any] = {}
    if cfg_path.is_file():
        with open(cfg_path, encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"{cfg_path}: expected a mapping at the top level")
        logger.debug("Loaded config from %s", cfg_path)
    elif explicit:
        raise FileNotFoundError(f"Config file not found: {cfg_path}")

    section = dict(raw.get("helm_deploy", {}) or {})
    section.update(_env_overrides())

    return ConfigFile.model_validate({"helm_deploy": section}).helm_deploy


def write_config(cfg: DeployConfig, path: str | Path) -> Path:
    """Serialize *cfg* to YAML at *path* (used to seed a config file)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {"helm_deploy": cfg.model_dump(mode="json")}
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(data, fh, default_flow_style=False, sort_keys=False)
    return path
