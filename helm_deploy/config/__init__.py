"""Settings model and loader."""

from helm_deploy.config.loader import (
    ENV_OVERRIDES,
    config_dir,
    default_config_path,
    load_config,
    write_config,
)
from helm_deploy.config.models import (
    COMPUTED_VALUES_BANNER,
    HOOKS_BANNER,
    ConfigFile,
    DeployConfig,
    default_cache_dir,
)

__all__ = [
    "COMPUTED_VALUES_BANNER",
    "ConfigFile",
    "DeployConfig",
    "ENV_OVERRIDES",
    "HOOKS_BANNER",
    "config_dir",
    "default_cache_dir",
    "default_config_path",
    "load_config",
    "write_config",
]
