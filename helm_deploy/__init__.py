"""helm-deploy - umbrella chart deployer.

Installs (or upgrades) an umbrella Helm chart and each of its subcharts as
separate Helm releases in one namespace, propagating operator overrides
from the parent chart down to every subchart.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("helm-deploy")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"

__all__ = ["__version__"]
