"""Exception types raised by the deploy workflow.

Only :class:`RenderError` and :class:`ChartFetchError` abort a run.
:class:`ApplyError` is caught by the reconciler and recorded against the
target that produced it.
"""

from __future__ import annotations

from typing import Optional


class DeployError(Exception):
    """Base class for helm-deploy failures.

    Attributes:
        hint: Optional remediation shown to the operator.
    """

    def __init__(self, message: str, *, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.hint = hint


class ChartFetchError(DeployError):
    """The umbrella chart could not be fetched or unpacked."""


class RenderError(DeployError):
    """The dry-run render failed or produced no computed values."""


class ReleaseListError(DeployError):
    """``helm ls`` could not list the deployed releases."""


class ApplyError(DeployError):
    """A single release install, upgrade, or removal failed."""

    def __init__(
        self,
        release: str,
        message: str,
        *,
        returncode: int = 1,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(f"{release}: {message}", hint=hint)
        self.release = release
        self.returncode = returncode
