"""Override computation: flag split, dry-run merge, partitioning, enablement."""

from helm_deploy.overrides.compiler import (
    COMPUTED_OVERRIDES_FILE,
    compile_overrides,
    extract_computed_values,
)
from helm_deploy.overrides.enablement import EnablementTable, flatten_document
from helm_deploy.overrides.flags import (
    OVERRIDE_FLAGS,
    OverrideFlag,
    OverrideKind,
    ResolvedFlags,
    resolve_flags,
    split_flags,
    strip_override_flags,
)
from helm_deploy.overrides.partition import (
    GLOBAL_OVERRIDES_FILE,
    SUBCHART_OVERRIDES_FILE,
    PartitionResult,
    TopLevelEntry,
    exclude_child_range,
    global_slice,
    partition_overrides,
    subchart_slice,
    top_level_entries,
)

__all__ = [
    "COMPUTED_OVERRIDES_FILE",
    "EnablementTable",
    "GLOBAL_OVERRIDES_FILE",
    "OVERRIDE_FLAGS",
    "OverrideFlag",
    "OverrideKind",
    "PartitionResult",
    "ResolvedFlags",
    "SUBCHART_OVERRIDES_FILE",
    "TopLevelEntry",
    "compile_overrides",
    "exclude_child_range",
    "extract_computed_values",
    "flatten_document",
    "global_slice",
    "partition_overrides",
    "resolve_flags",
    "split_flags",
    "strip_override_flags",
    "subchart_slice",
    "top_level_entries",
]
