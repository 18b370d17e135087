"""Enablement lookup - flatten merged values into dotted paths.

Every ``key: value`` leaf of the merged document becomes a
``parent.child.key -> value`` entry, so a subchart's toggle is a plain
lookup of ``<subchart>.enabled``.  A missing toggle means disabled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from helm_deploy.overrides.document import parse_key_line, split_lines, unquote

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("true",)


def flatten_document(document: str) -> Dict[str, str]:
    """Return ``{dotted.path: value}`` for every leaf key of *document*.

    Ancestors are tracked by indentation: a key pops every open ancestor at
    the same or deeper indentation, so sibling subtrees never share a
    prefix.  Sequence items and the text of block scalars are ignored.
    Duplicate paths keep the last value.
    """
    values: Dict[str, str] = {}
    ancestors: List[Tuple[int, str]] = []
    block_indent: Optional[int] = None

    for line in split_lines(document):
        if not line.strip():
            continue
        indent = len(line) - len(line.lstrip(" "))
        if block_indent is not None:
            if indent > block_indent:
                continue
            block_indent = None

        parsed = parse_key_line(line)
        if parsed is None:
            continue

        while ancestors and ancestors[-1][0] >= parsed.indent:
            ancestors.pop()

        if parsed.is_container:
            ancestors.append((parsed.indent, parsed.key))
            continue

        if parsed.opens_block_scalar:
            block_indent = parsed.indent
            continue

        path = ".".join([key for _, key in ancestors] + [parsed.key])
        values[path] = unquote(parsed.value)

    return values


@dataclass
class EnablementTable:
    """Dotted-path view of the merged values."""

    values: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_document(cls, document: str) -> "EnablementTable":
        return cls(values=flatten_document(document))

    def get(self, path: str, default: Optional[str] = None) -> Optional[str]:
        return self.values.get(path, default)

    def enabled_value(self, subchart: str) -> Optional[str]:
        """Raw ``<subchart>.enabled`` value, ``None`` when absent."""
        return self.values.get(f"{subchart}.enabled")

    def is_enabled(self, subchart: str) -> bool:
        """True only when ``<subchart>.enabled`` is ``true``."""
        value = self.enabled_value(subchart)
        if value is None:
            logger.debug("No %s.enabled value; treating as disabled", subchart)
            return False
        return value.strip().lower() in _TRUE_VALUES
