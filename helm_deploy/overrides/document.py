"""Line-level helpers for the merged values document.

The merged document is handled as text, never round-tripped through a
YAML parser, so slices written to override files keep helm's formatting
byte-for-byte.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

# A mapping key line: ``key:`` or ``key: value``.  Sequence items,
# comments, and document markers never match.
_KEY_LINE = re.compile(
    r"^(?P<indent> *)(?P<key>[^\s#\-:][^:]*?|\"[^\"]*\"|'[^']*')\s*:(?:\s+(?P<value>.*?))?\s*$"
)

# Block scalar header: style, then optional chomping and indentation
# indicators in either order (``|``, ``>-``, ``|2-``, ``>+4``).  Deeper
# lines that follow are text, not keys.
_BLOCK_SCALAR_HEADER = re.compile(r"[|>][0-9+-]*(?:\s+#.*)?")


@dataclass(frozen=True)
class KeyLine:
    """A parsed ``key: value`` line."""

    indent: int
    key: str
    value: str

    @property
    def is_container(self) -> bool:
        """True for ``key:`` lines with nothing after the colon."""
        return self.value == ""

    @property
    def opens_block_scalar(self) -> bool:
        return _BLOCK_SCALAR_HEADER.fullmatch(self.value) is not None


def parse_key_line(line: str) -> Optional[KeyLine]:
    """Parse *line* as a mapping key, or return ``None``."""
    if "\t" in line[: len(line) - len(line.lstrip())]:
        return None
    match = _KEY_LINE.match(line.rstrip("\r\n"))
    if match is None:
        return None
    key = match.group("key").strip()
    if len(key) >= 2 and key[0] == key[-1] and key[0] in "\"'":
        key = key[1:-1]
    return KeyLine(
        indent=len(match.group("indent")),
        key=key,
        value=(match.group("value") or "").strip(),
    )


def unquote(value: str) -> str:
    """Strip one pair of matching surrounding quotes."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def split_lines(document: str) -> List[str]:
    """Split *document* into lines without line terminators."""
    return document.splitlines()


def join_lines(lines: List[str]) -> str:
    """Join *lines* with a trailing newline (empty string for no lines)."""
    if not lines:
        return ""
    return "\n".join(lines) + "\n"
