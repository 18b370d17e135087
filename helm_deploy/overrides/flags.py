"""Flag resolution - split operator flags into override-bearing and pass-through.

Value-bearing flags (``-f/--values``, ``--set``, ``--set-string``) are only
used for the dry-run render that computes merged values.  Every later
install/upgrade receives computed override files instead, together with
the remaining pass-through flags, so no key is specified twice.

Matching is done on whole tokens, never substrings, so ``--set`` does not
match ``--set-string`` and ``-f`` does not match ``--force``.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple


class OverrideKind(str, Enum):
    """Kind of operator-supplied override."""

    FILE = "file"
    SET = "set"
    SET_STRING = "set-string"


#: Override-bearing flag name → kind.
OVERRIDE_FLAGS: Dict[str, OverrideKind] = {
    "-f": OverrideKind.FILE,
    "--values": OverrideKind.FILE,
    "--set": OverrideKind.SET,
    "--set-string": OverrideKind.SET_STRING,
}


@dataclass(frozen=True)
class OverrideFlag:
    """One ``<flag> <value>`` pair, kept in command-line order."""

    kind: OverrideKind
    flag: str
    value: str

    def as_args(self) -> List[str]:
        return [self.flag, self.value]


@dataclass
class ResolvedFlags:
    """Operator flags split for the dry-run and the release calls.

    Attributes:
        original: Every flag exactly as given; used for the dry-run render so
            right-most-wins precedence is left to helm.
        overrides: Override-bearing pairs in their original order.
        passthrough: Flags forwarded to every install/upgrade call.
        namespace: Value of ``--namespace`` if present (still passed through).
        version: Value of ``--version`` if present (still passed through).
    """

    original: List[str] = field(default_factory=list)
    overrides: List[OverrideFlag] = field(default_factory=list)
    passthrough: List[str] = field(default_factory=list)
    namespace: Optional[str] = None
    version: Optional[str] = None

    @property
    def passthrough_string(self) -> str:
        return shlex.join(self.passthrough)


def split_flags(flags: str | Sequence[str] | None) -> List[str]:
    """Tokenize a flag string (shell rules) or copy a token sequence."""
    if flags is None:
        return []
    if isinstance(flags, str):
        return shlex.split(flags)
    return list(flags)


def _match_override(token: str) -> Optional[Tuple[str, Optional[str]]]:
    """Return ``(flag, inline_value)`` when *token* is an override flag."""
    if token in OVERRIDE_FLAGS:
        return token, None
    if token.startswith("--"):
        name, sep, value = token.partition("=")
        if sep and name in OVERRIDE_FLAGS:
            return name, value
        return None
    # Shorthand with an attached value: ``-f=values.yaml`` or ``-fvalues.yaml``.
    short = token[:2]
    if len(token) > 2 and short in OVERRIDE_FLAGS:
        value = token[2:]
        return short, value[1:] if value.startswith("=") else value
    return None


def _option_value(tokens: Sequence[str], name: str) -> Optional[str]:
    """Find the value of ``name value`` or ``name=value`` (first occurrence)."""
    for idx, token in enumerate(tokens):
        if token == name and idx + 1 < len(tokens):
            return tokens[idx + 1]
        if token.startswith(name + "="):
            return token.split("=", 1)[1]
    return None


def resolve_flags(flags: str | Sequence[str] | None) -> ResolvedFlags:
    """Split *flags* into override-bearing pairs and pass-through flags.

    A value-bearing flag with no value after it is left in the pass-through
    list untouched; helm reports the error on the first release call.
    """
    tokens = split_flags(flags)
    overrides: List[OverrideFlag] = []
    passthrough: List[str] = []

    idx = 0
    while idx < len(tokens):
        token = tokens[idx]
        match = _match_override(token)
        if match is None:
            passthrough.append(token)
            idx += 1
            continue

        name, inline_value = match
        if inline_value is not None:
            overrides.append(OverrideFlag(OVERRIDE_FLAGS[name], name, inline_value))
            idx += 1
        elif idx + 1 < len(tokens):
            overrides.append(OverrideFlag(OVERRIDE_FLAGS[name], name, tokens[idx + 1]))
            idx += 2
        else:
            passthrough.append(token)
            idx += 1

    return ResolvedFlags(
        original=tokens,
        overrides=overrides,
        passthrough=passthrough,
        namespace=_option_value(tokens, "--namespace"),
        version=_option_value(tokens, "--version"),
    )


def strip_override_flags(flags: str) -> str:
    """Return *flags* with every override-bearing pair removed."""
    return resolve_flags(flags).passthrough_string
