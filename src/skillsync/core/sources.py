"""Source identifier normalisation.

Only ``owner/repo`` shorthand is rewritten; URLs and filesystem paths pass
through untouched.
"""

from __future__ import annotations

import re

_SHORTHAND_RE = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")
_DRIVE_RE = re.compile(r"^[A-Za-z]:[/\\]")


def is_shorthand(source: str) -> bool:
    """True when *source* looks like ``owner/repo`` and nothing else."""
    if "\\" in source or source.startswith(("./", "../", "/")):
        return False
    if _DRIVE_RE.match(source):
        return False
    if "://" in source:
        return False
    if "@" in source and ":" in source:
        return False
    return bool(_SHORTHAND_RE.match(source))


def resolve(source: str) -> str:
    """Rewrite shorthand to a GitHub HTTPS clone URL, else return *source*."""
    if is_shorthand(source):
        return f"https://github.com/{source}.git"
    return source
