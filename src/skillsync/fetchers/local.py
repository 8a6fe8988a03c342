"""Reinstall a skill from the local filesystem."""

from __future__ import annotations

from pathlib import Path

from skillsync.core.errors import SourcePathNotFound
from skillsync.core.models import LockEntry
from skillsync.fetchers import InstallContext, InstallOutcome, copy_tree


def install(name: str, entry: LockEntry, dest: Path, ctx: InstallContext) -> InstallOutcome:
    """Copy the directory named by ``entry.source`` into *dest*.

    Relative paths are resolved against the project root.
    """
    src = Path(entry.source).expanduser()
    if not src.is_absolute():
        src = ctx.root / src
    if not src.is_dir():
        raise SourcePathNotFound(f"Cannot find skill at local path: {src}")
    copy_tree(src, dest)
    return InstallOutcome()
