"""Reinstall a skill shipped inside an installed package's dependency cache."""

from __future__ import annotations

from pathlib import Path

from skillsync.core import paths
from skillsync.core.errors import SourcePathNotFound
from skillsync.core.models import LockEntry
from skillsync.fetchers import InstallContext, InstallOutcome, copy_tree


def install(name: str, entry: LockEntry, dest: Path, ctx: InstallContext) -> InstallOutcome:
    src = paths.dependency_cache_path(ctx.root, entry.source, name)
    if not src.is_dir():
        raise SourcePathNotFound(f"Cannot find skill in {paths.DEPENDENCY_CACHE_DIR}: {src}")
    copy_tree(src, dest)
    return InstallOutcome()
