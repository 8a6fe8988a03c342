"""I/O layer — reinstall a locked skill from its recorded source.

Dispatch based on the lock entry's sourceType:
  github | gitlab | git  → fetchers.git
  dependency-cache       → fetchers.dependency_cache
  local                  → fetchers.local
Anything else is rejected with UnknownSourceType.
"""

from __future__ import annotations

import shutil
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from skillsync.core import paths
from skillsync.core.errors import InstallError, UnknownSourceType
from skillsync.core.models import LockEntry, SourceType


@dataclass(frozen=True)
class InstallContext:
    """Per-run settings shared by every installer."""

    root: Path
    timeout: float | None = None
    cancel: threading.Event | None = None


@dataclass(frozen=True)
class InstallOutcome:
    resolved_revision: str | None = None


class Installer(Protocol):
    def __call__(
        self, name: str, entry: LockEntry, dest: Path, ctx: InstallContext,
    ) -> InstallOutcome: ...


def copy_tree(src: Path, dest: Path) -> None:
    """Copy *src* into the (already created) *dest*, leaving out VCS metadata."""
    shutil.copytree(src, dest, dirs_exist_ok=True, ignore=shutil.ignore_patterns(".git"))


from skillsync.fetchers import dependency_cache, git, local  # noqa: E402

INSTALLERS: dict[SourceType, Installer] = {
    SourceType.GITHUB: git.install,
    SourceType.GITLAB: git.install,
    SourceType.GIT: git.install,
    SourceType.DEPENDENCY_CACHE: dependency_cache.install,
    SourceType.LOCAL: local.install,
}


def install_skill(name: str, entry: LockEntry, dest: Path, ctx: InstallContext) -> InstallOutcome:
    """Replace whatever is at *dest* with a fresh copy of *entry*'s source."""
    source_type = SourceType.parse(entry.source_type)
    installer = INSTALLERS.get(source_type) if source_type else None
    if installer is None:
        raise UnknownSourceType(f"Unknown source type: {entry.source_type}")
    if not paths.is_safe_skill_name(name) or dest.name != name:
        raise InstallError(f"Refusing to install {name!r} into {dest}")

    if dest.exists() or dest.is_symlink():
        if dest.is_dir() and not dest.is_symlink():
            shutil.rmtree(dest)
        else:
            dest.unlink()
    dest.mkdir(parents=True)
    try:
        return installer(name, entry, dest, ctx)
    except BaseException:
        shutil.rmtree(dest, ignore_errors=True)
        raise
