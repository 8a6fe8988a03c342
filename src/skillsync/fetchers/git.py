"""Reinstall a skill from a git repository (github, gitlab or plain git)."""

from __future__ import annotations

from pathlib import Path

from skillsync.core import sources
from skillsync.core.errors import SkillNotFoundInSource
from skillsync.core.models import LockEntry
from skillsync.fetchers import InstallContext, InstallOutcome, clone, copy_tree
from skillsync.services import discovery


def install(name: str, entry: LockEntry, dest: Path, ctx: InstallContext) -> InstallOutcome:
    """Clone the source, locate *name* inside it and copy just that skill."""
    url = sources.resolve(entry.source)
    result = clone.clone(url, entry.ref, timeout=ctx.timeout, cancel=ctx.cancel)
    try:
        skill = discovery.find(result.workspace, name)
        if skill is None:
            raise SkillNotFoundInSource(f'Skill "{name}" not found in repository {url}')
        copy_tree(skill.path, dest)
    finally:
        clone.cleanup(result.workspace)
    return InstallOutcome(resolved_revision=result.resolved_revision)
