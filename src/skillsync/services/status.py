"""Sync status detection — compare the lock file with what is on disk."""

from __future__ import annotations

import logging
from pathlib import Path

from skillsync.core import paths
from skillsync.core.hashing import compute_content_hash
from skillsync.core.models import (
    LockEntry,
    LockFile,
    SkillSyncInfo,
    SkillSyncStatus,
    SyncStatusResult,
)

logger = logging.getLogger(__name__)


def compute_status(name: str, entry: LockEntry, path: Path) -> SkillSyncInfo:
    """Classify one locked skill as missing, modified or up-to-date.

    A stray file where the skill directory should be counts as missing.
    """
    if not path.is_dir():
        return SkillSyncInfo(
            name=name,
            status=SkillSyncStatus.MISSING,
            entry=entry,
            expected_hash=entry.content_hash,
            path=path,
        )

    current = compute_content_hash(path)
    status = (
        SkillSyncStatus.UP_TO_DATE if current == entry.content_hash
        else SkillSyncStatus.MODIFIED
    )
    return SkillSyncInfo(
        name=name,
        status=status,
        entry=entry,
        current_hash=current,
        expected_hash=entry.content_hash,
        path=path,
    )


def detect_all(lock: LockFile, install_dir: Path) -> SyncStatusResult:
    """Classify every lock entry and list untracked skill directories."""
    result = SyncStatusResult()
    buckets = {
        SkillSyncStatus.MISSING: result.missing,
        SkillSyncStatus.MODIFIED: result.modified,
        SkillSyncStatus.UP_TO_DATE: result.up_to_date,
    }

    for name, entry in lock.skills.items():
        if not paths.is_safe_skill_name(name):
            logger.warning("Ignoring lock entry %r: not a plain directory name", name)
            continue
        info = compute_status(name, entry, paths.skill_path(install_dir, name))
        buckets[info.status].append(info)
        result.all.append(info)

    if install_dir.is_dir():
        for child in sorted(install_dir.iterdir()):
            if child.name in lock.skills or not child.is_dir():
                continue
            info = SkillSyncInfo(name=child.name, status=SkillSyncStatus.ORPHANED, path=child)
            result.orphaned.append(info)
            result.all.append(info)

    return result
