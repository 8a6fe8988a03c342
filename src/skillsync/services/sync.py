"""Sync service — reinstall locked skills that are missing or drifted.

Runs one skill at a time. A failing skill is recorded and the loop moves on;
the lock file is written once at the end, and only if something changed.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path

from skillsync.core import paths
from skillsync.core.errors import FetchError, InstallError
from skillsync.core.hashing import compute_content_hash
from skillsync.core.models import (
    FailedSkill,
    LockEntry,
    LockFile,
    SkillSyncStatus,
    SyncOptions,
    SyncResult,
)
from skillsync.fetchers import InstallContext, InstallOutcome, install_skill
from skillsync.repo import lockfile
from skillsync.services.status import detect_all

logger = logging.getLogger(__name__)

NOT_IN_LOCK = "Skill not found in lock file"
INVALID_NAME = "Invalid skill name: must be a single directory name"
CANCELLED = "sync cancelled"


@dataclass
class SkillSyncEvent:
    """Progress report for a single skill during sync."""

    name: str
    action: str  # "installing" | "installed" | "updated" | "failed"
    detail: str = ""
    elapsed_ms: float = 0


def sync_all(
    root: Path,
    options: SyncOptions | None = None,
    *,
    lock: LockFile | None = None,
    install_dir: Path | None = None,
    on_event: Callable[[SkillSyncEvent], None] | None = None,
    cancel: threading.Event | None = None,
    timeout: float | None = None,
) -> SyncResult:
    """Reconcile the install directory with skills-lock.json under *root*."""
    options = options or SyncOptions()
    emit = on_event or (lambda _e: None)
    lock = lock if lock is not None else lockfile.load(root)
    install_dir = install_dir or paths.skills_dir(root, global_=options.global_)
    result = SyncResult()

    working: list[tuple[str, LockEntry]] = []
    if options.skill_names:
        for name in dict.fromkeys(options.skill_names):
            entry = lock.skills.get(name)
            if entry is None:
                result.failed.append(FailedSkill(name, NOT_IN_LOCK))
                continue
            working.append((name, entry))
    else:
        working = list(lock.skills.items())

    result.failed.extend(
        FailedSkill(name, INVALID_NAME) for name, _ in working
        if not paths.is_safe_skill_name(name)
    )
    working = [(name, entry) for name, entry in working if paths.is_safe_skill_name(name)]

    snapshot = detect_all(lock, install_dir)
    result.orphaned = [info.name for info in snapshot.orphaned]

    # (name, entry, is_new): missing skills are installs, the rest updates
    pending: list[tuple[str, LockEntry, bool]] = []
    for name, entry in working:
        info = snapshot.get(name)
        status = info.status if info else SkillSyncStatus.MISSING
        if status is SkillSyncStatus.UP_TO_DATE and not options.force:
            result.up_to_date.append(name)
            continue
        pending.append((name, entry, status is SkillSyncStatus.MISSING))

    if options.dry_run:
        for name, _entry, is_new in pending:
            (result.installed if is_new else result.updated).append(name)
        return _finish(result)

    ctx = InstallContext(root=root, timeout=timeout, cancel=cancel)
    for name, entry, is_new in pending:
        if cancel is not None and cancel.is_set():
            result.failed.append(FailedSkill(name, CANCELLED))
            emit(SkillSyncEvent(name, "failed", CANCELLED))
            continue

        emit(SkillSyncEvent(name, "installing", entry.source_type))
        t0 = time.monotonic()
        dest = paths.skill_path(install_dir, name)
        try:
            outcome = install_skill(name, entry, dest, ctx)
        except (FetchError, InstallError, OSError) as exc:
            dt = (time.monotonic() - t0) * 1000
            result.failed.append(FailedSkill(name, str(exc)))
            emit(SkillSyncEvent(name, "failed", str(exc), dt))
            continue

        dt = (time.monotonic() - t0) * 1000
        (result.installed if is_new else result.updated).append(name)
        emit(SkillSyncEvent(name, "installed" if is_new else "updated", elapsed_ms=dt))

        new_hash = _recompute_hash(name, dest)
        if new_hash is not None:
            lock.skills[name] = _refreshed_entry(entry, new_hash, outcome)

    if result.changed:
        try:
            lockfile.save(lock, root)
        except OSError as exc:
            logger.warning("Could not update lock file: %s", exc)
            result.lock_error = str(exc)

    return _finish(result)


# ── Private helpers ─────────────────────────────────────────────────


def _recompute_hash(name: str, dest: Path) -> str | None:
    """Hash the freshly installed skill; None (and a warning) on failure."""
    try:
        return compute_content_hash(dest)
    except OSError as exc:
        logger.warning("Could not update hash for %s: %s", name, exc)
        return None


def _refreshed_entry(entry: LockEntry, content_hash: str, outcome: InstallOutcome) -> LockEntry:
    now = _now_utc()
    return replace(
        entry,
        content_hash=content_hash,
        resolved_revision=outcome.resolved_revision or entry.resolved_revision,
        installed_at=entry.installed_at or now,
        updated_at=now,
    )


def _finish(result: SyncResult) -> SyncResult:
    result.success = not result.failed and result.lock_error is None
    return result


def _now_utc() -> str:
    return datetime.now(timezone.utc).isoformat()
