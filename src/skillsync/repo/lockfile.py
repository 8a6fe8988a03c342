"""Repository for skills-lock.json read/write.

Files older than CURRENT_VERSION are discarded wholesale: earlier schemas
have no content hash, so every entry would read as modified forever.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from skillsync.core import paths
from skillsync.core.models import LockEntry, LockFile

logger = logging.getLogger(__name__)

CURRENT_VERSION = 3


def empty() -> LockFile:
    return LockFile(version=CURRENT_VERSION)


def load(root: Path) -> LockFile:
    """Read the lock file under *root*, or an empty one if absent or stale."""
    path = paths.lock_path(root)
    if not path.exists():
        return empty()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable lock file %s: %s", path, exc)
        return empty()

    if not isinstance(raw, dict):
        logger.warning("Ignoring lock file %s: top level is not an object", path)
        return empty()

    version = raw.get("version")
    if isinstance(version, bool) or not isinstance(version, int) or version < CURRENT_VERSION:
        logger.warning(
            "Discarding lock file %s with schema version %r (current is %d)",
            path, version, CURRENT_VERSION,
        )
        return empty()

    skills_raw = raw.get("skills", {})
    if not isinstance(skills_raw, dict):
        logger.warning("Ignoring lock file %s: 'skills' is not an object", path)
        return empty()

    skills: dict[str, LockEntry] = {}
    for name, data in skills_raw.items():
        if not paths.is_safe_skill_name(name):
            logger.warning("Skipping lock entry %r: not a plain directory name", name)
            continue
        if not isinstance(data, dict):
            logger.warning("Skipping lock entry %r: not an object", name)
            continue
        try:
            skills[name] = LockEntry.from_dict(data)
        except ValueError as exc:
            logger.warning("Skipping lock entry %r: %s", name, exc)

    return LockFile(version=version, skills=skills)


def dump(lock: LockFile) -> str:
    """Serialize a LockFile to its on-disk JSON text."""
    return json.dumps(lock.to_dict(), indent=2) + "\n"


def save(lock: LockFile, root: Path) -> None:
    """Atomically replace the lock file under *root*."""
    path = paths.lock_path(root)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(dump(lock))
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
