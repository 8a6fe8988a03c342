"""Data shapes for the lock file, sync snapshots and fetch results.

Lock file layout (skills-lock.json):
    {
      "version": 3,
      "skills": {
        "<name>": {"source": ..., "sourceType": ..., "contentHash": ...}
      }
    }
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


# ── Lock layer ──────────────────────────────────────────────────────


class SourceType(str, Enum):
    """Closed set of source kinds a lock entry can point at."""

    GITHUB = "github"
    GITLAB = "gitlab"
    GIT = "git"
    DEPENDENCY_CACHE = "dependency-cache"
    LOCAL = "local"

    @classmethod
    def parse(cls, value: str) -> SourceType | None:
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def is_git(self) -> bool:
        return self in (SourceType.GITHUB, SourceType.GITLAB, SourceType.GIT)


# JSON field name for every optional LockEntry attribute.
_OPTIONAL_FIELDS = {
    "declared_ref": "declaredRef",
    "resolved_ref": "resolvedRef",
    "resolved_revision": "resolvedRevision",
    "installed_at": "installedAt",
    "updated_at": "updatedAt",
}


@dataclass
class LockEntry:
    """One skill in skills-lock.json.

    ``source_type`` keeps the raw tag so an unknown kind survives a read and
    is rejected later by the install dispatch.
    """

    source: str
    source_type: str
    content_hash: str = ""
    declared_ref: str | None = None
    resolved_ref: str | None = None
    resolved_revision: str | None = None
    installed_at: str | None = None
    updated_at: str | None = None

    @property
    def ref(self) -> str | None:
        """The ref to check out on re-sync, recorded state before user intent."""
        return self.resolved_ref or self.declared_ref

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "source": self.source,
            "sourceType": self.source_type,
        }
        for attr, key in _OPTIONAL_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                payload[key] = value
        payload["contentHash"] = self.content_hash
        return payload

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LockEntry:
        source = data.get("source")
        source_type = data.get("sourceType")
        if not isinstance(source, str) or not isinstance(source_type, str):
            raise ValueError("lock entry needs string 'source' and 'sourceType'")
        kwargs = {
            attr: str(data[key])
            for attr, key in _OPTIONAL_FIELDS.items()
            if data.get(key) is not None
        }
        return cls(
            source=source,
            source_type=source_type,
            content_hash=str(data.get("contentHash", "")),
            **kwargs,
        )


@dataclass
class LockFile:
    version: int
    skills: dict[str, LockEntry] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "skills": {
                name: self.skills[name].to_dict() for name in sorted(self.skills)
            },
        }


# ── Sync layer ──────────────────────────────────────────────────────


class SkillSyncStatus(str, Enum):
    MISSING = "missing"
    MODIFIED = "modified"
    UP_TO_DATE = "up-to-date"
    ORPHANED = "orphaned"


@dataclass(frozen=True)
class SkillSyncInfo:
    """Status of one skill at detection time. Rebuilt on every pass."""

    name: str
    status: SkillSyncStatus
    entry: LockEntry | None = None
    current_hash: str | None = None
    expected_hash: str | None = None
    path: Path | None = None


@dataclass
class SyncStatusResult:
    missing: list[SkillSyncInfo] = field(default_factory=list)
    modified: list[SkillSyncInfo] = field(default_factory=list)
    up_to_date: list[SkillSyncInfo] = field(default_factory=list)
    orphaned: list[SkillSyncInfo] = field(default_factory=list)
    all: list[SkillSyncInfo] = field(default_factory=list)

    def get(self, name: str) -> SkillSyncInfo | None:
        """Return the lock-tracked status for *name*, ignoring orphans."""
        for info in self.all:
            if info.name == name and info.status is not SkillSyncStatus.ORPHANED:
                return info
        return None


@dataclass
class SyncOptions:
    skill_names: list[str] = field(default_factory=list)
    force: bool = False
    dry_run: bool = False
    global_: bool = False


@dataclass
class FailedSkill:
    name: str
    error: str


@dataclass
class SyncResult:
    """Summary of a sync_all run.

    Every selected skill lands in exactly one of installed / updated / failed
    (or up_to_date when nothing had to be done).
    """

    success: bool = True
    installed: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    up_to_date: list[str] = field(default_factory=list)
    failed: list[FailedSkill] = field(default_factory=list)
    orphaned: list[str] = field(default_factory=list)
    lock_error: str | None = None

    @property
    def changed(self) -> bool:
        return bool(self.installed or self.updated)


# ── Fetch layer ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class CloneResult:
    """A freshly cloned workspace, owned by the caller until cleaned up."""

    workspace: Path
    resolved_revision: str | None = None


@dataclass(frozen=True)
class DiscoveredSkill:
    name: str
    path: Path
    description: str = ""
    internal: bool = False


@dataclass
class SkillMeta:
    """Metadata extracted from SKILL.md YAML frontmatter."""

    name: str
    description: str
    internal: bool = False
