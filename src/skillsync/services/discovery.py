"""Locate SKILL.md bundles inside a source tree."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from skillsync.core.frontmatter import extract_meta
from skillsync.core.models import DiscoveredSkill
from skillsync.core.paths import SKILL_MD

logger = logging.getLogger(__name__)

# Container directories conventionally holding one folder per skill.
CONTAINER_DIRS = (
    "skills",
    "skills/.curated",
    ".agents/skills",
    ".agent/skills",
    ".claude/skills",
)
_SKIP_DIRS = {".git", "node_modules"}


def discover(
    root: Path,
    *,
    name_filter: str | None = None,
    include_internal: bool = False,
    full_depth: bool = False,
) -> list[DiscoveredSkill]:
    """Return the skills found under *root*.

    By default only *root*, its direct children and the well-known container
    directories are scanned; ``full_depth`` searches the whole tree.
    """
    if full_depth:
        candidates: Iterable[Path] = _walk(root)
    elif (root / SKILL_MD).is_file():
        candidates = [root]
    else:
        candidates = _shallow_candidates(root)

    found: dict[str, DiscoveredSkill] = {}
    for skill_dir in candidates:
        skill = _load(skill_dir)
        if skill is None or skill.name in found:
            continue
        if skill.internal and not include_internal:
            continue
        if name_filter is not None and skill.name != name_filter:
            continue
        found[skill.name] = skill
    return list(found.values())


def find(root: Path, name: str) -> DiscoveredSkill | None:
    """Look *name* up with a shallow scan first, widening to the full tree."""
    for full_depth in (False, True):
        matches = discover(root, name_filter=name, full_depth=full_depth)
        if matches:
            return matches[0]
    return None


def _shallow_candidates(root: Path) -> Iterator[Path]:
    for base in (root, *(root / c for c in CONTAINER_DIRS)):
        if not base.is_dir():
            continue
        for child in sorted(base.iterdir()):
            if child.is_dir() and (child / SKILL_MD).is_file():
                yield child


def _walk(root: Path) -> Iterator[Path]:
    for skill_md in sorted(root.rglob(SKILL_MD)):
        rel_parts = skill_md.relative_to(root).parts
        if _SKIP_DIRS.intersection(rel_parts) or not skill_md.is_file():
            continue
        yield skill_md.parent


def _load(skill_dir: Path) -> DiscoveredSkill | None:
    try:
        meta = extract_meta(skill_dir)
    except (OSError, ValueError) as exc:
        logger.debug("Skipping %s: %s", skill_dir, exc)
        return None
    return DiscoveredSkill(
        name=meta.name or skill_dir.name,
        path=skill_dir,
        description=meta.description,
        internal=meta.internal,
    )
