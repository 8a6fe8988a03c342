"""Path constants and root-resolution logic."""

from __future__ import annotations

from pathlib import Path

LOCK_FILENAME = "skills-lock.json"
AGENTS_DIR = ".agents"
SKILLS_SUBDIR = "skills"
SKILL_MD = "SKILL.md"

# Dependency-cache layout: <root>/<cache>/<package>/<manifest dir>/<skill>
DEPENDENCY_CACHE_DIR = "node_modules"
BUNDLE_MANIFEST_DIR = Path(".agent") / "skills"


def resolve_root(start: Path | None = None) -> Path:
    """Walk up from *start* to locate an existing skills-lock.json, else return *start*."""
    start = start or Path.cwd()
    for parent in [start, *start.parents]:
        if (parent / LOCK_FILENAME).exists():
            return parent
    return start


def skills_dir(root: Path, *, global_: bool = False) -> Path:
    """Canonical install directory, project-level or in the user's home."""
    base = Path.home() if global_ else root
    return base / AGENTS_DIR / SKILLS_SUBDIR


def lock_path(root: Path) -> Path:
    return root / LOCK_FILENAME


def dependency_cache_path(root: Path, package: str, name: str) -> Path:
    return root / DEPENDENCY_CACHE_DIR / package / BUNDLE_MANIFEST_DIR / name


def is_safe_skill_name(name: str) -> bool:
    """True when *name* is a single plain path component."""
    return (
        bool(name)
        and name not in {".", ".."}
        and "/" not in name
        and "\\" not in name
        and "\0" not in name
    )


def skill_path(install_dir: Path, name: str) -> Path:
    """``install_dir / name``, refusing names that would leave *install_dir*."""
    if not is_safe_skill_name(name):
        raise ValueError(f"Invalid skill name: {name!r}")
    return install_dir / name
