"""Deterministic content hash of a skill directory."""

from __future__ import annotations

import hashlib
from pathlib import Path

_SKIP_DIRS = {".git"}


def compute_content_hash(directory: Path) -> str:
    """SHA-256 over relative paths and file bytes, in sorted path order."""
    if not directory.exists():
        raise FileNotFoundError(f"Cannot hash missing directory: {directory}")
    if not directory.is_dir():
        raise NotADirectoryError(f"Cannot hash non-directory: {directory}")

    files = [
        path
        for path in directory.rglob("*")
        if path.is_file() and not _SKIP_DIRS.intersection(path.relative_to(directory).parts)
    ]
    hasher = hashlib.sha256()
    for path in sorted(files, key=lambda p: p.relative_to(directory).as_posix()):
        data = path.read_bytes()
        rel = path.relative_to(directory).as_posix()
        hasher.update(f"{rel}\0{len(data)}\0".encode())
        hasher.update(data)
    return hasher.hexdigest()
