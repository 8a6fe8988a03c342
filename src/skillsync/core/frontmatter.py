"""SKILL.md frontmatter extraction."""

from __future__ import annotations

from pathlib import Path

from skillsync.core.models import SkillMeta
from skillsync.core.paths import SKILL_MD

_BLOCK_INDICATORS = {"|", ">", "|-", ">-", "|+", ">+"}
_TRUTHY = {"true", "yes", "on"}


def extract_meta(skill_dir: Path) -> SkillMeta:
    """Read name, description and the internal flag from SKILL.md frontmatter.

    Returns empty ``name`` when the frontmatter omits it; callers fall back
    to the directory name.
    """
    skill_md = skill_dir / SKILL_MD
    if not skill_md.exists():
        raise FileNotFoundError(f"{SKILL_MD} not found in {skill_dir}")

    fields = parse(skill_md.read_text(encoding="utf-8"))
    if fields is None:
        raise ValueError(f"No YAML frontmatter in {skill_md}")

    return SkillMeta(
        name=fields.get("name", ""),
        description=fields.get("description", ""),
        internal=_truthy(fields.get("internal") or fields.get("metadata.internal")),
    )


def parse(text: str) -> dict[str, str] | None:
    """Top-level ``key: value`` pairs of a ``---`` fenced header, or None.

    Block scalars are folded into one line. One level of nesting is kept
    under dotted keys (``metadata.internal``).
    """
    lines = text.replace("\r\n", "\n").split("\n")
    if not lines or lines[0].strip() != "---":
        return None
    try:
        end = next(i for i, line in enumerate(lines[1:], 1) if line.strip() == "---")
    except StopIteration:
        return None

    fields: dict[str, str] = {}
    key: str | None = None
    folding = False
    for line in lines[1:end]:
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        if line[0] in " \t":
            if key is None:
                continue
            if folding:
                fields[key] = f"{fields[key]} {line.strip()}".strip()
                continue
            child, sep, value = line.strip().partition(":")
            if sep:
                fields[f"{key}.{child.strip()}"] = _unquote(value.strip())
            continue
        head, sep, value = line.partition(":")
        if not sep:
            key = None
            continue
        key = head.strip()
        value = value.strip()
        folding = value in _BLOCK_INDICATORS
        fields[key] = "" if folding else _unquote(value)
    return fields


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def _truthy(value: str | None) -> bool:
    return (value or "").lower() in _TRUTHY
