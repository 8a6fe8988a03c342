import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from skillsync.core import paths


def make_skill(directory: Path, name: str, body: str = "Do the thing.\n", **frontmatter) -> Path:
    """Write a minimal SKILL.md package into *directory*."""
    directory.mkdir(parents=True, exist_ok=True)
    fields = {"name": name, "description": f"{name} skill", **frontmatter}
    header = "\n".join(f"{k}: {v}" for k, v in fields.items())
    (directory / paths.SKILL_MD).write_text(f"---\n{header}\n---\n\n{body}")
    return directory


def write_lock(root: Path, skills: dict, version: int = 3) -> Path:
    path = paths.lock_path(root)
    path.write_text(json.dumps({"version": version, "skills": skills}, indent=2))
    return path


@pytest.fixture
def runner():
    """Click CLI runner fixture."""
    return CliRunner()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """An empty project root."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def install_dir(project: Path) -> Path:
    return paths.skills_dir(project)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch):
    """Point the user config at a throwaway directory."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.delenv("SKILLS_TIMEOUT", raising=False)
    monkeypatch.delenv("SKILLS_LOG_LEVEL", raising=False)
    monkeypatch.delenv("GIT_TERMINAL_PROMPT", raising=False)
