import json
import shutil
import tempfile
import threading
from pathlib import Path
from unittest.mock import patch

import pytest

from skillsync.core import paths
from skillsync.core.errors import FetchError, FetchErrorCategory
from skillsync.core.hashing import compute_content_hash
from skillsync.core.models import CloneResult, LockEntry, SyncOptions
from skillsync.repo import lockfile
from skillsync.services.status import detect_all
from skillsync.services.sync import INVALID_NAME, NOT_IN_LOCK, sync_all

from conftest import make_skill, write_lock


def _local(source: Path, content_hash: str = "") -> dict:
    return {"source": str(source), "sourceType": "local", "contentHash": content_hash}


def _snapshot(root: Path) -> dict[str, bytes]:
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*")) if p.is_file()
    }


@pytest.fixture
def sources(tmp_path: Path) -> Path:
    src = tmp_path / "sources"
    for name in ("a", "b", "c"):
        make_skill(src / name, name)
    return src


class FakeClone:
    """Replaces clone.clone with a workspace built from a local template."""

    def __init__(self, template: Path, fail_urls: set[str] = frozenset()):
        self.template = template
        self.fail_urls = fail_urls
        self.calls: list[tuple[str, str | None]] = []
        self.workspaces: list[Path] = []

    def __call__(self, url, ref=None, *, timeout=None, cancel=None):
        self.calls.append((url, ref))
        if url in self.fail_urls:
            raise FetchError(f"Authentication failed for {url}.", url, FetchErrorCategory.AUTH)
        workspace = Path(tempfile.mkdtemp(prefix="skills-"))
        shutil.copytree(self.template, workspace, dirs_exist_ok=True)
        self.workspaces.append(workspace)
        return CloneResult(workspace=workspace, resolved_revision="cafebabe")


def test_installs_missing_local_skills_and_writes_hashes(project, install_dir, sources):
    write_lock(project, {name: _local(sources / name, "H0") for name in ("a", "b")})

    result = sync_all(project)

    assert result.success
    assert sorted(result.installed) == ["a", "b"]
    assert result.updated == [] and result.failed == []
    lock = lockfile.load(project)
    for name in ("a", "b"):
        assert (install_dir / name / "SKILL.md").exists()
        assert lock.skills[name].content_hash == compute_content_hash(install_dir / name)
        assert lock.skills[name].installed_at
        assert lock.skills[name].updated_at


def test_second_run_is_a_no_op(project, install_dir, sources):
    write_lock(project, {name: _local(sources / name) for name in ("a", "b", "c")})
    sync_all(project)
    lock_text = paths.lock_path(project).read_text()

    again = sync_all(project)

    assert again.installed == [] and again.updated == [] and again.failed == []
    assert sorted(again.up_to_date) == ["a", "b", "c"]
    assert paths.lock_path(project).read_text() == lock_text


def test_modified_skill_is_updated(project, install_dir, sources):
    write_lock(project, {"a": _local(sources / "a")})
    sync_all(project)
    (install_dir / "a" / "SKILL.md").write_text("local edits")

    result = sync_all(project)

    assert result.updated == ["a"]
    assert "local edits" not in (install_dir / "a" / "SKILL.md").read_text()


def test_force_reinstalls_up_to_date_skills(project, sources):
    write_lock(project, {"a": _local(sources / "a")})
    sync_all(project)

    result = sync_all(project, SyncOptions(force=True))

    assert result.updated == ["a"]
    assert result.up_to_date == []


def test_dry_run_changes_nothing(project, install_dir, sources):
    write_lock(project, {
        "a": _local(sources / "a"),
        "b": _local(sources / "b", "stale"),
    })
    make_skill(install_dir / "b", "b", body="drifted\n")
    make_skill(install_dir / "orphan", "orphan")
    before = _snapshot(project)

    result = sync_all(project, SyncOptions(dry_run=True))

    assert result.installed == ["a"]
    assert result.updated == ["b"]
    assert result.orphaned == ["orphan"]
    assert _snapshot(project) == before


def test_unknown_names_fail_without_blocking_others(project, sources):
    write_lock(project, {"a": _local(sources / "a")})

    result = sync_all(project, SyncOptions(skill_names=["a", "ghost"]))

    assert result.installed == ["a"]
    assert [(f.name, f.error) for f in result.failed] == [("ghost", NOT_IN_LOCK)]
    assert not result.success


def test_only_selected_skills_are_synced(project, install_dir, sources):
    write_lock(project, {name: _local(sources / name) for name in ("a", "b")})

    result = sync_all(project, SyncOptions(skill_names=["b"]))

    assert result.installed == ["b"]
    assert not (install_dir / "a").exists()


def test_one_failure_does_not_abort_the_rest(project, install_dir, sources):
    write_lock(project, {
        "a": _local(sources / "a", "H0"),
        "broken": _local(sources / "does-not-exist", "H0"),
        "c": _local(sources / "c", "H0"),
    })

    result = sync_all(project)

    assert sorted(result.installed) == ["a", "c"]
    assert [f.name for f in result.failed] == ["broken"]
    assert "Cannot find skill at local path" in result.failed[0].error
    assert not result.success
    lock = lockfile.load(project)
    assert lock.skills["broken"].content_hash == "H0"
    assert lock.skills["a"].content_hash == compute_content_hash(install_dir / "a")
    assert lock.skills["c"].content_hash == compute_content_hash(install_dir / "c")


def test_git_skill_is_installed_from_clone(project, install_dir, tmp_path):
    template = tmp_path / "repo"
    make_skill(template / "skills" / "a", "a")
    make_skill(template / "skills" / "other", "other")
    (template / ".git").mkdir()
    write_lock(project, {
        "a": {"source": "octo/repo", "sourceType": "github", "contentHash": "H1"},
    })
    assert [i.name for i in detect_all(lockfile.load(project), install_dir).missing] == ["a"]
    fake = FakeClone(template)

    with patch("skillsync.fetchers.clone.clone", fake):
        result = sync_all(project)

    assert result.installed == ["a"]
    assert fake.calls == [("https://github.com/octo/repo.git", None)]
    assert not (install_dir / "other").exists()
    assert not (install_dir / "a" / ".git").exists()
    assert all(not w.exists() for w in fake.workspaces)
    entry = lockfile.load(project).skills["a"]
    assert entry.content_hash == compute_content_hash(install_dir / "a")
    assert entry.resolved_revision == "cafebabe"


def test_git_clone_uses_recorded_ref(project, tmp_path):
    template = tmp_path / "repo"
    make_skill(template, "a")
    write_lock(project, {
        "a": {
            "source": "https://gitlab.com/o/r.git", "sourceType": "gitlab",
            "declaredRef": "main", "resolvedRef": "v2", "contentHash": "H",
        },
    })
    fake = FakeClone(template)

    with patch("skillsync.fetchers.clone.clone", fake):
        sync_all(project)

    assert fake.calls == [("https://gitlab.com/o/r.git", "v2")]


def test_git_fetch_failure_is_isolated(project, install_dir, tmp_path):
    template = tmp_path / "repo"
    for name in ("a", "b", "c"):
        make_skill(template / "skills" / name, name)
    write_lock(project, {
        "a": {"source": "octo/one", "sourceType": "github", "contentHash": "H"},
        "b": {"source": "octo/private", "sourceType": "github", "contentHash": "H"},
        "c": {"source": "octo/three", "sourceType": "github", "contentHash": "H"},
    })
    make_skill(install_dir / "c", "c", body="drifted\n")
    fake = FakeClone(template, fail_urls={"https://github.com/octo/private.git"})

    with patch("skillsync.fetchers.clone.clone", fake):
        result = sync_all(project)

    assert result.installed == ["a"]
    assert result.updated == ["c"]
    assert [f.name for f in result.failed] == ["b"]
    assert "Authentication failed" in result.failed[0].error
    lock = lockfile.load(project)
    assert lock.skills["b"].content_hash == "H"
    assert lock.skills["a"].content_hash != "H"
    assert lock.skills["c"].content_hash != "H"


def test_skill_missing_from_repository_fails(project, tmp_path):
    template = tmp_path / "repo"
    make_skill(template / "skills" / "other", "other")
    write_lock(project, {"a": {"source": "octo/repo", "sourceType": "git", "contentHash": "H"}})
    fake = FakeClone(template)

    with patch("skillsync.fetchers.clone.clone", fake):
        result = sync_all(project)

    assert 'Skill "a" not found in repository' in result.failed[0].error
    assert all(not w.exists() for w in fake.workspaces)


def test_dependency_cache_skill(project, install_dir):
    make_skill(paths.dependency_cache_path(project, "@acme/tools", "lint"), "lint")
    write_lock(project, {
        "lint": {"source": "@acme/tools", "sourceType": "dependency-cache", "contentHash": "H"},
        "gone": {"source": "@acme/missing", "sourceType": "dependency-cache", "contentHash": "H"},
    })

    result = sync_all(project)

    assert result.installed == ["lint"]
    assert (install_dir / "lint" / "SKILL.md").exists()
    assert [f.name for f in result.failed] == ["gone"]


def test_unknown_source_type_is_rejected(project):
    write_lock(project, {"a": {"source": "x", "sourceType": "svn", "contentHash": "H"}})

    result = sync_all(project)

    assert [(f.name, f.error) for f in result.failed] == [("a", "Unknown source type: svn")]
    assert not paths.lock_path(project).read_text().count("updatedAt")


def test_hash_failure_keeps_install(project, install_dir, sources):
    write_lock(project, {"a": _local(sources / "a", "H0")})

    with patch("skillsync.services.sync.compute_content_hash", side_effect=OSError("boom")):
        result = sync_all(project)

    assert result.installed == ["a"]
    assert result.success
    assert (install_dir / "a").exists()
    assert lockfile.load(project).skills["a"].content_hash == "H0"


def test_lock_write_failure_marks_failure(project, install_dir, sources):
    write_lock(project, {"a": _local(sources / "a")})

    with patch("skillsync.services.sync.lockfile.save", side_effect=OSError("read-only")):
        result = sync_all(project)

    assert result.installed == ["a"]
    assert result.lock_error == "read-only"
    assert not result.success
    assert (install_dir / "a").exists()


def test_cancelled_sync_records_remaining_as_failed(project, install_dir, sources):
    write_lock(project, {name: _local(sources / name) for name in ("a", "b")})
    cancel = threading.Event()
    cancel.set()

    result = sync_all(project, cancel=cancel)

    assert sorted(f.name for f in result.failed) == ["a", "b"]
    assert not install_dir.exists() or not any(install_dir.iterdir())


def test_events_are_reported(project, sources):
    write_lock(project, {"a": _local(sources / "a")})
    events = []

    sync_all(project, on_event=events.append)

    assert [(e.name, e.action) for e in events] == [("a", "installing"), ("a", "installed")]


def test_lock_json_shape_is_preserved(project, sources):
    write_lock(project, {"a": _local(sources / "a")})
    sync_all(project)
    data = json.loads(paths.lock_path(project).read_text())
    assert data["version"] == 3
    assert set(data["skills"]["a"]) >= {"source", "sourceType", "contentHash"}


def test_traversing_lock_key_never_touches_outside_paths(project, install_dir, sources):
    keep = project / "src" / "keep.py"
    keep.parent.mkdir()
    keep.write_text("x = 1\n")
    install_dir.mkdir(parents=True)
    write_lock(project, {"../../src": _local(sources / "a"), "a": _local(sources / "a")})

    result = sync_all(project)

    assert keep.read_text() == "x = 1\n"
    assert result.installed == ["a"]
    assert result.success


def test_unsafe_names_in_a_passed_lock_are_failed(project, install_dir, sources):
    keep = project / "src" / "keep.py"
    keep.parent.mkdir()
    keep.write_text("x = 1\n")
    install_dir.mkdir(parents=True)
    lock = lockfile.empty()
    lock.skills["../../src"] = LockEntry(source=str(sources / "a"), source_type="local", content_hash="")

    result = sync_all(project, lock=lock)

    assert keep.read_text() == "x = 1\n"
    assert [f.name for f in result.failed] == ["../../src"]
    assert result.failed[0].error == INVALID_NAME
    assert not result.success
