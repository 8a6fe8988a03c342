"""CLI commands — sync, status, config."""

from __future__ import annotations

from pathlib import Path

import click

from skillsync.cli import cli
from skillsync.cli.ui import echo_bucket, echo_snapshot, spinner
from skillsync.core import paths
from skillsync.core.models import SyncOptions

_path_option = click.option(
    "--path", "root", default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
_global_option = click.option(
    "-g", "--global", "global_", is_flag=True,
    help="Use the global skills directory instead of the project one.",
)


# ── sync ────────────────────────────────────────────────────────────


@cli.command()
@click.argument("skill_names", nargs=-1, metavar="[SKILLS]...")
@click.option("-d", "--dry-run", is_flag=True, help="Preview changes without applying them.")
@click.option("-f", "--force", is_flag=True, help="Force reinstallation of all skills.")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation prompts.")
@_global_option
@_path_option
def sync(
    skill_names: tuple[str, ...],
    dry_run: bool,
    force: bool,
    yes: bool,
    global_: bool,
    root: str,
) -> None:
    """Synchronize local skills with skills-lock.json.

    Reinstalls skills that are missing or whose content no longer matches
    the recorded hash. SKILLS limits the run to the named skills.

    \b
      skills sync                 sync all skills
      skills sync --dry-run       preview changes
      skills sync --force         force reinstall all
      skills sync skill1 skill2   sync specific skills
    """
    from skillsync.repo import config, lockfile
    from skillsync.services import status as status_service
    from skillsync.services import sync as sync_service
    from skillsync.services.sync import SkillSyncEvent

    root_path = paths.resolve_root(Path(root))
    options = SyncOptions(
        skill_names=list(skill_names), force=force, dry_run=dry_run, global_=global_,
    )
    install_dir = paths.skills_dir(root_path, global_=global_)

    try:
        with spinner("Checking skill status…"):
            lock = lockfile.load(root_path)
            snapshot = status_service.detect_all(lock, install_dir)
    except OSError as exc:
        raise click.ClickException(f"Failed to check skill status: {exc}") from exc

    selected = set(skill_names)
    missing, modified, up_to_date = (
        [i.name for i in bucket if not selected or i.name in selected]
        for bucket in (snapshot.missing, snapshot.modified, snapshot.up_to_date)
    )
    unknown = [name for name in skill_names if name not in lock.skills]

    click.echo("Sync status:")
    echo_bucket("Missing", missing, "need to be installed")
    echo_bucket("Modified", modified, "need to be updated")
    if up_to_date:
        note = " (will be reinstalled due to --force)" if force else ""
        click.echo(f"  Up to date: {len(up_to_date)} skill(s){note}")
    echo_bucket("Orphaned", [i.name for i in snapshot.orphaned], "not in lock file")
    echo_bucket("Unknown", unknown, "not found in lock file")

    total = len(missing) + len(modified) + (len(up_to_date) if force else 0)
    if not total:
        if unknown:
            raise SystemExit(1)
        click.echo("✔ All skills are up to date")
        return

    if dry_run:
        click.echo("Dry run mode - no changes will be made")
        click.echo(f"  Would install: {len(missing)} skill(s)")
        click.echo(f"  Would update: {total - len(missing)} skill(s)")
        if unknown:
            raise SystemExit(1)
        return

    if not yes and not click.confirm(f"Proceed with syncing {total} skill(s)?", default=True):
        click.echo("Sync cancelled")
        return

    with spinner("Synchronizing skills…") as status:
        def _on_event(ev: SkillSyncEvent) -> None:
            if ev.action == "installing":
                status(f"{ev.name} ({ev.detail})…")

        result = sync_service.sync_all(
            root_path,
            options,
            install_dir=install_dir,
            on_event=_on_event,
            timeout=float(config.get("timeout")),
        )

    if result.installed:
        click.echo(f"✔ Installed: {len(result.installed)} skill(s)")
        for name in result.installed:
            click.echo(f"  - {name}")
    if result.updated:
        click.echo(f"✔ Updated: {len(result.updated)} skill(s)")
        for name in result.updated:
            click.echo(f"  - {name}")
    if result.up_to_date:
        click.echo(f"✔ Up to date: {len(result.up_to_date)} skill(s)")
    if result.failed:
        click.echo(f"✗ Failed: {len(result.failed)} skill(s)")
        for failure in result.failed:
            click.echo(f"  - {failure.name}: {failure.error}")
    if result.orphaned:
        click.echo(f"Orphaned: {len(result.orphaned)} skill(s) (not in lock file)")
    if result.lock_error:
        click.echo(f"⚠ Could not update {paths.LOCK_FILENAME}: {result.lock_error}", err=True)

    if not result.success:
        raise SystemExit(1)


# ── status ──────────────────────────────────────────────────────────


@cli.command()
@_global_option
@_path_option
def status(global_: bool, root: str) -> None:
    """Show which locked skills are missing, modified or up to date."""
    from skillsync.repo import lockfile
    from skillsync.services import status as status_service

    root_path = paths.resolve_root(Path(root))
    try:
        lock = lockfile.load(root_path)
        snapshot = status_service.detect_all(lock, paths.skills_dir(root_path, global_=global_))
    except OSError as exc:
        raise click.ClickException(f"Failed to check skill status: {exc}") from exc
    echo_snapshot(snapshot, f"No skills in {paths.LOCK_FILENAME}")


# ── config ──────────────────────────────────────────────────────────


@cli.group("config")
def config_group() -> None:
    """Read and write user configuration."""


@config_group.command("list")
def config_list() -> None:
    """Show every setting with where its value comes from."""
    from skillsync.repo import config

    for key, item in config.get_all().items():
        click.echo(f"{key} = {config.format_value(item.value)} ({item.source})")


@config_group.command("get")
@click.argument("key")
def config_get(key: str) -> None:
    """Print the effective value of KEY."""
    from skillsync.repo import config

    if not config.is_valid_key(key):
        raise click.ClickException(_unknown_key(key))
    click.echo(config.format_value(config.get(key)))


@config_group.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Persist VALUE under KEY in the config file."""
    from skillsync.repo import config

    if not config.is_valid_key(key):
        raise click.ClickException(_unknown_key(key))
    try:
        parsed = config.set_value(key, value)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"✔ Set {key} = {config.format_value(parsed)}")
    env_var = config.ENV_VARS[key]
    if config.get_value(key).source == "env":
        click.echo(f"  (overridden by ${env_var} in this environment)")


@config_group.command("unset")
@click.argument("key")
def config_unset(key: str) -> None:
    """Remove KEY from the config file."""
    from skillsync.repo import config

    if not config.is_valid_key(key):
        raise click.ClickException(_unknown_key(key))
    if config.unset_value(key):
        click.echo(f"✔ Unset {key}")
    else:
        click.echo(f"{key} was not set")


@config_group.command("path")
def config_path() -> None:
    """Print the config file location."""
    from skillsync.repo import config

    click.echo(str(config.config_path()))


# ── helpers ─────────────────────────────────────────────────────────


def _unknown_key(key: str) -> str:
    from skillsync.repo import config

    return f"Unknown config key: {key}. Valid keys: {', '.join(config.DEFAULTS)}"
