"""CLI entry point — Click command group."""

from __future__ import annotations

import logging

import click

from skillsync import __version__


def _quick_start(root_name: str) -> str:
    lines = [
        "Quick start:",
        f"  {root_name} status",
        f"  {root_name} sync --dry-run",
        f"  {root_name} sync -y",
    ]
    return "\n".join(lines)


def _render_grouped_index(root: click.Command, root_name: str) -> str:
    if not isinstance(root, click.Group):
        return f"  {root_name}"

    groups: dict[str, list[str]] = {"Skills": [], "Configuration": []}

    for name in sorted(root.commands):
        cmd = root.commands[name]
        section = "Configuration" if name == "config" else "Skills"
        base = f"{root_name} {name}"
        groups[section].append(base)
        if isinstance(cmd, click.Group):
            groups[section].extend(f"{base} {child}" for child in sorted(cmd.commands))

    lines: list[str] = []
    for section, entries in groups.items():
        if not entries:
            continue
        lines.append(f"{section}:")
        lines.extend(f"  {entry}" for entry in entries)
    return "\n".join(lines)


def _help_with_index(base: str, ctx: click.Context) -> str:
    root_ctx = ctx.find_root()
    root_name = root_ctx.info_name or "skills"
    grouped = _render_grouped_index(root_ctx.command, root_name)
    return f"{base}\n\n{_quick_start(root_name)}\n\nCommand index:\n{grouped}"


class SkillsCommand(click.Command):
    """Click command that appends the command index to help output."""

    def get_help(self, ctx: click.Context) -> str:
        return _help_with_index(super().get_help(ctx), ctx)


class SkillsGroup(click.Group):
    """Click group that appends the command index to help output."""

    command_class = SkillsCommand
    group_class = type

    def get_help(self, ctx: click.Context) -> str:
        return _help_with_index(super().get_help(ctx), ctx)


def configure_logging(verbose: bool) -> None:
    from skillsync.repo import config

    level_name = "debug" if verbose else str(config.get("log_level"))
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


@click.group(cls=SkillsGroup)
@click.version_option(__version__, prog_name="skills")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """skills — keep installed agent skills in sync with skills-lock.json."""
    configure_logging(verbose)


# Register all sub-commands on import
from skillsync.cli import commands as _commands  # noqa: F401, E402
