"""Terminal UI utilities — spinner and status rendering."""

from __future__ import annotations

import contextlib
import itertools
import sys
import threading
from collections.abc import Iterator

import click

from skillsync.core.models import SkillSyncStatus, SyncStatusResult

FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")

STATUS_MARKS = {
    SkillSyncStatus.MISSING: "✗",
    SkillSyncStatus.MODIFIED: "⚠",
    SkillSyncStatus.UP_TO_DATE: "✔",
    SkillSyncStatus.ORPHANED: "?",
}


class Spinner:
    """Inline stderr spinner whose label can change while it runs."""

    def __init__(self, label: str = "", interval: float = 0.08) -> None:
        self.label = label
        self.interval = interval
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def update(self, label: str) -> None:
        with self._lock:
            self.label = label

    def start(self) -> None:
        self._thread = threading.Thread(target=self._loop, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join()

    def _loop(self) -> None:
        for frame in itertools.cycle(FRAMES):
            if self._stop.is_set():
                break
            with self._lock:
                label = self.label
            if label:
                sys.stderr.write(f"\r{frame} {label}\033[K")
                sys.stderr.flush()
            self._stop.wait(self.interval)
        sys.stderr.write("\r\033[K")
        sys.stderr.flush()


@contextlib.contextmanager
def spinner(initial: str = "", *, enabled: bool | None = None) -> Iterator:
    """Yield a callable that replaces the spinner label.

    Nothing is drawn when stderr is not a terminal.
    """
    spin = Spinner(initial)
    if not (sys.stderr.isatty() if enabled is None else enabled):
        yield spin.update
        return
    spin.start()
    try:
        yield spin.update
    finally:
        spin.stop()


def echo_bucket(label: str, names: list[str], suffix: str) -> None:
    if not names:
        return
    click.echo(f"  {label}: {len(names)} skill(s) {suffix}")
    for name in names:
        click.echo(f"    - {name}")


def echo_snapshot(snapshot: SyncStatusResult, empty_message: str) -> None:
    if not snapshot.all:
        click.echo(empty_message)
        return
    for info in snapshot.all:
        click.echo(f"  {STATUS_MARKS[info.status]} {info.name} ({info.status.value})")
