"""Clone remote skill sources into throwaway workspaces.

A shallow clone is used when no ref is requested; with a ref the full
history is fetched because the ref may not be reachable from a depth-1
clone. The caller owns the returned workspace and must hand it back to
``cleanup``.
"""

from __future__ import annotations

import contextlib
import logging
import os
import shutil
import subprocess
import tempfile
import threading
from collections.abc import Iterator
from pathlib import Path

from skillsync.core import sources
from skillsync.core.errors import (
    CheckoutError,
    CloneCancelled,
    FetchError,
    FetchErrorCategory,
    UnsafeCleanupError,
)
from skillsync.core.models import CloneResult

logger = logging.getLogger(__name__)

DEFAULT_CLONE_TIMEOUT = 60.0
WORKSPACE_PREFIX = "skills-"

_TIMEOUT_MARKERS = ("block timeout", "operation timed out", "timed out after")
_AUTH_MARKERS = (
    "authentication failed",
    "could not read username",
    "permission denied",
    # GitHub answers 404 for private repos the caller cannot see.
    "repository not found",
)
_UNREACHABLE_MARKERS = (
    "could not resolve host",
    "no route to host",
    "connection timed out",
    "failed to connect",
    "connection refused",
    "name or service not known",
    "unable to access",
)

_HINTS = {
    FetchErrorCategory.TIMEOUT: (
        "  This often happens with private repos that require authentication.\n"
        "  Ensure you have access and your SSH keys or credentials are configured:\n"
        "  - For SSH: ssh-add -l (to check loaded keys)\n"
        "  - For HTTPS: gh auth status (if using GitHub CLI)\n"
        "  - On a slow network, raise the limit: skills config set timeout 120"
    ),
    FetchErrorCategory.AUTH: (
        "  - For private repos, ensure you have access\n"
        "  - For SSH: Check your keys with 'ssh -T git@github.com'\n"
        "  - For HTTPS: Run 'gh auth login' or configure git credentials"
    ),
    FetchErrorCategory.UNREACHABLE: (
        "  - Verify the repository URL is correct\n"
        "  - Check network connectivity and VPN/proxy settings\n"
        "  - Confirm the Git host is accessible from your environment"
    ),
    FetchErrorCategory.GENERIC: (
        "  - Verify the repository URL is correct\n"
        "  - Check that git is installed and on PATH\n"
        "  - Retry with --verbose for the full git output"
    ),
}


class _GitFailed(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# ── Public API ──────────────────────────────────────────────────────


def clone(
    url: str,
    ref: str | None = None,
    *,
    timeout: float | None = None,
    cancel: threading.Event | None = None,
) -> CloneResult:
    """Clone *url* into a fresh temp workspace, optionally checking out *ref*.

    Raises FetchError (or its CheckoutError / CloneCancelled subclasses).
    The workspace is removed before any error leaves this function.
    """
    resolved_url = sources.resolve(url)
    timeout = timeout or DEFAULT_CLONE_TIMEOUT
    workspace = Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX))

    try:
        with terminal_prompt_disabled():
            _check_cancel(cancel, resolved_url)
            clone_args = ["git", "clone", "--quiet"]
            if not ref:
                clone_args += ["--depth", "1"]
            try:
                _run([*clone_args, resolved_url, str(workspace)], timeout=timeout)
            except subprocess.TimeoutExpired as exc:
                raise _classified(resolved_url, f"Clone timed out after {timeout:g}s", timeout=True) from exc
            except _GitFailed as exc:
                raise _classified(resolved_url, exc.message) from exc

            if ref:
                _check_cancel(cancel, resolved_url)
                try:
                    _run(["git", "-C", str(workspace), "checkout", "--quiet", ref], timeout=timeout)
                except subprocess.TimeoutExpired as exc:
                    raise CheckoutError(resolved_url, ref, "checkout timed out") from exc
                except _GitFailed as exc:
                    raise CheckoutError(resolved_url, ref, exc.message) from exc

            _check_cancel(cancel, resolved_url)
            revision = capture_revision(workspace, timeout=timeout)
    except BaseException:
        shutil.rmtree(workspace, ignore_errors=True)
        raise

    logger.debug("Cloned %s into %s (revision %s)", resolved_url, workspace, revision)
    return CloneResult(workspace=workspace, resolved_revision=revision)


def capture_revision(workspace: Path, *, timeout: float | None = None) -> str | None:
    """Best-effort ``git rev-parse HEAD``; None when it cannot be determined."""
    try:
        out = _run(
            ["git", "-C", str(workspace), "rev-parse", "HEAD"],
            timeout=timeout or DEFAULT_CLONE_TIMEOUT,
        )
    except (_GitFailed, subprocess.TimeoutExpired, OSError) as exc:
        logger.debug("Could not capture revision in %s: %s", workspace, exc)
        return None
    return out.strip() or None


def cleanup(workspace: Path | str) -> None:
    """Delete a clone workspace. Refuses anything outside the temp root."""
    target = Path(workspace).resolve()
    temp_root = Path(tempfile.gettempdir()).resolve()
    if target == temp_root or temp_root not in target.parents:
        raise UnsafeCleanupError(
            f"Attempted to clean up directory outside of temp directory: {target}"
        )
    if target.exists():
        shutil.rmtree(target)


def classify(message: str) -> FetchErrorCategory:
    """Map git's failure text onto an actionable category."""
    lowered = message.lower()
    if any(marker in lowered for marker in _TIMEOUT_MARKERS):
        return FetchErrorCategory.TIMEOUT
    if any(marker in lowered for marker in _AUTH_MARKERS):
        return FetchErrorCategory.AUTH
    if any(marker in lowered for marker in _UNREACHABLE_MARKERS):
        return FetchErrorCategory.UNREACHABLE
    return FetchErrorCategory.GENERIC


@contextlib.contextmanager
def terminal_prompt_disabled() -> Iterator[None]:
    """Set GIT_TERMINAL_PROMPT=0 for the block, restoring the prior state."""
    previous = os.environ.get("GIT_TERMINAL_PROMPT")
    os.environ["GIT_TERMINAL_PROMPT"] = "0"
    try:
        yield
    finally:
        if previous is None:
            os.environ.pop("GIT_TERMINAL_PROMPT", None)
        else:
            os.environ["GIT_TERMINAL_PROMPT"] = previous


# ── Private helpers ─────────────────────────────────────────────────


def _run(args: list[str], *, timeout: float) -> str:
    """Run git and return stdout; raise _GitFailed with stderr on non-zero exit."""
    try:
        r = subprocess.run(args, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError as exc:
        raise _GitFailed(f"git executable not found: {exc}") from exc
    if r.returncode != 0:
        raise _GitFailed(r.stderr.strip() or r.stdout.strip() or f"exit status {r.returncode}")
    return r.stdout


def _classified(url: str, message: str, *, timeout: bool = False) -> FetchError:
    category = FetchErrorCategory.TIMEOUT if timeout else classify(message)
    if category is FetchErrorCategory.TIMEOUT:
        text = message if timeout else f"Clone timed out for {url}: {message}"
    elif category is FetchErrorCategory.AUTH:
        text = f"Authentication failed for {url}."
    elif category is FetchErrorCategory.UNREACHABLE:
        text = f"Repository is unreachable: {url}."
    else:
        text = f"Failed to clone {url}: {message}"
    return FetchError(text, url, category, hint=_HINTS[category])


def _check_cancel(cancel: threading.Event | None, url: str) -> None:
    if cancel is not None and cancel.is_set():
        raise CloneCancelled(url)
