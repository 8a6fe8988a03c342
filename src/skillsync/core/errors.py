"""Exception taxonomy for fetching and installing skills."""

from __future__ import annotations

from enum import Enum


class FetchErrorCategory(str, Enum):
    TIMEOUT = "timeout"
    AUTH = "auth"
    UNREACHABLE = "unreachable"
    GENERIC = "generic"
    CHECKOUT = "checkout"
    CANCELLED = "cancelled"


class FetchError(RuntimeError):
    """Raised when a remote source cannot be cloned.

    ``hint`` is the remediation text appended to the message.
    """

    def __init__(
        self,
        message: str,
        url: str,
        category: FetchErrorCategory = FetchErrorCategory.GENERIC,
        hint: str = "",
    ) -> None:
        self.url = url
        self.category = category
        self.hint = hint
        full = f"{message}\n{hint}" if hint else message
        super().__init__(full)


class CheckoutError(FetchError):
    """The clone worked but the requested ref could not be checked out."""

    def __init__(self, url: str, ref: str, git_message: str) -> None:
        self.ref = ref
        self.git_message = git_message
        super().__init__(
            f"Failed to checkout ref '{ref}' for {url}.",
            url,
            FetchErrorCategory.CHECKOUT,
            hint=(
                "  - Verify the ref exists (tag/branch/commit)\n"
                "  - Ensure the ref is accessible in this repository\n"
                f"  - Git error: {git_message}"
            ),
        )


class CloneCancelled(FetchError):
    def __init__(self, url: str) -> None:
        super().__init__(f"Clone of {url} was cancelled", url, FetchErrorCategory.CANCELLED)


class UnsafeCleanupError(ValueError):
    """Refused to delete a path outside the system temp directory."""


class InstallError(RuntimeError):
    """Base class for entry-local install failures."""


class SkillNotFoundInSource(InstallError):
    pass


class SourcePathNotFound(InstallError):
    pass


class UnknownSourceType(InstallError):
    pass
