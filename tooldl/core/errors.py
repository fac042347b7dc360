"""
Error taxonomy — one exception class per failure kind.

Every failure the updater can report is a subclass of ``ToolDlError``.
Each class carries the context its message needs, so the CLI can print
``str(exc)`` without inspecting the error any further.
"""

from __future__ import annotations

from pathlib import Path


class ToolDlError(Exception):
    """Base class for all tooldl failures."""


# ── Pre-flight ──────────────────────────────────────────────────


class RegistryNotFound(ToolDlError):
    """The registry file does not exist."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Registry file not found: {path}")


class MalformedRegistryEntry(ToolDlError):
    """A registry line is not of the form ``owner/repo``."""

    def __init__(self, path: Path, line_number: int, line: str) -> None:
        self.path = path
        self.line_number = line_number
        self.line = line
        super().__init__(
            f"{path}:{line_number}: expected 'owner/repo', got '{line}'"
        )


class CredentialMissing(ToolDlError):
    """No stored credential for the user and none supplied."""

    def __init__(self, user: str) -> None:
        self.user = user
        super().__init__(
            "No token found! Please supply one with '--token' "
            "so that it can be saved for future use."
        )


class CredentialStoreError(ToolDlError):
    """The credential store failed for a reason other than a missing entry."""

    def __init__(self, user: str, reason: str) -> None:
        self.user = user
        self.reason = reason
        super().__init__(f"Credential store error for '{user}': {reason}")


# ── Release API ─────────────────────────────────────────────────


class AuthenticationError(ToolDlError):
    """The hosting service rejected the credential."""

    def __init__(self, tool: str, status: int) -> None:
        self.tool = tool
        self.status = status
        super().__init__(f"{tool}: credential rejected (HTTP {status})")


class NotFound(ToolDlError):
    """The repository, its latest release, or an asset does not exist."""

    def __init__(self, tool: str, url: str) -> None:
        self.tool = tool
        self.url = url
        super().__init__(f"{tool}: not found ({url})")


class TransportError(ToolDlError):
    """Network-layer failure, including timeouts and unexpected HTTP statuses."""

    def __init__(self, tool: str, url: str, reason: str) -> None:
        self.tool = tool
        self.url = url
        self.reason = reason
        super().__init__(f"{tool}: request to {url} failed: {reason}")


class DecodeError(ToolDlError):
    """The release response could not be decoded."""

    def __init__(self, tool: str, reason: str) -> None:
        self.tool = tool
        self.reason = reason
        super().__init__(f"{tool}: cannot decode release response: {reason}")


# ── Local filesystem ────────────────────────────────────────────


class ArchiveCorrupt(ToolDlError):
    """The downloaded file is not a readable zip archive."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Corrupt archive {source}: {reason}")


class ExtractionIOError(ToolDlError):
    """A filesystem error occurred while materializing an archive entry."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot extract to {path}: {reason}")


class FilesystemError(ToolDlError):
    """Directory creation, marker write, download write or cleanup failed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Filesystem error at {path}: {reason}")
