"""
Test helpers — in-memory archives, credential store, and release client.
"""

from __future__ import annotations

import io
import zipfile
from pathlib import Path

from tooldl.core.errors import ToolDlError
from tooldl.core.models.release import AssetDescriptor, ReleaseDescriptor


def build_zip(entries: dict[str, bytes | None], modes: dict[str, int] | None = None) -> bytes:
    """Build a zip archive in memory.

    ``None`` content marks a directory entry. ``modes`` maps entry names
    to Unix permission bits recorded in the archive.
    """
    modes = modes or {}
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, content in entries.items():
            info = zipfile.ZipInfo(name)
            info.create_system = 3
            if name in modes:
                info.external_attr = modes[name] << 16
            if content is None:
                info.external_attr |= 0x10
                zf.writestr(info, b"")
            else:
                zf.writestr(info, content)
    return buf.getvalue()


def damaged_deflated_zip(name: str = "bin/tool") -> bytes:
    """Valid zip directory whose deflated entry data is garbled.

    ``ZipFile`` opens it; reading the entry fails while decompressing.
    """
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(name, bytes(range(256)) * 64)
    data = bytearray(buf.getvalue())
    start = 30 + len(name.encode())
    for i in range(start, start + 20):
        data[i] ^= 0xA5
    return bytes(data)


class MemoryStore:
    """In-memory CredentialStore."""

    def __init__(self, entries: dict[tuple[str, str], str] | None = None) -> None:
        self.entries = dict(entries or {})

    def get(self, service: str, user: str) -> str | None:
        return self.entries.get((service, user))

    def set(self, service: str, user: str, secret: str) -> None:
        self.entries[(service, user)] = secret


class FakeReleaseClient:
    """ReleaseSource serving canned releases and archive bytes.

    Args:
        releases: ``"owner/repo"`` → ReleaseDescriptor or a ToolDlError to raise.
        payloads: asset name → bytes written on download, or a ToolDlError.
    """

    def __init__(
        self,
        releases: dict[str, ReleaseDescriptor | ToolDlError],
        payloads: dict[str, bytes | ToolDlError] | None = None,
    ) -> None:
        self.releases = releases
        self.payloads = payloads or {}
        self.resolved: list[str] = []
        self.downloaded: list[str] = []

    def resolve_latest(self, owner: str, repo: str) -> ReleaseDescriptor:
        key = f"{owner}/{repo}"
        self.resolved.append(key)
        release = self.releases[key]
        if isinstance(release, ToolDlError):
            raise release
        return release

    def download_asset(self, asset: AssetDescriptor, destination: Path) -> Path:
        self.downloaded.append(asset.name)
        payload = self.payloads[asset.name]
        if isinstance(payload, ToolDlError):
            raise payload
        destination.write_bytes(payload)
        return destination


def release(tag: str, *names: str) -> ReleaseDescriptor:
    """ReleaseDescriptor with one asset per name."""
    return ReleaseDescriptor(
        tag=tag,
        assets=[
            AssetDescriptor(name=n, download_url=f"https://example.test/dl/{n}")
            for n in names
        ],
    )


