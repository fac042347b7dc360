"""
Update orchestrator — bring every registry tool up to its latest release.

Per tool:

    INIT ──resolve──▶ VERSION_QUERIED ──marker covers tag──▶ UP_TO_DATE
                              │
                              └──write marker──▶ ASSETS_PENDING ──▶ DONE

Any failure moves the tool to ERRORED and processing continues with the
next registry entry. Accepted assets (``*.zip`` with a recognised
architecture) are downloaded into the scratch area and extracted into
``<root>/<repo>/<ARCH>/``; several assets for one architecture are all
extracted, later ones overwriting earlier files.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any, Protocol

from tooldl.core.config.loader import SERVICE_NAME
from tooldl.core.errors import FilesystemError, ToolDlError
from tooldl.core.models.release import (
    ArchitectureClass,
    AssetDescriptor,
    ReleaseDescriptor,
    ToolIdentifier,
    classify_asset,
)
from tooldl.core.services import archive, version_store

logger = logging.getLogger(__name__)


def default_scratch_dir() -> Path:
    """``<system temp>/tooldl``."""
    return Path(tempfile.gettempdir()) / SERVICE_NAME


class ReleaseSource(Protocol):
    """What the orchestrator needs from a release client."""

    def resolve_latest(self, owner: str, repo: str) -> ReleaseDescriptor: ...

    def download_asset(self, asset: AssetDescriptor, destination: Path) -> Path: ...


Extractor = Callable[[Path, Path], Any]


class ToolState(StrEnum):
    INIT = "init"
    VERSION_QUERIED = "version_queried"
    UP_TO_DATE = "up_to_date"
    ASSETS_PENDING = "assets_pending"
    DONE = "done"
    ERRORED = "errored"


@dataclass
class InstalledAsset:
    """One asset extracted during a run."""

    name: str
    architecture: ArchitectureClass
    destination: Path


@dataclass
class ToolResult:
    """Outcome of processing one registry entry."""

    tool: ToolIdentifier
    state: ToolState = ToolState.INIT
    installed_tag: str | None = None
    latest_tag: str | None = None
    assets: list[InstalledAsset] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.state in (ToolState.UP_TO_DATE, ToolState.DONE)

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        return {
            "tool": str(self.tool),
            "state": str(self.state),
            "installed_tag": self.installed_tag,
            "latest_tag": self.latest_tag,
            "assets": [
                {
                    "name": a.name,
                    "architecture": str(a.architecture),
                    "destination": str(a.destination),
                }
                for a in self.assets
            ],
            "skipped": list(self.skipped),
            "error": self.error,
        }


@dataclass
class UpdateReport:
    """Results for a whole run, in registry order."""

    results: list[ToolResult] = field(default_factory=list)
    cleanup_error: str | None = None

    @property
    def failed(self) -> list[ToolResult]:
        return [r for r in self.results if r.state == ToolState.ERRORED]

    @property
    def updated(self) -> list[ToolResult]:
        return [r for r in self.results if r.state == ToolState.DONE]

    @property
    def ok(self) -> bool:
        return not self.failed and self.cleanup_error is None

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "tools": [r.to_dict() for r in self.results],
            "updated": len(self.updated),
            "failed": len(self.failed),
            "cleanup_error": self.cleanup_error,
        }


class ToolUpdater:
    """Runs the per-tool update pipeline.

    Args:
        client: Resolves releases and downloads assets.
        tools_root: Directory holding one subdirectory per tool.
        scratch_dir: Staging area for downloads (default: ``default_scratch_dir()``).
        extractor: ``(archive_path, destination) -> Any``; defaults to
            ``archive.extract_file``.
        on_result: Called with each ToolResult as soon as the tool finishes.
    """

    def __init__(
        self,
        client: ReleaseSource,
        tools_root: Path,
        scratch_dir: Path | None = None,
        extractor: Extractor | None = None,
        on_result: Callable[[ToolResult], None] | None = None,
    ) -> None:
        self.client = client
        self.tools_root = tools_root
        self.scratch_dir = scratch_dir or default_scratch_dir()
        self.extractor = extractor or archive.extract_file
        self.on_result = on_result

    def tool_dir(self, tool: ToolIdentifier) -> Path:
        return self.tools_root / tool.repo

    # ── Run ─────────────────────────────────────────────────────

    def run(self, tools: Iterable[ToolIdentifier]) -> UpdateReport:
        """Process every tool in order, then remove the scratch area.

        Raises:
            FilesystemError: The scratch area cannot be created.
        """
        self._prepare_scratch()

        report = UpdateReport()
        try:
            for tool in tools:
                result = self.update_tool(tool)
                report.results.append(result)
                if self.on_result:
                    self.on_result(result)
        finally:
            try:
                self._remove_scratch()
            except FilesystemError as exc:
                logger.error("%s", exc)
                report.cleanup_error = str(exc)

        logger.info(
            "Run finished: %d tool(s), %d updated, %d failed",
            len(report.results), len(report.updated), len(report.failed),
        )
        return report

    def update_tool(self, tool: ToolIdentifier) -> ToolResult:
        """Process a single tool; never raises ToolDlError."""
        result = ToolResult(tool=tool)
        try:
            self._update(tool, result)
        except ToolDlError as exc:
            result.state = ToolState.ERRORED
            result.error = str(exc)
            logger.error("%s: %s", tool, exc)
        return result

    # ── Pipeline ────────────────────────────────────────────────

    def _update(self, tool: ToolIdentifier, result: ToolResult) -> None:
        release = self.client.resolve_latest(tool.owner, tool.repo)
        result.state = ToolState.VERSION_QUERIED
        result.latest_tag = release.tag

        dest = self.tool_dir(tool)
        installed = version_store.read_marker(dest)
        result.installed_tag = installed

        if version_store.is_up_to_date(installed, release.tag):
            result.state = ToolState.UP_TO_DATE
            logger.info("%s is up to date (%s)", tool, installed)
            return

        logger.info("%s: %s → %s", tool, installed or "not installed", release.tag)
        version_store.write_marker(dest, release.tag)
        result.state = ToolState.ASSETS_PENDING

        for asset in release.assets:
            arch = self.select(asset)
            if arch is None:
                result.skipped.append(asset.name)
                continue
            result.assets.append(self._install_asset(dest, asset, arch))

        result.state = ToolState.DONE

    @staticmethod
    def select(asset: AssetDescriptor) -> ArchitectureClass | None:
        """Architecture an asset installs into, or None to skip it."""
        if not archive.is_archive(asset.name):
            logger.debug("Skipping %s: not a %s archive", asset.name, archive.ARCHIVE_SUFFIX)
            return None
        arch = classify_asset(asset.name)
        if arch is ArchitectureClass.UNRECOGNIZED:
            logger.debug("Skipping %s: unrecognised architecture", asset.name)
            return None
        return arch

    def _install_asset(
        self,
        dest: Path,
        asset: AssetDescriptor,
        arch: ArchitectureClass,
    ) -> InstalledAsset:
        arch_dir = dest / arch.value
        try:
            arch_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(arch_dir, str(exc)) from exc

        staged = self.scratch_dir / Path(asset.name).name
        self.client.download_asset(asset, staged)
        self.extractor(staged, arch_dir)
        logger.info("Installed %s into %s", asset.name, arch_dir)
        return InstalledAsset(name=asset.name, architecture=arch, destination=arch_dir)

    # ── Scratch area ────────────────────────────────────────────

    def _prepare_scratch(self) -> None:
        try:
            self.scratch_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(self.scratch_dir, str(exc)) from exc

    def _remove_scratch(self) -> None:
        if not self.scratch_dir.exists():
            return
        try:
            shutil.rmtree(self.scratch_dir)
        except OSError as exc:
            raise FilesystemError(self.scratch_dir, f"cannot remove scratch area: {exc}") from exc
        logger.debug("Removed scratch area %s", self.scratch_dir)
