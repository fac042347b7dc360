"""
Release models — tool identity, release descriptor, architecture class.

``ReleaseDescriptor`` and ``AssetDescriptor`` are validated straight from
the hosting service's JSON (``tag_name``, ``assets[].name``,
``assets[].browser_download_url``); extra fields are ignored.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ToolIdentifier(BaseModel):
    """An ``owner/repo`` pair from the registry."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}"


class AssetDescriptor(BaseModel):
    """A downloadable file attached to a release."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    download_url: str = Field(alias="browser_download_url")


class ReleaseDescriptor(BaseModel):
    """The latest published release of a tool."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    tag: str = Field(alias="tag_name")
    assets: list[AssetDescriptor] = Field(default_factory=list)


class ArchitectureClass(StrEnum):
    """CPU variant an asset targets; the value doubles as the directory name."""

    X64 = "X64"
    ARM64 = "ARM64"
    UNRECOGNIZED = "Unrecognized"


# Evaluated top to bottom, first match wins. Case-sensitive.
ARCHITECTURE_RULES: tuple[tuple[str, ArchitectureClass], ...] = (
    ("x64", ArchitectureClass.X64),
    ("x86_64", ArchitectureClass.X64),
    ("ARM64", ArchitectureClass.ARM64),
    ("aarch64", ArchitectureClass.ARM64),
)


def classify_asset(name: str) -> ArchitectureClass:
    """Map an asset file name to its architecture class.

    Args:
        name: Asset file name, e.g. ``tool-x86_64-linux.zip``.

    Returns:
        The class of the first matching rule in ``ARCHITECTURE_RULES``,
        or ``ArchitectureClass.UNRECOGNIZED``.
    """
    for pattern, arch in ARCHITECTURE_RULES:
        if pattern in name:
            return arch
    return ArchitectureClass.UNRECOGNIZED
