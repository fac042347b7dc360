"""
Domain models — Pydantic types for releases and tools.

    from tooldl.core.models import ToolIdentifier, ReleaseDescriptor
"""

from tooldl.core.models.release import (
    ARCHITECTURE_RULES,
    ArchitectureClass,
    AssetDescriptor,
    ReleaseDescriptor,
    ToolIdentifier,
    classify_asset,
)

__all__ = [
    "ARCHITECTURE_RULES",
    "ArchitectureClass",
    "AssetDescriptor",
    "ReleaseDescriptor",
    "ToolIdentifier",
    "classify_asset",
]
