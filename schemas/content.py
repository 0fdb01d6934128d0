"""Content descriptor schemas.

Defines the immutable models derived from installed packs:
- Content descriptors (templates and libraries)
- Cache snapshots shared by every reader of the metadata cache
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContentType(str, Enum):
    """Kind of content unit a pack section provides."""

    TEMPLATE = "template"
    LIBRARY = "library"

    @property
    def section(self) -> str:
        """Name of the pack subdirectory holding this kind of content."""
        return "templates" if self == ContentType.TEMPLATE else "libraries"


class ContentDescriptor(BaseModel):
    """A template or library derived from a pack manifest and its directory."""

    model_config = ConfigDict(frozen=True)

    type: ContentType = Field(..., description="Template or library")
    id: str = Field(..., description="Pack name and entry name joined by '-'")
    name: str = Field(..., description="Entry directory name")
    description: str = Field("", description="Human readable description")
    version: str = Field("1.0.0", description="Version from the manifest")
    category: str = Field("workspace", description="Derived category")
    editable: bool = Field(True, description="Whether the entry may be edited")
    last_edited: str = Field("", description="ISO-8601 modification time")
    pack: str = Field(..., description="Pack directory name")
    source_path: str = Field(..., description="Path relative to the pack root")

    # Declared (source, target) pairs, None when the manifest declares nothing
    files: tuple[tuple[str, str], ...] | None = Field(None, description="Declared file map")
    discovered_files: tuple[str, ...] = Field(
        default=(), description="Files found on disk when no map is declared"
    )

    @field_validator("files", mode="before")
    @classmethod
    def _freeze_files(cls, value: Any) -> Any:
        # Pairs keep the map immutable inside shared snapshots
        if isinstance(value, Mapping):
            return tuple(value.items())
        return value

    @property
    def has_file_map(self) -> bool:
        return bool(self.files)

    @property
    def file_map(self) -> dict[str, str] | None:
        """Declared files as a new source -> target dict."""
        return dict(self.files) if self.files else None


class CacheSnapshot(BaseModel):
    """Immutable listing produced by one scan of the pack root."""

    model_config = ConfigDict(frozen=True)

    kind: ContentType
    entries: tuple[ContentDescriptor, ...] = ()
    categories: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)
