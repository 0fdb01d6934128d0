"""Pack manifest schema for ProjectHub packs.

Defines the structure and parsing for pack manifests (metadata.yaml) and the
listing of installed packs.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

MANIFEST_NAME = "metadata.yaml"

DEFAULT_VERSION = "1.0.0"
DEFAULT_CATEGORY = "workspace"


class ManifestError(Exception):
    """Raised when manifest parsing or validation fails."""

    pass


def normalize_files(entries: Any) -> dict[str, str]:
    """Normalize declared file entries to a source -> target mapping.

    Entries without a source are dropped; a missing target defaults to the
    source's basename.
    """
    mapping: dict[str, str] = {}
    if not isinstance(entries, list):
        return mapping

    for entry in entries:
        if not isinstance(entry, dict):
            continue
        source = str(entry.get("source") or "").strip()
        if not source:
            continue
        target = str(entry.get("target") or "").strip()
        mapping[source] = target or posixpath.basename(source)
    return mapping


@dataclass
class ContentEntry:
    """A ``contents`` item declared by a pack manifest.

    Attributes:
        path: Path of the entry inside the pack (its basename names the entry).
        type: Declared content type (e.g. "workspace").
        files: Declared source -> target file map.
        category: Category override for the entry.
        editable: Editable override for the entry.
    """

    path: str
    type: str | None = None
    files: dict[str, str] = field(default_factory=dict)
    category: str | None = None
    editable: bool | None = None

    @property
    def entry_name(self) -> str:
        return posixpath.basename(self.path.replace("\\", "/").rstrip("/"))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContentEntry:
        editable = data.get("editable")
        return cls(
            path=str(data.get("path") or ""),
            type=_str_or_none(data.get("type")),
            files=normalize_files(data.get("files")),
            category=_str_or_none(data.get("category")),
            editable=editable if isinstance(editable, bool) else None,
        )


@dataclass
class PackManifest:
    """Pack manifest containing metadata and content declarations.

    Attributes:
        name: Pack name (defaults to the directory name).
        version: Version string.
        summary: Short description of the pack.
        technology: Main technology of the pack.
        license: License identifier.
        category: Default category for the pack's entries.
        editable: Default editable flag for the pack's entries.
        released_on: Release date as published by the marketplace.
        contents: Declared content entries.
    """

    name: str | None = None
    version: str | None = None
    summary: str | None = None
    technology: str | None = None
    license: str | None = None
    category: str | None = None
    editable: bool | None = None
    released_on: str | None = None
    contents: list[ContentEntry] = field(default_factory=list)

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> PackManifest:
        """Load manifest from a YAML file.

        Args:
            yaml_path: Path to metadata.yaml file.

        Returns:
            Parsed PackManifest.

        Raises:
            ManifestError: If file is missing or invalid.
        """
        try:
            with open(yaml_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except FileNotFoundError:
            raise ManifestError(f"Manifest not found: {yaml_path}")
        except (OSError, UnicodeDecodeError) as e:
            raise ManifestError(f"Cannot read {yaml_path}: {e}")
        except yaml.YAMLError as e:
            raise ManifestError(f"Invalid YAML in {yaml_path}: {e}")

        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ManifestError(f"Manifest must be a YAML mapping: {yaml_path}")

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PackManifest:
        """Create manifest from a dictionary.

        Raises:
            ManifestError: If ``contents`` or ``editable`` have the wrong shape.
        """
        raw_contents = data.get("contents") or []
        if not isinstance(raw_contents, list):
            raise ManifestError("Manifest 'contents' must be a list")

        editable = data.get("editable")
        if editable is not None and not isinstance(editable, bool):
            raise ManifestError(f"Manifest 'editable' must be a boolean, got {editable!r}")

        contents = [
            ContentEntry.from_dict(item)
            for item in raw_contents
            if isinstance(item, dict) and item.get("path")
        ]

        return cls(
            name=_str_or_none(data.get("name")),
            version=_str_or_none(data.get("version")),
            summary=_str_or_none(data.get("summary") or data.get("description")),
            technology=_str_or_none(data.get("technology")),
            license=_str_or_none(data.get("license")),
            category=_str_or_none(data.get("category")),
            editable=editable,
            released_on=_str_or_none(data.get("releasedOn")),
            contents=contents,
        )

    def find_content(self, entry_name: str) -> ContentEntry | None:
        """Find the content entry whose path basename matches ``entry_name``."""
        for content in self.contents:
            if content.entry_name == entry_name:
                return content
        return None


def load_pack_manifest(pack_dir: Path) -> PackManifest:
    """Load a pack's manifest, degrading to defaults when it is unusable."""
    manifest_path = pack_dir / MANIFEST_NAME
    if not manifest_path.exists():
        return PackManifest()
    try:
        return PackManifest.from_yaml(manifest_path)
    except ManifestError as e:
        logger.warning("Using default metadata for pack %s: %s", pack_dir.name, e)
        return PackManifest()


@dataclass
class PackInfo:
    """An installed pack as listed from disk."""

    name: str
    path: str
    summary: str | None = None
    version: str | None = None
    technology: str | None = None
    license: str | None = None
    released_on: str | None = None
    status: str = "installed"

    @property
    def directory_name(self) -> str:
        return Path(self.path).name


def list_installed_packs(packs_root: Path) -> list[PackInfo]:
    """List installed packs under ``packs_root``.

    Raises:
        OSError: If the pack root cannot be read.
    """
    packs: list[PackInfo] = []
    for pack_dir in sorted(packs_root.iterdir(), key=lambda p: p.name):
        if not pack_dir.is_dir() or pack_dir.name.startswith("."):
            continue
        manifest = load_pack_manifest(pack_dir)
        packs.append(
            PackInfo(
                name=manifest.name or pack_dir.name,
                path=str(pack_dir),
                summary=manifest.summary,
                version=manifest.version,
                technology=manifest.technology,
                license=manifest.license,
                released_on=manifest.released_on,
            )
        )
    return packs


def _str_or_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
