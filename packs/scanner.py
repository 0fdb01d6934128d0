"""Pack tree scanner.

Walks the pack root and derives content descriptors for one pack section
(``templates/`` or ``libraries/``). This is blocking file system code; the
metadata cache runs it in a worker thread.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from schemas.content import CacheSnapshot, ContentDescriptor, ContentType

from .manifest import (
    DEFAULT_CATEGORY,
    DEFAULT_VERSION,
    ContentEntry,
    PackManifest,
    load_pack_manifest,
)

logger = logging.getLogger(__name__)


def scan_pack_tree(packs_root: Path, kind: ContentType) -> CacheSnapshot:
    """Scan every pack under ``packs_root`` and build a snapshot.

    Args:
        packs_root: Managed pack root directory.
        kind: Which pack section to scan.

    Returns:
        Snapshot of all descriptors found, in pack then entry name order.

    Raises:
        OSError: If the pack root itself cannot be read.
    """
    root = packs_root.resolve()
    pack_dirs = sorted(
        (p for p in root.iterdir() if p.is_dir() and not p.name.startswith(".")),
        key=lambda p: p.name,
    )

    entries: list[ContentDescriptor] = []
    for pack_dir in pack_dirs:
        entries.extend(scan_pack(root, pack_dir, kind))

    categories: tuple[str, ...] = ()
    if kind == ContentType.TEMPLATE:
        categories = derive_categories(entries)

    return CacheSnapshot(kind=kind, entries=tuple(entries), categories=categories)


def scan_pack(root: Path, pack_dir: Path, kind: ContentType) -> list[ContentDescriptor]:
    """Describe every entry of one pack section.

    A pack whose manifest cannot be parsed still contributes its entries with
    default metadata.
    """
    manifest = load_pack_manifest(pack_dir)
    section_root = pack_dir / kind.section

    try:
        children = sorted(section_root.iterdir(), key=lambda p: p.name)
    except OSError:
        # Pack has no such section (or it vanished mid-scan)
        return []

    descriptors: list[ContentDescriptor] = []
    for entry_dir in children:
        if entry_dir.name.startswith("."):
            continue
        try:
            if not entry_dir.is_dir():
                continue
            descriptor = describe_entry(root, pack_dir, entry_dir, manifest, kind)
        except OSError as e:
            logger.warning("Skipping %s: %s", entry_dir, e)
            continue
        if descriptor is not None:
            descriptors.append(descriptor)
    return descriptors


def describe_entry(
    root: Path,
    pack_dir: Path,
    entry_dir: Path,
    manifest: PackManifest,
    kind: ContentType,
) -> ContentDescriptor | None:
    """Build the descriptor for a single template or library directory."""
    if not is_within(entry_dir, root):
        logger.warning("Ignoring %s: resolves outside the pack root", entry_dir)
        return None

    stat = entry_dir.stat()
    name = entry_dir.name
    content = manifest.find_content(name)

    files: dict[str, str] | None = None
    discovered: tuple[str, ...] = ()
    if content and content.files:
        files = {
            source: target
            for source, target in content.files.items()
            if is_within(entry_dir / source, root)
        }
        dropped = len(content.files) - len(files)
        if dropped:
            logger.warning("Dropped %d file(s) escaping the pack root in %s", dropped, entry_dir)
    if not files:
        files = None
        discovered = collect_files(entry_dir)

    summary = manifest.summary
    editable = _first_bool(content.editable if content else None, manifest.editable)

    return ContentDescriptor(
        type=kind,
        id=f"{pack_dir.name}-{name}",
        name=name,
        description=f"{summary} ({name})" if summary else f"{name} from {pack_dir.name}",
        version=manifest.version or DEFAULT_VERSION,
        category=derive_category(name, content, manifest),
        editable=editable,
        last_edited=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat(),
        pack=pack_dir.name,
        source_path=entry_dir.relative_to(root).as_posix(),
        files=files,
        discovered_files=discovered,
    )


def derive_category(name: str, content: ContentEntry | None, manifest: PackManifest) -> str:
    """Derive an entry's category.

    Order: explicit content category, workspace content type, name hints,
    pack category, then the default.
    """
    if content and content.category:
        return content.category
    if content and content.type == "workspace":
        return "workspace"

    lowered = name.lower()
    if "workspace" in lowered:
        return "workspace"
    if "gitignore" in lowered or "config" in lowered:
        return "configuration"

    return manifest.category or DEFAULT_CATEGORY


def derive_categories(entries: list[ContentDescriptor]) -> tuple[str, ...]:
    """Ordered, de-duplicated categories of a template listing."""
    return tuple(dict.fromkeys(entry.category or "misc" for entry in entries))


def collect_files(root: Path) -> tuple[str, ...]:
    """Recursively list files under ``root`` as sorted POSIX relative paths."""
    files = [
        path.relative_to(root).as_posix()
        for path in root.rglob("*")
        if path.is_file()
    ]
    return tuple(sorted(files))


def is_within(path: Path, root: Path) -> bool:
    """Check that ``path`` resolves inside ``root``."""
    try:
        return path.resolve().is_relative_to(root.resolve())
    except (OSError, RuntimeError):
        return False


def _first_bool(*values: bool | None) -> bool:
    for value in values:
        if value is not None:
            return value
    return True
