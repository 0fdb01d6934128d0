"""Zip archive handling for pack installation.

Entries are extracted without flattening: the archive layout becomes the pack
directory layout. Entries that would land outside the target are rejected.
"""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path

logger = logging.getLogger(__name__)


class ArchiveError(Exception):
    """Raised when an archive cannot be read or extracted."""

    pass


class EmptyArchiveError(ArchiveError):
    """Raised when an archive contains no entries."""

    pass


def list_entries(archive_path: Path) -> list[str]:
    """List the entry names of a zip archive.

    Raises:
        ArchiveError: If the file is not a readable zip archive.
    """
    try:
        with zipfile.ZipFile(archive_path) as zf:
            return zf.namelist()
    except (zipfile.BadZipFile, OSError) as e:
        raise ArchiveError(f"Cannot read archive {archive_path.name}: {e}")


def extract_archive(archive_path: Path, target_dir: Path) -> int:
    """Extract every entry of ``archive_path`` into ``target_dir``.

    Args:
        archive_path: Zip file to extract.
        target_dir: Directory to extract into (created if missing).

    Returns:
        Number of entries extracted.

    Raises:
        EmptyArchiveError: If the archive has no entries.
        ArchiveError: If the archive is unreadable or an entry escapes.
    """
    try:
        with zipfile.ZipFile(archive_path) as zf:
            members = zf.infolist()
            if not members:
                raise EmptyArchiveError(f"Archive {archive_path.name} is empty")

            target_dir.mkdir(parents=True, exist_ok=True)
            root = target_dir.resolve()
            for member in members:
                destination = (root / member.filename).resolve()
                if not destination.is_relative_to(root):
                    raise ArchiveError(f"Unsafe archive entry: {member.filename}")

            zf.extractall(root)
    except (zipfile.BadZipFile, OSError) as e:
        raise ArchiveError(f"Cannot extract archive {archive_path.name}: {e}")

    logger.debug("Extracted %d entries from %s", len(members), archive_path.name)
    return len(members)
