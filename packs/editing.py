"""Editing helpers for template and library manifests inside installed packs.

Paths are relative to the pack root and may point either at an entry
directory (its ``metadata.yaml`` is used) or at a YAML file directly.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

import yaml

from schemas.content import ContentType

from .manifest import MANIFEST_NAME

logger = logging.getLogger(__name__)


class EditError(Exception):
    """Raised when pack content cannot be read, written or deleted."""

    pass


def resolve_content_path(packs_root: Path, relative_path: str) -> Path:
    """Resolve a pack-root-relative path, refusing anything outside the root.

    Raises:
        EditError: If the path is empty or escapes the pack root.
    """
    if not relative_path or not relative_path.strip():
        raise EditError("Content path is empty")

    root = packs_root.resolve()
    target = (root / relative_path).resolve()
    if target == root or not target.is_relative_to(root):
        raise EditError(f"Path is outside the pack root: {relative_path}")
    return target


def content_kind(packs_root: Path, path: Path) -> ContentType | None:
    """Infer whether ``path`` belongs to a pack's templates or libraries."""
    parts = path.resolve().relative_to(packs_root.resolve()).parts
    if len(parts) >= 2:
        for kind in ContentType:
            if parts[1] == kind.section:
                return kind
    return None


def _manifest_file(target: Path) -> Path:
    if target.is_dir() or target.suffix.lower() not in (".yaml", ".yml"):
        return target / MANIFEST_NAME
    return target


def read_content_yaml(packs_root: Path, relative_path: str) -> str:
    """Read the YAML text of a template or library.

    Raises:
        EditError: If the path is invalid or the file cannot be read.
    """
    path = _manifest_file(resolve_content_path(packs_root, relative_path))
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise EditError(f"Cannot read {relative_path}: {e}")


def write_content_yaml(packs_root: Path, relative_path: str, text: str) -> Path:
    """Validate and write the YAML text of a template or library.

    Returns:
        The file written.

    Raises:
        EditError: If the path is invalid, the text is not YAML, or the write fails.
    """
    path = _manifest_file(resolve_content_path(packs_root, relative_path))
    try:
        yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise EditError(f"Invalid YAML: {e}")

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
    except OSError as e:
        raise EditError(f"Cannot write {relative_path}: {e}")

    logger.info("Wrote %s", path)
    return path


def delete_content(packs_root: Path, relative_path: str) -> Path:
    """Delete a template or library directory (or a single file).

    Raises:
        EditError: If the path is invalid, missing, or cannot be removed.
    """
    target = resolve_content_path(packs_root, relative_path)
    if not target.exists():
        raise EditError(f"Not found: {relative_path}")

    try:
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        else:
            target.unlink()
    except OSError as e:
        raise EditError(f"Cannot delete {relative_path}: {e}")

    logger.info("Deleted %s", target)
    return target
