"""Normalized templates for the template applier.

Raw template metadata comes in several loose shapes: content descriptors from
the pack cache, or plain dicts from callers and project files. Each is
normalized into one of:
- WorkspaceTemplate: folders to create
- FileTemplate: a ``.gitignore`` or ``.env`` style file with literal lines
- PackTemplate: a pack directory (or declared file map) to copy verbatim
"""

import posixpath
import re
from dataclasses import dataclass, field
from typing import Any, Literal, Union

from schemas.content import ContentDescriptor


class TemplateError(Exception):
    """Raised when template metadata cannot be normalized."""

    pass


@dataclass(frozen=True)
class WorkspaceTemplate:
    """Folders to create under the destination."""

    id: str
    name: str
    folders: tuple[str, ...] = ()
    kind: Literal["workspace"] = field(default="workspace", init=False)


@dataclass(frozen=True)
class FileTemplate:
    """A generated text file (``gitignore`` or ``env``)."""

    id: str
    name: str
    kind: Literal["gitignore", "env"]
    filename: str
    lines: tuple[str, ...] = ()

    @property
    def content(self) -> str:
        if not self.lines:
            return ""
        return "\n".join(self.lines) + "\n"


@dataclass(frozen=True)
class PackTemplate:
    """A pack entry copied from the pack root.

    ``files`` maps sources (relative to ``pack_path``) to destination paths;
    None means the whole ``pack_path`` tree is copied.
    """

    id: str
    name: str
    pack_path: str
    files: dict[str, str] | None = None
    kind: Literal["pack"] = field(default="pack", init=False)


NormalizedTemplate = Union[WorkspaceTemplate, FileTemplate, PackTemplate]


def coerce_lines(value: Any) -> tuple[str, ...]:
    """Coerce a list or a multi-line string into a tuple of lines."""
    if not value:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(str(item) for item in value)
    if isinstance(value, str):
        return tuple(re.split(r"\r?\n", value))
    return ()


def _env_filename(data: dict[str, Any]) -> str:
    # configuration/env-frontend.json -> .env-frontend
    source_path = data.get("sourcePath") or data.get("source_path")
    if source_path:
        base = posixpath.basename(str(source_path).replace("\\", "/"))
        if base.endswith(".json"):
            base = base[: -len(".json")]
        if base:
            return f".{base}"
    return ".env"


def _normalize_dict(data: dict[str, Any]) -> NormalizedTemplate:
    name = str(data.get("name") or "")
    template_id = str(data.get("id") or name)
    category = data.get("category") or "other"
    structure = data.get("structure") if isinstance(data.get("structure"), dict) else {}
    structure_files = structure.get("files") if isinstance(structure.get("files"), dict) else {}

    pack_path = data.get("packPath") or data.get("pack_path")
    if pack_path:
        files = data.get("files") if isinstance(data.get("files"), dict) else structure_files
        return PackTemplate(
            id=template_id,
            name=name,
            pack_path=str(pack_path),
            files=dict(files) or None,
        )

    if category == "workspace":
        folders = data.get("folders") or structure.get("folders") or []
        return WorkspaceTemplate(
            id=template_id, name=name, folders=tuple(str(folder) for folder in folders)
        )

    if category in ("gitignore", "env"):
        default = ".gitignore" if category == "gitignore" else _env_filename(data)
        filename = data.get("fileName") or data.get("filename") or default
        content = data.get("content")
        if content is None:
            content = structure_files.get(filename)
        return FileTemplate(
            id=template_id,
            name=name,
            kind=category,
            filename=str(filename),
            lines=coerce_lines(content),
        )

    raise TemplateError(f"Unsupported template {name or template_id!r} (category {category!r})")


def normalize_template(
    template: Union[ContentDescriptor, NormalizedTemplate, dict[str, Any]],
) -> NormalizedTemplate:
    """Normalize one template into its applier shape.

    Args:
        template: A cached content descriptor, a raw metadata dict, or an
            already normalized template (returned unchanged).

    Returns:
        The normalized template.

    Raises:
        TemplateError: If the input matches no known shape.
    """
    if isinstance(template, (WorkspaceTemplate, FileTemplate, PackTemplate)):
        return template
    if isinstance(template, ContentDescriptor):
        return PackTemplate(
            id=template.id,
            name=template.name,
            pack_path=template.source_path,
            files=template.file_map,
        )
    if isinstance(template, dict):
        return _normalize_dict(template)
    raise TemplateError(f"Cannot normalize template of type {type(template).__name__}")


def normalize_templates(templates: list[Any]) -> list[NormalizedTemplate]:
    """Normalize templates, keeping their order."""
    return [normalize_template(template) for template in templates]
