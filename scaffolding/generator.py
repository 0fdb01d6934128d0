"""Project generator for provisioning new projects from pack templates."""

import asyncio
import logging
from pathlib import Path
from typing import Any, Union

from packs.cache import MetadataCache
from schemas.content import ContentDescriptor
from schemas.project import ProjectMeta, utc_timestamp

from .applier import ConflictResolver, TemplateApplier, skip_all
from .projects import ProjectStore
from .templates import NormalizedTemplate, TemplateError, normalize_template

logger = logging.getLogger(__name__)

TemplateRef = Union[str, ContentDescriptor, NormalizedTemplate, dict[str, Any]]


class ProjectGenerator:
    """Creates projects from templates.

    Creates:
    - The destination tree (via the template applier)
    - Project metadata in the project store
    """

    def __init__(self, cache: MetadataCache, applier: TemplateApplier, store: ProjectStore):
        """Initialize project generator.

        Args:
            cache: Metadata cache used to resolve template references.
            applier: Applier that writes the destination tree.
            store: Store receiving the project's metadata.
        """
        self.cache = cache
        self.applier = applier
        self.store = store

    async def resolve_templates(self, templates: list[TemplateRef]) -> list[NormalizedTemplate]:
        """Resolve references and normalize templates, keeping their order.

        Strings are looked up in the cache by id, source path or name.

        Raises:
            TemplateError: If a reference is unknown or cannot be normalized.
        """
        resolved: list[NormalizedTemplate] = []
        for template in templates:
            if isinstance(template, str):
                descriptor = await self.cache.find_template(template)
                if descriptor is None:
                    raise TemplateError(f"Template not found: {template}")
                template = descriptor
            resolved.append(normalize_template(template))
        return resolved

    async def create(
        self,
        name: str,
        destination: Path,
        templates: list[TemplateRef],
        libraries: list[str] | None = None,
        version: str = "",
        description: str | None = None,
        resolver: ConflictResolver = skip_all,
    ) -> ProjectMeta:
        """Create a project.

        Args:
            name: Project name (e.g., "My App")
            destination: Directory to populate
            templates: Template references, applied in order
            libraries: Library names recorded in the metadata
            version: Project version
            description: Project description (default derived from templates)
            resolver: Conflict resolver for existing files

        Returns:
            The stored project metadata.

        Raises:
            ApplyCancelled: The resolver cancelled; no metadata is written.
        """
        normalized = await self.resolve_templates(templates)
        await self.applier.apply(destination, normalized, resolver)

        names = [_template_name(template) for template in normalized]
        meta = ProjectMeta(
            name=name,
            description=description or f"{name} created from {', '.join(names)}",
            version=version,
            last_edited=utc_timestamp(),
            path=str(destination),
            template_used=names,
            libraries_applied=list(libraries or []),
        )
        stored = await asyncio.to_thread(self.store.create_project_file, name, meta)
        logger.info("Created project %s at %s", name, destination)
        return stored


def _template_name(template: NormalizedTemplate) -> str:
    return template.name or template.id
