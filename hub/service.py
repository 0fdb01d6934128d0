"""ProjectHub service facade.

Exposes every ProjectHub operation to collaborators (the CLI, or any other
front end) wrapped in the ``OperationResult`` envelope. Nothing here raises
for expected failures; callers branch on ``result.ok``.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable

import httpx

from packs.cache import MetadataCache
from packs.editing import (
    EditError,
    content_kind,
    delete_content,
    read_content_yaml,
    write_content_yaml,
)
from packs.fetcher import RemoteFetcher
from packs.installer import ConfirmCallback, PackInstaller
from packs.manifest import PackInfo, list_installed_packs
from packs.marketplace import (
    Marketplace,
    MarketplaceClient,
    MarketplaceError,
    MarketplacePack,
    MarketplaceRegistry,
    merge_with_installed,
)
from scaffolding.applier import (
    ApplyCancelled,
    ApplyError,
    ApplyReport,
    ConflictResolver,
    TemplateApplier,
    skip_all,
)
from scaffolding.generator import ProjectGenerator, TemplateRef
from scaffolding.projects import ProjectError, ProjectStore
from scaffolding.templates import TemplateError, normalize_templates
from schemas.content import ContentDescriptor
from schemas.project import ProjectMeta
from schemas.result import OperationResult

from .config import Config, ensure_roots, get_config

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class ProjectHubService:
    """Envelope-returning operations over packs, templates and projects.

    Example:
        >>> hub = ProjectHubService.from_config()
        >>> result = await hub.list_templates()
        >>> if result.ok:
        ...     print(len(result.data))
    """

    def __init__(
        self,
        packs_root: Path,
        projects_dir: Path,
        marketplace_dir: Path,
        fetcher: RemoteFetcher | None = None,
    ):
        """Initialize the service.

        Args:
            packs_root: Managed pack root directory.
            projects_dir: Directory holding project metadata.
            marketplace_dir: Directory holding the marketplace registry.
            fetcher: Remote fetcher shared by installs and marketplace calls.
        """
        self.packs_root = Path(packs_root)
        self.fetcher = fetcher or RemoteFetcher()
        self.cache = MetadataCache(self.packs_root)
        self.applier = TemplateApplier(self.packs_root)
        self.installer = PackInstaller(self.packs_root, self.cache, self.fetcher)
        self.projects = ProjectStore(projects_dir)
        self.generator = ProjectGenerator(self.cache, self.applier, self.projects)
        self.marketplace = MarketplaceClient(self.fetcher)
        self.registry = MarketplaceRegistry(marketplace_dir)
        self._listeners: list[Listener] = []

    @classmethod
    def from_config(
        cls,
        config: Config | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> ProjectHubService:
        """Build a service from configuration, creating the managed roots."""
        config = config or get_config()
        ensure_roots(config)
        fetcher = RemoteFetcher(
            timeout=config.network.timeout,
            max_redirects=config.network.max_redirects,
            user_agent=config.network.user_agent,
            transport=transport,
        )
        return cls(
            packs_root=config.paths.packs,
            projects_dir=config.paths.projects,
            marketplace_dir=config.paths.marketplace,
            fetcher=fetcher,
        )

    # =========================================================================
    # Change notification
    # =========================================================================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called after every successful mutation.

        Returns:
            A callable that unsubscribes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Change listener %r failed", listener)

    def notify_filesystem_changed(self) -> None:
        """Hook for external file watchers: drop cached listings."""
        self.cache.invalidate()
        self._notify()

    # =========================================================================
    # Templates and libraries
    # =========================================================================

    async def list_templates(
        self, source: str = "list_templates"
    ) -> OperationResult[tuple[ContentDescriptor, ...]]:
        try:
            return OperationResult.success(await self.cache.list_templates(source))
        except OSError as e:
            return _failure("list templates", e)

    async def list_libraries(
        self, source: str = "list_libraries"
    ) -> OperationResult[tuple[ContentDescriptor, ...]]:
        try:
            return OperationResult.success(await self.cache.list_libraries(source))
        except OSError as e:
            return _failure("list libraries", e)

    async def list_template_folders(self) -> OperationResult[tuple[str, ...]]:
        """List template categories."""
        try:
            return OperationResult.success(await self.cache.list_categories())
        except OSError as e:
            return _failure("list template categories", e)

    async def get_template(self, reference: str) -> OperationResult[ContentDescriptor]:
        try:
            template = await self.cache.find_template(reference)
        except OSError as e:
            return _failure("find template", e)
        if template is None:
            return OperationResult.failure(f"Template not found: {reference}")
        return OperationResult.success(template)

    async def apply_templates(
        self,
        destination: Path,
        templates: list[Any],
        resolver: ConflictResolver = skip_all,
    ) -> OperationResult[ApplyReport]:
        """Apply templates to ``destination``.

        Returns:
            The apply report, ``cancelled`` when the resolver cancelled, or a
            failure.
        """
        try:
            normalized = normalize_templates(templates)
            report = await self.applier.apply(Path(destination), normalized, resolver)
        except ApplyCancelled:
            return OperationResult.cancelled()
        except (TemplateError, ApplyError, OSError) as e:
            return _failure("apply templates", e)
        return OperationResult.success(report)

    async def read_content(self, relative_path: str) -> OperationResult[str]:
        """Read a template or library's YAML text."""
        try:
            text = await asyncio.to_thread(read_content_yaml, self.packs_root, relative_path)
        except EditError as e:
            return _failure("read content", e)
        return OperationResult.success(text)

    async def write_content(self, relative_path: str, text: str) -> OperationResult[str]:
        """Write a template or library's YAML text."""
        try:
            path = await asyncio.to_thread(write_content_yaml, self.packs_root, relative_path, text)
        except EditError as e:
            return _failure("write content", e)
        self._content_changed(path)
        return OperationResult.success(str(path))

    async def delete_content(self, relative_path: str) -> OperationResult[str]:
        """Delete a template or library."""
        try:
            path = await asyncio.to_thread(delete_content, self.packs_root, relative_path)
        except EditError as e:
            return _failure("delete content", e)
        self._content_changed(path)
        return OperationResult.success(str(path))

    def _content_changed(self, path: Path) -> None:
        self.cache.invalidate(content_kind(self.packs_root, path))
        self._notify()

    # =========================================================================
    # Packs
    # =========================================================================

    async def list_packs(self) -> OperationResult[list[PackInfo]]:
        """List installed packs."""
        try:
            packs = await asyncio.to_thread(list_installed_packs, self.packs_root)
        except OSError as e:
            return _failure("list packs", e)
        return OperationResult.success(packs)

    async def install_pack(self, url: str, checksum: str | None = None) -> OperationResult[dict]:
        result = await self.installer.install(url, checksum)
        if result.ok:
            self._notify()
        return result

    async def remove_pack(
        self,
        name: str,
        path: str | Path | None = None,
        confirm: ConfirmCallback | None = None,
    ) -> OperationResult[dict]:
        result = await self.installer.remove(name, path, confirm)
        if result.ok:
            self._notify()
        return result

    async def clear_cache(self) -> OperationResult[None]:
        self.cache.invalidate()
        self._notify()
        return OperationResult.success()

    # =========================================================================
    # Marketplace
    # =========================================================================

    async def list_marketplaces(self) -> OperationResult[list[Marketplace]]:
        try:
            return OperationResult.success(await asyncio.to_thread(self.registry.load))
        except OSError as e:
            return _failure("load marketplaces", e)

    async def add_marketplace(self, value: str) -> OperationResult[Marketplace]:
        try:
            marketplace = await asyncio.to_thread(self.registry.add, value)
        except (MarketplaceError, OSError) as e:
            return _failure("add marketplace", e)
        return OperationResult.success(marketplace)

    async def remove_marketplace(self, marketplace_id: str) -> OperationResult[None]:
        try:
            removed = await asyncio.to_thread(self.registry.remove, marketplace_id)
        except (MarketplaceError, OSError) as e:
            return _failure("remove marketplace", e)
        if not removed:
            return OperationResult.failure(f"Marketplace not found: {marketplace_id}")
        return OperationResult.success()

    async def fetch_pack_list(
        self, url: str | None = None
    ) -> OperationResult[list[MarketplacePack]]:
        """Fetch one marketplace's packs, marked installed or missing."""
        try:
            remote = await self.marketplace.fetch_pack_list(url)
            installed = await asyncio.to_thread(list_installed_packs, self.packs_root)
        except (MarketplaceError, OSError) as e:
            return _failure("fetch pack list", e)
        return OperationResult.success(merge_with_installed(remote, installed))

    async def fetch_available_packs(
        self,
    ) -> OperationResult[tuple[list[MarketplacePack], dict[str, str]]]:
        """Fetch packs from every enabled marketplace.

        Returns:
            Merged pack rows and per-marketplace error messages.
        """
        try:
            marketplaces = await asyncio.to_thread(self.registry.load)
            remote, errors = await self.marketplace.fetch_all(marketplaces)
            installed = await asyncio.to_thread(list_installed_packs, self.packs_root)
        except OSError as e:
            return _failure("fetch available packs", e)
        return OperationResult.success((merge_with_installed(remote, installed), errors))

    # =========================================================================
    # Projects
    # =========================================================================

    async def list_projects(self) -> OperationResult[list[ProjectMeta]]:
        try:
            return OperationResult.success(await asyncio.to_thread(self.projects.list_projects))
        except OSError as e:
            return _failure("list projects", e)

    async def create_project(
        self,
        name: str,
        destination: Path,
        templates: list[TemplateRef],
        libraries: list[str] | None = None,
        version: str = "",
        description: str | None = None,
        resolver: ConflictResolver = skip_all,
    ) -> OperationResult[ProjectMeta]:
        """Create a project from templates and record its metadata."""
        try:
            meta = await self.generator.create(
                name,
                Path(destination),
                templates,
                libraries=libraries,
                version=version,
                description=description,
                resolver=resolver,
            )
        except ApplyCancelled:
            return OperationResult.cancelled()
        except (TemplateError, ApplyError, ProjectError, OSError) as e:
            return _failure("create project", e)
        self._notify()
        return OperationResult.success(meta)

    async def delete_project(
        self, relative_path: str, folder_path: str | Path | None = None
    ) -> OperationResult[None]:
        try:
            await asyncio.to_thread(self.projects.delete_project, relative_path, folder_path)
        except ProjectError as e:
            return _failure("delete project", e)
        self._notify()
        return OperationResult.success()


def _failure(action: str, error: Exception) -> OperationResult[Any]:
    logger.error("Failed to %s: %s", action, error)
    return OperationResult.failure(str(error))
