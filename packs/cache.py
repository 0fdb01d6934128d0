"""Derived-metadata cache for installed packs.

Template and library listings are derived from a full scan of the pack root.
Each listing kind is held in a single-flight cell: concurrent callers share
one in-flight scan and receive the same snapshot object, and the snapshot is
memoized until invalidated.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from functools import partial
from pathlib import Path
from typing import Awaitable, Callable, Generic, TypeVar

from schemas.content import CacheSnapshot, ContentDescriptor, ContentType

from .scanner import scan_pack_tree

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheState(str, Enum):
    """State of a single-flight cell."""

    EMPTY = "empty"
    PENDING = "pending"
    READY = "ready"


class SingleFlight(Generic[T]):
    """Memoized async computation with at most one run in flight.

    Transitions:
        empty -> pending: the only transition that starts the loader
        pending -> ready: loader succeeded and was not invalidated meanwhile
        pending -> empty: loader failed (failures are never memoized)
        any -> empty: invalidate()

    When invalidated while pending, the running computation still resolves for
    the callers already waiting on it, but its result is discarded. The next
    caller waits for it to settle and then starts exactly one fresh run.
    """

    def __init__(self, name: str, loader: Callable[[], Awaitable[T]]):
        self.name = name
        self._loader = loader
        self._value: T | None = None
        self._task: asyncio.Task[T] | None = None
        self._task_generation = 0
        self._generation = 0

    @property
    def state(self) -> CacheState:
        if self._value is not None:
            return CacheState.READY
        if self._task is not None and self._task_generation == self._generation:
            return CacheState.PENDING
        return CacheState.EMPTY

    @property
    def value(self) -> T | None:
        return self._value

    async def get(self) -> T:
        """Return the memoized value, starting or joining a run as needed."""
        while True:
            if self._value is not None:
                return self._value

            task = self._task
            if task is None:
                task = self._start()
            elif self._task_generation != self._generation:
                # Stale run still in flight; let it settle before starting anew
                await asyncio.wait({task})
                continue

            return await asyncio.shield(task)

    def invalidate(self) -> None:
        self._generation += 1
        self._value = None

    def _start(self) -> asyncio.Task[T]:
        generation = self._generation
        task = asyncio.get_running_loop().create_task(self._loader())
        self._task = task
        self._task_generation = generation
        task.add_done_callback(partial(self._settle, generation))
        return task

    def _settle(self, generation: int, task: asyncio.Task[T]) -> None:
        if self._task is task:
            self._task = None
        if task.cancelled() or task.exception() is not None:
            return
        if generation == self._generation:
            self._value = task.result()


class MetadataCache:
    """Single-flight cache of template, library and category listings.

    Example:
        >>> cache = MetadataCache(Path("~/.projecthub/packs").expanduser())
        >>> templates = await cache.list_templates()
        >>> cache.invalidate()
    """

    def __init__(self, packs_root: Path):
        """Initialize the cache.

        Args:
            packs_root: Managed pack root directory.
        """
        self.packs_root = Path(packs_root)
        self._cells: dict[ContentType, SingleFlight[CacheSnapshot]] = {
            kind: SingleFlight(kind.section, partial(self._build, kind))
            for kind in ContentType
        }

    async def _build(self, kind: ContentType) -> CacheSnapshot:
        snapshot = await asyncio.to_thread(scan_pack_tree, self.packs_root, kind)
        logger.info("cache generate %s count=%d", kind.section, len(snapshot))
        return snapshot

    async def snapshot(self, kind: ContentType, source: str = "snapshot") -> CacheSnapshot:
        """Get the current snapshot for ``kind``, scanning if needed.

        Raises:
            OSError: If the pack root cannot be read. Nothing is memoized.
        """
        cell = self._cells[kind]
        if cell.state == CacheState.READY:
            logger.debug("cache read %s source=%s", kind.section, source)
        return await cell.get()

    async def list_templates(self, source: str = "list_templates") -> tuple[ContentDescriptor, ...]:
        """List all templates across installed packs."""
        return (await self.snapshot(ContentType.TEMPLATE, source)).entries

    async def list_libraries(self, source: str = "list_libraries") -> tuple[ContentDescriptor, ...]:
        """List all libraries across installed packs."""
        return (await self.snapshot(ContentType.LIBRARY, source)).entries

    async def list_categories(self, source: str = "list_categories") -> tuple[str, ...]:
        """List template categories, derived from the template snapshot."""
        return (await self.snapshot(ContentType.TEMPLATE, source)).categories

    async def find_template(self, reference: str) -> ContentDescriptor | None:
        """Find a template by id, source path or name (first match wins)."""
        templates = await self.list_templates("find_template")
        for attribute in ("id", "source_path", "name"):
            for template in templates:
                if getattr(template, attribute) == reference:
                    return template
        return None

    def state(self, kind: ContentType) -> CacheState:
        return self._cells[kind].state

    def invalidate(self, kind: ContentType | None = None) -> None:
        """Drop memoized snapshots so the next read rescans.

        Args:
            kind: Only invalidate this kind (default: all kinds).
        """
        kinds = [kind] if kind is not None else list(ContentType)
        for item in kinds:
            self._cells[item].invalidate()
        logger.info("cache clear %s", ",".join(item.section for item in kinds))
