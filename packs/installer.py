"""Pack installer for ProjectHub.

Handles downloading, verifying, installing and removing packs under the
managed pack root. Every public operation returns an ``OperationResult``;
failures are reported, never raised.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import posixpath
import shutil
import tempfile
import time
from pathlib import Path
from typing import Awaitable, Callable, Union
from urllib.parse import unquote, urlsplit

from schemas.result import OperationResult

from .archive import ArchiveError, EmptyArchiveError, extract_archive, list_entries
from .cache import MetadataCache
from .checksum import ChecksumError, verify_checksum
from .fetcher import FetchError, RemoteFetcher

logger = logging.getLogger(__name__)

STAGING_PREFIX = ".staging-"

ConfirmCallback = Callable[[Path], Union[bool, Awaitable[bool]]]


class InstallError(Exception):
    """Raised when pack installation fails."""

    pass


def derive_pack_name(url: str, now: float | None = None) -> str:
    """Derive the pack directory name from a download URL.

    The final path segment without its ``.zip`` suffix, or ``pack-<ms>`` when
    that leaves nothing usable.
    """
    segment = unquote(posixpath.basename(urlsplit(url).path.rstrip("/")))
    if segment.lower().endswith(".zip"):
        segment = segment[:-4]
    segment = segment.strip()
    if not segment or segment.startswith(".") or "/" in segment or "\\" in segment:
        millis = int((now if now is not None else time.time()) * 1000)
        return f"pack-{millis}"
    return segment


class PackInstaller:
    """Install and remove packs.

    Example:
        >>> installer = PackInstaller(packs_root, cache)
        >>> await installer.install("https://example.com/demo.zip", "sha256:...")
        >>> await installer.remove("demo")
    """

    def __init__(
        self,
        packs_root: Path,
        cache: MetadataCache | None = None,
        fetcher: RemoteFetcher | None = None,
    ):
        """Initialize the installer.

        Args:
            packs_root: Managed pack root directory.
            cache: Metadata cache to invalidate after changes.
            fetcher: Remote fetcher for downloads.
        """
        self.packs_root = Path(packs_root)
        self.cache = cache
        self.fetcher = fetcher or RemoteFetcher()

    async def install(
        self, url: str, expected_checksum: str | None = None
    ) -> OperationResult[dict]:
        """Install (or replace) a pack from a remote zip archive.

        Args:
            url: Archive URL.
            expected_checksum: Optional ``[algorithm:]hexdigest``.

        Returns:
            Success with the installed pack's name and path, or a failure.
        """
        scratch: Path | None = None
        staging: Path | None = None
        try:
            scratch = await self.fetcher.download_to_scratch(url)
            await asyncio.to_thread(verify_checksum, scratch, expected_checksum)

            entries = await asyncio.to_thread(list_entries, scratch)
            if not entries:
                raise EmptyArchiveError(f"Archive from {url} is empty")

            name = derive_pack_name(url)
            target = self.packs_root / name

            await asyncio.to_thread(self.packs_root.mkdir, parents=True, exist_ok=True)
            staging = Path(tempfile.mkdtemp(prefix=STAGING_PREFIX, dir=self.packs_root))
            await asyncio.to_thread(extract_archive, scratch, staging)
            await asyncio.to_thread(self._swap, staging, target)
            staging = None
        except (FetchError, ChecksumError, ArchiveError, InstallError, OSError) as e:
            logger.error("Pack install from %s failed: %s", url, e)
            return OperationResult.failure(str(e))
        finally:
            if scratch is not None:
                scratch.unlink(missing_ok=True)
            if staging is not None:
                shutil.rmtree(staging, ignore_errors=True)

        self._invalidate()
        logger.info("Installed pack %s from %s", name, url)
        return OperationResult.success({"name": name, "path": str(target)})

    def _swap(self, staging: Path, target: Path) -> None:
        """Replace ``target`` with the fully extracted ``staging`` directory."""
        if target.exists():
            if target.is_dir() and not target.is_symlink():
                shutil.rmtree(target)
            else:
                target.unlink()
        staging.replace(target)

    async def remove(
        self,
        name: str,
        known_path: str | Path | None = None,
        confirm: ConfirmCallback | None = None,
    ) -> OperationResult[dict]:
        """Remove an installed pack.

        Candidates are tried in order: ``known_path`` (only inside the pack
        root), the pack root joined with its basename, then the pack root
        joined with ``name``. The first that exists is removed.

        Args:
            name: Pack name.
            known_path: Path previously reported for the pack.
            confirm: Optional callback asked before deleting.

        Returns:
            Success with the removed path, ``cancelled`` when declined, or a
            failure when no candidate exists.
        """
        target = self._find_removal_target(name, known_path)
        if target is None:
            return OperationResult.failure(f"Pack not found: {name}")

        if confirm is not None:
            answer = confirm(target)
            if inspect.isawaitable(answer):
                answer = await answer
            if not answer:
                return OperationResult.cancelled()

        try:
            await asyncio.to_thread(shutil.rmtree, target)
        except OSError as e:
            logger.error("Failed to remove pack %s: %s", target, e)
            return OperationResult.failure(str(e))

        self._invalidate()
        logger.info("Removed pack %s", target)
        return OperationResult.success({"name": name, "path": str(target)})

    def _find_removal_target(self, name: str, known_path: str | Path | None) -> Path | None:
        root = self.packs_root.resolve()
        candidates: list[Path] = []

        if known_path:
            explicit = Path(known_path).expanduser()
            resolved = explicit.resolve()
            if resolved.is_relative_to(root) and resolved != root:
                candidates.append(resolved)
            else:
                logger.warning("Ignoring pack path outside the pack root: %s", explicit)
            if explicit.name:
                candidates.append(root / explicit.name)

        if name:
            candidates.append(root / name)

        for candidate in candidates:
            if candidate.name.startswith(".") or candidate == root:
                continue
            if candidate.is_dir() and candidate.resolve().is_relative_to(root):
                return candidate
        return None

    def _invalidate(self) -> None:
        if self.cache is not None:
            self.cache.invalidate()
