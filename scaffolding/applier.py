"""Template application engine.

Materializes a destination directory from an ordered list of normalized
templates. Existing files are never touched without a decision from the
conflict resolver; an "apply to all" answer is remembered for the rest of
the same ``apply()`` call.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Iterable, Union

from .templates import FileTemplate, NormalizedTemplate, PackTemplate, WorkspaceTemplate

logger = logging.getLogger(__name__)


class ConflictResolution(str, Enum):
    """Answer to an existing-file conflict."""

    OVERWRITE = "overwrite"
    SKIP = "skip"
    CANCEL = "cancel"


@dataclass(frozen=True)
class ConflictDecision:
    """A resolver's answer, optionally applying to every later conflict."""

    resolution: ConflictResolution
    apply_all: bool = False


ConflictResolver = Callable[[Path], Union[ConflictDecision, Awaitable[ConflictDecision]]]


class ApplyCancelled(Exception):
    """Raised when the resolver cancels template application."""

    def __init__(self, path: Path | None = None):
        self.path = path
        super().__init__("cancelled")


class ApplyError(Exception):
    """Raised when the destination cannot be prepared."""

    pass


@dataclass
class StickyDecision:
    """Conflict decision remembered within a single ``apply()`` call."""

    resolution: ConflictResolution | None = None

    @property
    def is_set(self) -> bool:
        return self.resolution is not None


@dataclass
class ApplyReport:
    """What an ``apply()`` call did."""

    destination: Path
    written: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    folders: list[Path] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)


def overwrite_all(path: Path) -> ConflictDecision:
    """Resolver that overwrites every conflicting file."""
    return ConflictDecision(ConflictResolution.OVERWRITE, apply_all=True)


def skip_all(path: Path) -> ConflictDecision:
    """Resolver that keeps every existing file."""
    return ConflictDecision(ConflictResolution.SKIP, apply_all=True)


def _inside(path: Path, root: Path) -> bool:
    return path.resolve().is_relative_to(root)


class TemplateApplier:
    """Apply normalized templates to a destination directory.

    Example:
        >>> applier = TemplateApplier(packs_root)
        >>> report = await applier.apply(Path("/out"), templates, resolver)
    """

    def __init__(self, packs_root: Path):
        self.packs_root = Path(packs_root)

    async def apply(
        self,
        destination: Path,
        templates: Iterable[NormalizedTemplate],
        resolver: ConflictResolver = skip_all,
    ) -> ApplyReport:
        """Apply ``templates`` in order.

        Args:
            destination: Directory to populate (created if missing).
            templates: Normalized templates, applied in the given order.
            resolver: Called for each existing file until a sticky decision
                is recorded. May be sync or async.

        Returns:
            Report of written, skipped and missing files.

        Raises:
            ApplyCancelled: The resolver chose cancel. Templates after the
                conflicting file are not applied.
            ApplyError: The destination cannot be created.
        """
        destination = Path(destination)
        try:
            await asyncio.to_thread(destination.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            raise ApplyError(f"Cannot create destination {destination}: {e}")

        run = _ApplyRun(
            packs_root=self.packs_root.resolve(),
            destination=destination.resolve(),
            resolver=resolver,
            sticky=StickyDecision(),
            report=ApplyReport(destination=destination),
        )
        for template in templates:
            logger.debug("Applying %s template %s", template.kind, template.name)
            if isinstance(template, WorkspaceTemplate):
                await run.create_folders(template)
            elif isinstance(template, FileTemplate):
                await run.write_file(template)
            elif isinstance(template, PackTemplate):
                await run.copy_pack(template)
            else:
                raise TypeError(f"Not a normalized template: {template!r}")

        report = run.report
        logger.info(
            "Applied templates to %s: %d written, %d skipped",
            destination,
            len(report.written),
            len(report.skipped),
        )
        return report


@dataclass
class _ApplyRun:
    """State of one ``apply()`` call."""

    packs_root: Path
    destination: Path
    resolver: ConflictResolver
    sticky: StickyDecision
    report: ApplyReport

    def _target(self, relative: str) -> Path:
        target = self.destination / relative
        if not _inside(target, self.destination):
            raise ApplyError(f"Refusing to write outside the destination: {relative}")
        return target

    async def should_write(self, target: Path) -> bool:
        """Decide whether ``target`` may be written, asking the resolver."""
        if not await asyncio.to_thread(target.exists):
            return True

        if self.sticky.is_set:
            resolution = self.sticky.resolution
        else:
            decision = self.resolver(target)
            if inspect.isawaitable(decision):
                decision = await decision
            resolution = ConflictResolution(decision.resolution)
            if decision.apply_all:
                self.sticky.resolution = resolution

        if resolution == ConflictResolution.CANCEL:
            logger.info("Template application cancelled at %s", target)
            raise ApplyCancelled(target)
        if resolution == ConflictResolution.SKIP:
            self.report.skipped.append(target)
            return False
        return True

    async def create_folders(self, template: WorkspaceTemplate) -> None:
        for folder in template.folders:
            target = self._target(folder)
            await asyncio.to_thread(target.mkdir, parents=True, exist_ok=True)
            self.report.folders.append(target)

    async def write_file(self, template: FileTemplate) -> None:
        target = self._target(template.filename)
        if not await self.should_write(target):
            return
        await asyncio.to_thread(_write_text, target, template.content)
        self.report.written.append(target)

    async def copy_pack(self, template: PackTemplate) -> None:
        source_root = self.packs_root / template.pack_path
        if not _inside(source_root, self.packs_root):
            logger.warning("Skipping %s: outside the pack root", template.pack_path)
            self.report.missing.append(template.pack_path)
            return

        if template.files:
            for source, target in template.files.items():
                await self.copy_file(source_root / source, self._target(target), source)
            return

        if not await asyncio.to_thread(source_root.is_dir):
            logger.warning("Skipping %s: source directory not found", template.pack_path)
            self.report.missing.append(template.pack_path)
            return

        for source in await asyncio.to_thread(_walk_files, source_root):
            relative = source.relative_to(source_root).as_posix()
            await self.copy_file(source, self._target(relative), relative)

    async def copy_file(self, source: Path, target: Path, label: str) -> None:
        if not _inside(source, self.packs_root):
            logger.warning("Skipping %s: outside the pack root", label)
            self.report.missing.append(label)
            return
        if not await asyncio.to_thread(source.is_file):
            logger.warning("Skipping %s: source file not found", source)
            self.report.missing.append(label)
            return
        if not await self.should_write(target):
            return
        await asyncio.to_thread(_copy_file, source, target)
        self.report.written.append(target)


def _walk_files(root: Path) -> list[Path]:
    return sorted(path for path in root.rglob("*") if path.is_file())


def _write_text(target: Path, content: str) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8", newline="\n") as f:
        f.write(content)


def _copy_file(source: Path, target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, target)
