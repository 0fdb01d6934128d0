"""Project metadata store.

Each provisioned project has a directory under the projects root holding a
``metadata.yaml`` file. The project's files themselves live at the
destination recorded in that metadata.
"""

import logging
import re
import shutil
from pathlib import Path

import yaml
from pydantic import ValidationError

from schemas.project import ProjectMeta

logger = logging.getLogger(__name__)

METADATA_FILES = ("metadata.yaml", "metadata.yml")


class ProjectError(Exception):
    """Raised when project metadata cannot be stored or removed."""

    pass


def safe_project_name(name: str) -> str:
    """Directory name for a project: whitespace to underscores, lowercase."""
    safe = re.sub(r"\s+", "_", name.strip()).lower()
    safe = safe.replace("/", "_").replace("\\", "_")
    if not safe or safe.startswith("."):
        raise ProjectError(f"Invalid project name: {name!r}")
    return safe


class ProjectStore:
    """Read and write project metadata under ``projects_dir``.

    Usage:
        store = ProjectStore(Path("~/.projecthub/projects").expanduser())
        meta = store.create_project_file("my_app", ProjectMeta(name="My App"))
        store.list_projects()
    """

    def __init__(self, projects_dir: Path):
        self.projects_dir = Path(projects_dir)

    def _metadata_path(self, project_dir: Path) -> Path | None:
        for candidate in METADATA_FILES:
            path = project_dir / candidate
            if path.is_file():
                return path
        # Fall back to the first YAML file in the directory
        yaml_files = sorted(
            p for p in project_dir.iterdir() if p.suffix in (".yaml", ".yml") and p.is_file()
        )
        return yaml_files[0] if yaml_files else None

    def list_projects(self) -> list[ProjectMeta]:
        """List projects, skipping directories with unreadable metadata.

        Raises:
            OSError: If the projects directory cannot be read.
        """
        if not self.projects_dir.exists():
            return []

        projects: list[ProjectMeta] = []
        for project_dir in sorted(self.projects_dir.iterdir(), key=lambda p: p.name):
            if not project_dir.is_dir():
                continue
            meta_path = self._metadata_path(project_dir)
            if meta_path is None:
                continue
            try:
                with open(meta_path, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f)
                if not isinstance(data, dict):
                    continue
                meta = ProjectMeta.model_validate(data)
            except (OSError, yaml.YAMLError, ValidationError) as e:
                logger.warning("Ignoring project metadata %s: %s", meta_path, e)
                continue
            if not meta.source_path:
                meta.source_path = meta_path.relative_to(self.projects_dir).as_posix()
            projects.append(meta)
        return projects

    def create_project_file(self, name: str, meta: ProjectMeta) -> ProjectMeta:
        """Write ``meta`` to ``<projects_dir>/<name>/metadata.yaml``.

        A ``.json``/``.yaml``/``.yml`` suffix on ``name`` is dropped.

        Returns:
            The stored metadata, with ``source_path`` set.
        """
        base = Path(name)
        if base.suffix in (".json", ".yaml", ".yml"):
            base = base.with_suffix("")
        project_dir = self.projects_dir / safe_project_name(base.name)
        target = project_dir / METADATA_FILES[0]

        stored = meta.model_copy(
            update={"source_path": target.relative_to(self.projects_dir).as_posix()}
        )
        try:
            project_dir.mkdir(parents=True, exist_ok=True)
            with open(target, "w", encoding="utf-8") as f:
                yaml.safe_dump(stored.to_yaml_dict(), f, sort_keys=False, allow_unicode=True)
        except OSError as e:
            raise ProjectError(f"Cannot write project metadata {target}: {e}")

        logger.info("Saved project %s to %s", stored.name, target)
        return stored

    def delete_project(self, relative_path: str, folder_path: str | Path | None = None) -> None:
        """Delete a project's metadata (and optionally its folder).

        Args:
            relative_path: Metadata path relative to the projects directory.
            folder_path: Project destination to delete as well.

        Raises:
            ProjectError: If the path escapes the projects directory or
                deletion fails.
        """
        root = self.projects_dir.resolve()
        target = (root / relative_path).resolve()
        if target == root or not target.is_relative_to(root):
            raise ProjectError(f"Path is outside the projects directory: {relative_path}")

        try:
            if folder_path:
                shutil.rmtree(Path(folder_path).expanduser().resolve(), ignore_errors=True)

            if target.is_dir():
                shutil.rmtree(target)
            else:
                target.unlink(missing_ok=True)
                # Metadata inside a project dir: remove the dir too
                if target.parent != root:
                    shutil.rmtree(target.parent, ignore_errors=True)
        except OSError as e:
            raise ProjectError(f"Cannot delete project {relative_path}: {e}")

        logger.info("Deleted project %s", relative_path)
