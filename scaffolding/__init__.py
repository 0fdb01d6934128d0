"""Project scaffolding module for ProjectHub.

Creates projects from pack templates with:
- Normalized templates (workspace folders, generated files, pack copies)
- Conflict-aware application to a destination directory
- Project metadata stored under the projects directory
"""

from .applier import (
    ApplyCancelled,
    ApplyError,
    ApplyReport,
    ConflictDecision,
    ConflictResolution,
    StickyDecision,
    TemplateApplier,
    overwrite_all,
    skip_all,
)
from .generator import ProjectGenerator
from .projects import ProjectError, ProjectStore, safe_project_name
from .templates import (
    FileTemplate,
    NormalizedTemplate,
    PackTemplate,
    TemplateError,
    WorkspaceTemplate,
    normalize_template,
    normalize_templates,
)

__all__ = [
    # Applier
    "ApplyCancelled",
    "ApplyError",
    "ApplyReport",
    "ConflictDecision",
    "ConflictResolution",
    "StickyDecision",
    "TemplateApplier",
    "overwrite_all",
    "skip_all",
    # Generator
    "ProjectGenerator",
    # Projects
    "ProjectError",
    "ProjectStore",
    "safe_project_name",
    # Templates
    "FileTemplate",
    "NormalizedTemplate",
    "PackTemplate",
    "TemplateError",
    "WorkspaceTemplate",
    "normalize_template",
    "normalize_templates",
]
