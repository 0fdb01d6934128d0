"""Project metadata schema.

Projects are described by a ``metadata.yaml`` file written after templates
have been applied to a destination directory.
"""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


def utc_timestamp() -> str:
    """Current time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


class ProjectMeta(BaseModel):
    """Metadata describing a provisioned project."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: Literal["project"] = "project"
    name: str = Field(..., description="Project display name")
    description: str = Field("", description="Project description")
    version: str = Field("", description="Project version")
    last_edited: str = Field(
        default_factory=utc_timestamp, alias="lastEdited", description="Last edit time"
    )
    path: str = Field("", description="Destination directory of the project")
    template_used: list[str] = Field(
        default_factory=list, alias="templateUsed", description="Applied template names"
    )
    libraries_applied: list[str] = Field(
        default_factory=list, alias="librariesApplied", description="Applied libraries"
    )
    category: str | None = Field(None, description="Optional project category")
    source_path: str | None = Field(
        None, alias="sourcePath", description="Metadata file relative to projects dir"
    )

    def to_yaml_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys used on disk."""
        return self.model_dump(by_alias=True, exclude_none=True)
