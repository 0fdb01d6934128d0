"""Schemas module for structured ProjectHub data.

Provides models for:
- Content descriptors and cache snapshots derived from packs
- Project metadata
- The success/failure operation envelope
"""

from .content import CacheSnapshot, ContentDescriptor, ContentType
from .project import ProjectMeta, utc_timestamp
from .result import CANCELLED, OperationResult

__all__ = [
    # Content
    "CacheSnapshot",
    "ContentDescriptor",
    "ContentType",
    # Projects
    "ProjectMeta",
    "utc_timestamp",
    # Envelope
    "CANCELLED",
    "OperationResult",
]
