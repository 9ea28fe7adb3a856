"""
Errors - Exception taxonomy for the publish engine.
"""

from dataclasses import dataclass
from typing import Optional


class GalsyncError(Exception):
    """Base class for all publish engine errors."""

    def __init__(self, message: str, file: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.file = file or ''


class ResolutionError(GalsyncError):
    """Root or detail manifest is missing or malformed. Aborts preview."""


class ThumbnailGenerationError(GalsyncError):
    """A source image could not be processed. Non-fatal per file."""


class HashComputationError(GalsyncError):
    """A reachable file could not be read for hashing. Aborts planning."""


class RemoteListError(GalsyncError):
    """The remote listing call failed. Aborts preview."""


class UploadError(GalsyncError):
    """An upload action failed during execution."""


class DeleteError(GalsyncError):
    """A delete action failed during execution."""


class InvalidationError(GalsyncError):
    """CDN invalidation failed or timed out after a successful sync."""


class PublishInProgressError(GalsyncError):
    """Another preview or execute is already active for this engine."""


class PlanNotFoundError(GalsyncError):
    """No stored plan has the requested id."""


@dataclass(frozen=True)
class MissingAssetWarning:
    """
    A file referenced by a manifest that does not exist on disk.

    Attributes:
        path: Workspace-relative reference as written in the manifest
        referenced_by: Manifest that holds the reference
    """
    path: str
    referenced_by: str

    def __str__(self) -> str:
        return f"Missing file {self.path} (referenced by {self.referenced_by})"
