"""
ReachableFile - A local file that must exist remotely after publishing.
"""

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path


class FileKind(str, Enum):
    """Why a file is part of the reachable set."""

    MANIFEST = 'manifest'
    COVER = 'cover'
    THUMBNAIL = 'thumbnail'
    FULL = 'full'
    STATIC_ASSET = 'staticAsset'


@dataclass(frozen=True)
class ReachableFile:
    """
    A file reachable from the root manifest.

    Attributes:
        local_path: Absolute path of the bytes to publish
        remote_key: Object key the file is published under
        kind: Role of the file in the manifest graph
        slug: Gallery the file belongs to ('' for root-level files)
        rel_path: Workspace-relative path of the source file
    """
    local_path: Path
    remote_key: str
    kind: FileKind
    slug: str = ''
    rel_path: str = ''

    @property
    def filename(self) -> str:
        return self.local_path.name

    def as_thumbnail(self, local_path: Path, remote_key: str, slug: str) -> 'ReachableFile':
        """Return a thumbnail entry that publishes a derived artifact under its own key."""
        return replace(
            self, local_path=local_path, remote_key=remote_key, kind=FileKind.THUMBNAIL, slug=slug
        )
