"""
ManifestResolver - Derives the reachable file set from the workspace manifests.
"""

import logging
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Set, Tuple

from .errors import MissingAssetWarning
from .gallery_manifest import DETAIL_MANIFEST, ROOT_MANIFEST, ManifestGraph
from .reachable_file import FileKind, ReachableFile


@dataclass
class Resolution:
    """
    Result of resolving a workspace.

    Attributes:
        files: Reachable files in manifest order
        warnings: Referenced files that are absent on disk
    """
    files: List[ReachableFile] = field(default_factory=list)
    warnings: List[MissingAssetWarning] = field(default_factory=list)

    def of_kind(self, kind: FileKind) -> List[ReachableFile]:
        return [f for f in self.files if f.kind == kind]


class ManifestResolver:
    """
    Walks galleries.json and each gallery-details.json to produce the
    authoritative, ordered list of files that must be published.

    Resolution is a pure traversal of a parsed ManifestGraph; nothing on
    disk is modified.
    """

    def __init__(
        self,
        prefix: str,
        static_assets: Sequence[str] = (),
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize resolver.

        Args:
            prefix: Normalised remote key prefix (ends with '/')
            static_assets: Workspace-relative site files always published
            logger: Optional logger instance
        """
        self.prefix = prefix
        self.static_assets = tuple(static_assets)
        self.logger = logger or logging.getLogger(__name__)

    def resolve(self, workspace_root) -> Resolution:
        """
        Resolve the reachable set for a workspace.

        Raises:
            ResolutionError: if a manifest is missing or malformed
        """
        root = Path(workspace_root)
        graph = ManifestGraph.load(root)
        return self.resolve_graph(root, graph)

    def resolve_graph(self, root: Path, graph: ManifestGraph) -> Resolution:
        """Resolve the reachable set from an already-parsed manifest graph."""
        result = _Collector(root, self.prefix)

        result.add(ROOT_MANIFEST, FileKind.MANIFEST, '', ROOT_MANIFEST)

        for gallery in graph.galleries:
            if gallery.cover:
                result.add(gallery.cover, FileKind.COVER, gallery.slug, ROOT_MANIFEST)

            detail_rel = f"{gallery.slug}/{DETAIL_MANIFEST}"
            result.add(detail_rel, FileKind.MANIFEST, gallery.slug, ROOT_MANIFEST)

            for photo in graph.details_for(gallery.slug).photos:
                if photo.thumbnail:
                    result.add(
                        posixpath.join(gallery.slug, photo.thumbnail),
                        FileKind.THUMBNAIL, gallery.slug, detail_rel,
                    )
                if photo.full:
                    result.add(
                        posixpath.join(gallery.slug, photo.full),
                        FileKind.FULL, gallery.slug, detail_rel,
                    )

        for asset in self.static_assets:
            result.add(asset, FileKind.STATIC_ASSET, '', 'static asset bundle')

        for warning in result.resolution.warnings:
            self.logger.warning(str(warning))

        self.logger.debug(
            f"Resolved {len(result.resolution.files)} reachable files "
            f"({len(result.resolution.warnings)} missing)"
        )
        return result.resolution


class _Collector:
    """Accumulates reachable files in order, deduplicating as it goes."""

    def __init__(self, root: Path, prefix: str):
        self.root = root
        self.prefix = prefix
        self.resolution = Resolution()
        self._seen_keys: Set[str] = set()
        self._seen_thumbs: Set[Tuple[str, str]] = set()

    def add(self, reference: str, kind: FileKind, slug: str, referenced_by: str) -> None:
        rel = _normalize_reference(reference)
        if rel is None:
            self.resolution.warnings.append(MissingAssetWarning(reference, referenced_by))
            return

        local_path = self.root / rel
        if not local_path.is_file():
            self.resolution.warnings.append(MissingAssetWarning(rel, referenced_by))
            return

        remote_key = f"{self.prefix}{rel}"
        if kind == FileKind.THUMBNAIL:
            # Thumbnail keys are rewritten to derived artifacts later, so they
            # only collide with other thumbnails of the same derived identity.
            identity = (slug, posixpath.splitext(posixpath.basename(rel))[0])
            if identity in self._seen_thumbs:
                return
            self._seen_thumbs.add(identity)
        else:
            if remote_key in self._seen_keys:
                return
            self._seen_keys.add(remote_key)

        self.resolution.files.append(
            ReachableFile(
                local_path=local_path,
                remote_key=remote_key,
                kind=kind,
                slug=slug,
                rel_path=rel,
            )
        )


def _normalize_reference(reference: str) -> Optional[str]:
    """Normalise a manifest path; None if it escapes the workspace."""
    rel = posixpath.normpath(reference.replace('\\', '/').strip())
    if rel in ('', '.') or rel.startswith('/') or rel == '..' or rel.startswith('../'):
        return None
    return rel
