"""
ThumbnailStage - Ensures derived thumbnails exist and rewrites the reachable set.
"""

import logging
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from .errors import ThumbnailGenerationError
from .events import ThumbnailProgressEvent
from .reachable_file import FileKind, ReachableFile
from .thumbnail_cache import ThumbnailCache, ThumbnailSpec

ThumbnailProgressCallback = Callable[[ThumbnailProgressEvent], None]


@dataclass
class ThumbnailResults:
    """
    Outcome of a thumbnail pass.

    Attributes:
        files: Reachable set with thumbnail entries pointing at derived artifacts
        generated: Thumbnails (re)generated this run
        skipped: Thumbnails found fresh
        errors: (source path, message) for thumbnails that fell back to the original
        specs: Every spec considered, in processing order
    """
    files: List[ReachableFile] = field(default_factory=list)
    generated: int = 0
    skipped: int = 0
    errors: List[Tuple[Path, str]] = field(default_factory=list)
    specs: List[ThumbnailSpec] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.generated + self.skipped + len(self.errors)


class ThumbnailStage:
    """
    Produces the publish-time view of the reachable set.

    For every thumbnail and cover entry a WebP artifact is generated into
    the local cache when stale and published under
    {prefix}{slug}/.thumbs/{stem}.webp. Artifacts are deduplicated by cache
    path. Manifests on disk are never modified.
    """

    def __init__(self, cache: ThumbnailCache, logger: Optional[logging.Logger] = None):
        """
        Initialize thumbnail stage.

        Args:
            cache: Thumbnail cache for the workspace
            logger: Optional logger instance
        """
        self.cache = cache
        self.logger = logger or logging.getLogger(__name__)

    def process(
        self,
        files: Sequence[ReachableFile],
        progress: Optional[ThumbnailProgressCallback] = None
    ) -> ThumbnailResults:
        """
        Ensure thumbnails for all thumbnail and cover entries and return the
        rewritten set.

        Thumbnail entries are replaced by their derived artifact. Cover
        entries keep the original and gain a derived thumbnail entry right
        after them. Generation failures are non-fatal: the entry keeps
        publishing the original image.
        """
        results = ThumbnailResults()
        sources = [
            (pos, f) for pos, f in enumerate(files)
            if f.kind in (FileKind.THUMBNAIL, FileKind.COVER)
        ]

        specs: Dict[Path, ThumbnailSpec] = {}
        spec_of: Dict[int, ThumbnailSpec] = {}
        for pos, entry in sources:
            spec = self.cache.spec_for(entry.local_path, self._thumb_slug(entry))
            spec_of[pos] = specs.setdefault(spec.derived_path, spec)

        total = len(specs)
        self.logger.info(f"Checking {total} thumbnails")

        usable: Set[Path] = set()
        for index, spec in enumerate(specs.values(), start=1):
            results.specs.append(spec)
            if self._ensure(spec, results):
                usable.add(spec.derived_path)
            if progress:
                progress(ThumbnailProgressEvent(current=index, total=total, filename=spec.filename))

        derived: Dict[int, ReachableFile] = {}
        for pos, entry in sources:
            spec = spec_of[pos]
            if spec.derived_path in usable:
                derived[pos] = entry.as_thumbnail(
                    local_path=spec.derived_path,
                    remote_key=self.cache.remote_key(spec.slug, spec.stem),
                    slug=spec.slug,
                )

        results.files = self._rewrite(files, derived)

        self.logger.info(
            f"Thumbnails: {results.generated} generated, {results.skipped} fresh, "
            f"{len(results.errors)} errors"
        )
        return results

    @staticmethod
    def _thumb_slug(entry: ReachableFile) -> str:
        """Cache directory for an entry: the cover's own folder, or the gallery slug."""
        if entry.kind == FileKind.COVER:
            return posixpath.dirname(entry.rel_path) or entry.slug
        return entry.slug

    def _ensure(self, spec: ThumbnailSpec, results: ThumbnailResults) -> bool:
        """Generate the thumbnail if stale. Returns True if a usable artifact exists."""
        if not spec.is_stale():
            results.skipped += 1
            return True

        try:
            self.logger.debug(f"Generating thumbnail: {spec.source_path} -> {spec.derived_path}")
            size = self.cache.generator.generate_file(spec.source_path, spec.derived_path)
        except ThumbnailGenerationError as e:
            self.logger.warning(
                f"Thumbnail failed for {spec.source_path.name}, publishing original instead: {e}"
            )
            results.errors.append((spec.source_path, str(e)))
            return False

        self.logger.debug(f"Generated: {spec.filename} ({size} bytes)")
        results.generated += 1
        return True

    @staticmethod
    def _rewrite(
        files: Sequence[ReachableFile],
        derived: Dict[int, ReachableFile]
    ) -> List[ReachableFile]:
        """
        Apply rewrites by position, dropping later entries whose key repeats.

        A cover is kept as is and followed by its derived thumbnail.
        """
        rewritten = []
        seen: Set[str] = set()

        def keep(entry: ReachableFile) -> None:
            if entry.remote_key not in seen:
                seen.add(entry.remote_key)
                rewritten.append(entry)

        for pos, entry in enumerate(files):
            thumb = derived.get(pos)
            if entry.kind == FileKind.COVER:
                keep(entry)
                if thumb is not None:
                    keep(thumb)
            else:
                keep(thumb or entry)
        return rewritten
