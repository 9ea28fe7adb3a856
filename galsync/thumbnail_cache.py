"""
ThumbnailCache - On-disk cache of derived thumbnails keyed by (slug, stem).
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Set

from .thumbnail_generator import ThumbnailGenerator

CACHE_DIR = Path('.data') / 'thumbnails'
REMOTE_THUMBS_DIR = '.thumbs'


@dataclass(frozen=True)
class ThumbnailSpec:
    """
    A derived thumbnail and the source image it is generated from.

    Attributes:
        source_path: Original image
        derived_path: Cached thumbnail location
        slug: Gallery the thumbnail belongs to
        stem: Source file name without extension
        max_dimension: Longest edge of the thumbnail
        quality: Encoder quality
    """
    source_path: Path
    derived_path: Path
    slug: str
    stem: str
    max_dimension: int = 800
    quality: int = 85

    @property
    def source_modified_at(self) -> Optional[float]:
        return _mtime(self.source_path)

    @property
    def derived_modified_at(self) -> Optional[float]:
        return _mtime(self.derived_path)

    @property
    def filename(self) -> str:
        return self.derived_path.name

    def is_stale(self) -> bool:
        """
        True if the thumbnail is missing or older than its source.

        A thumbnail with the same mtime as its source counts as fresh.
        """
        derived = self.derived_modified_at
        if derived is None:
            return True
        source = self.source_modified_at
        return source is not None and source > derived


class ThumbnailCache:
    """
    Maps (gallery slug, file stem) to derived artifact paths and remote keys.

    The cache lives at {workspace}/.data/thumbnails/{slug}/{stem}.webp and is
    never part of the published manifest tree.
    """

    def __init__(
        self,
        workspace_root: Path,
        prefix: str,
        generator: Optional[ThumbnailGenerator] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.workspace_root = Path(workspace_root)
        self.prefix = prefix
        self.generator = generator or ThumbnailGenerator()
        self.logger = logger or logging.getLogger(__name__)

    @property
    def cache_root(self) -> Path:
        return self.workspace_root / CACHE_DIR

    def derived_path(self, slug: str, stem: str) -> Path:
        return self.cache_root / slug / f"{stem}{self.generator.OUTPUT_EXTENSION}"

    def remote_key(self, slug: str, stem: str) -> str:
        return f"{self.prefix}{slug}/{REMOTE_THUMBS_DIR}/{stem}{self.generator.OUTPUT_EXTENSION}"

    def spec_for(self, source_path: Path, slug: str) -> ThumbnailSpec:
        stem = Path(source_path).stem
        return ThumbnailSpec(
            source_path=Path(source_path),
            derived_path=self.derived_path(slug, stem),
            slug=slug,
            stem=stem,
            max_dimension=self.generator.size,
            quality=self.generator.quality,
        )

    def prune(self, keep: Iterable[Path]) -> int:
        """
        Remove cached thumbnails that are not in `keep`.

        Returns:
            Number of files removed
        """
        if not self.cache_root.is_dir():
            return 0

        keep_set: Set[Path] = {Path(p).resolve() for p in keep}
        removed = 0
        for path in sorted(self.cache_root.rglob('*')):
            if path.is_file() and path.resolve() not in keep_set:
                try:
                    path.unlink()
                    removed += 1
                except OSError as e:
                    self.logger.warning(f"Could not remove stale thumbnail {path}: {e}")

        for directory in sorted(self.cache_root.iterdir()):
            if directory.is_dir() and not any(directory.iterdir()):
                directory.rmdir()

        if removed:
            self.logger.info(f"Pruned {removed} unreferenced cached thumbnails")
        return removed


def _mtime(path: Path) -> Optional[float]:
    try:
        return os.stat(path).st_mtime
    except OSError:
        return None
