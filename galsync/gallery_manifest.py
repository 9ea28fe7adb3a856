"""
Gallery manifests - Immutable snapshots of galleries.json and gallery-details.json.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple

from .errors import ResolutionError

ROOT_MANIFEST = 'galleries.json'
DETAIL_MANIFEST = 'gallery-details.json'


@dataclass(frozen=True)
class GalleryEntry:
    """
    One gallery summary from the root manifest.

    Attributes:
        slug: Directory name of the gallery under the workspace root
        cover: Cover image path relative to the workspace root
        name: Display name
        date: Display date
    """
    slug: str
    cover: str = ''
    name: str = ''
    date: str = ''

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GalleryEntry':
        slug = data.get('slug')
        if not isinstance(slug, str) or not slug.strip():
            raise ValueError(f"gallery entry has no slug: {data!r}")
        return cls(
            slug=slug.strip(),
            cover=data.get('cover') or '',
            name=data.get('name') or '',
            date=data.get('date') or '',
        )


@dataclass(frozen=True)
class PhotoEntry:
    """
    One photo from a detail manifest.

    Paths are relative to the gallery directory.
    """
    thumbnail: str = ''
    full: str = ''
    alt: str = ''

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PhotoEntry':
        return cls(
            thumbnail=data.get('thumbnail') or '',
            full=data.get('full') or '',
            alt=data.get('alt') or '',
        )


@dataclass(frozen=True)
class GalleryDetails:
    """Parsed gallery-details.json for a single gallery."""
    slug: str
    name: str = ''
    description: str = ''
    photos: Tuple[PhotoEntry, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, slug: str, data: Dict[str, Any]) -> 'GalleryDetails':
        photos = data.get('photos', [])
        if not isinstance(photos, list):
            raise ValueError("'photos' is not a list")
        return cls(
            slug=slug,
            name=data.get('name') or '',
            description=data.get('description') or '',
            photos=tuple(PhotoEntry.from_dict(p) for p in photos if isinstance(p, dict)),
        )


@dataclass(frozen=True)
class ManifestGraph:
    """
    The root manifest plus one detail manifest per gallery.

    Attributes:
        galleries: Gallery summaries in root-manifest order
        details: Detail manifest per gallery slug
    """
    galleries: Tuple[GalleryEntry, ...]
    details: Dict[str, GalleryDetails]

    def details_for(self, slug: str) -> GalleryDetails:
        return self.details[slug]

    @staticmethod
    def parse_galleries(raw: Any) -> List[Dict[str, Any]]:
        """
        Extract the gallery list from either the current
        ({"schemaVersion": N, "galleries": [...]}) or legacy (bare array) format.
        """
        if isinstance(raw, list):
            galleries = raw
        elif isinstance(raw, dict) and isinstance(raw.get('galleries'), list):
            galleries = raw['galleries']
        else:
            raise ValueError("expected a list of galleries or an object with a 'galleries' list")
        for entry in galleries:
            if not isinstance(entry, dict):
                raise ValueError(f"gallery entry is not an object: {entry!r}")
        return galleries

    @classmethod
    def load(cls, workspace_root: Path) -> 'ManifestGraph':
        """
        Parse the root manifest and every referenced detail manifest.

        Raises:
            ResolutionError: if any manifest is missing or malformed
        """
        root_path = Path(workspace_root) / ROOT_MANIFEST
        raw = _read_json(root_path, ROOT_MANIFEST)
        try:
            galleries = tuple(GalleryEntry.from_dict(g) for g in cls.parse_galleries(raw))
        except ValueError as e:
            raise ResolutionError(f"Invalid {ROOT_MANIFEST}: {e}", file=ROOT_MANIFEST) from e

        details = {}
        for gallery in galleries:
            if gallery.slug in details:
                raise ResolutionError(
                    f"Duplicate gallery slug '{gallery.slug}' in {ROOT_MANIFEST}",
                    file=ROOT_MANIFEST,
                )
            rel = f"{gallery.slug}/{DETAIL_MANIFEST}"
            gallery_dir = Path(workspace_root) / gallery.slug
            if not gallery_dir.is_dir():
                raise ResolutionError(
                    f"Gallery '{gallery.slug}' has no directory in the workspace", file=rel
                )
            data = _read_json(gallery_dir / DETAIL_MANIFEST, rel)
            if not isinstance(data, dict):
                raise ResolutionError(f"Invalid {rel}: expected an object", file=rel)
            try:
                details[gallery.slug] = GalleryDetails.from_dict(gallery.slug, data)
            except ValueError as e:
                raise ResolutionError(f"Invalid {rel}: {e}", file=rel) from e

        return cls(galleries=galleries, details=details)


def _read_json(path: Path, rel: str) -> Any:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise ResolutionError(f"Manifest not found: {rel}", file=rel) from e
    except (OSError, ValueError) as e:
        raise ResolutionError(f"Cannot parse {rel}: {e}", file=rel) from e
