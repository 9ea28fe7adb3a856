"""Tests for ThumbnailCache and ThumbnailStage."""

import os
from pathlib import Path

import pytest

from galsync.reachable_file import FileKind
from galsync.resolver import ManifestResolver
from galsync.thumbnail_cache import ThumbnailCache
from galsync.thumbnail_stage import ThumbnailStage

from .conftest import write_jpeg, write_json


def _age(path: Path, seconds: int) -> None:
    """Shift a file's mtime into the past."""
    stat = path.stat()
    os.utime(path, (stat.st_atime - seconds, stat.st_mtime - seconds))


class TestThumbnailCache:
    """Tests for ThumbnailCache."""

    @pytest.fixture
    def cache(self, workspace, logger):
        return ThumbnailCache(workspace, 'galleries/', logger=logger)

    def test_derived_path_is_deterministic(self, cache, workspace):
        spec = cache.spec_for(workspace / 'sunset' / '01.jpg', 'sunset')

        assert spec.derived_path == workspace / '.data' / 'thumbnails' / 'sunset' / '01.webp'
        assert cache.remote_key('sunset', '01') == 'galleries/sunset/.thumbs/01.webp'

    def test_missing_derived_is_stale(self, cache, workspace):
        spec = cache.spec_for(workspace / 'sunset' / '01.jpg', 'sunset')

        assert spec.derived_modified_at is None
        assert spec.is_stale()

    def test_newer_source_is_stale(self, cache, workspace):
        spec = cache.spec_for(workspace / 'sunset' / '01.jpg', 'sunset')
        spec.derived_path.parent.mkdir(parents=True)
        spec.derived_path.write_bytes(b'old')
        _age(spec.derived_path, 60)

        assert spec.is_stale()

    def test_older_source_is_fresh(self, cache, workspace):
        spec = cache.spec_for(workspace / 'sunset' / '01.jpg', 'sunset')
        spec.derived_path.parent.mkdir(parents=True)
        spec.derived_path.write_bytes(b'new')
        _age(spec.source_path, 60)

        assert not spec.is_stale()

    def test_prune_removes_unreferenced(self, cache):
        keep = cache.derived_path('sunset', '01')
        drop = cache.derived_path('old-gallery', 'gone')
        for path in (keep, drop):
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b'x')

        removed = cache.prune([keep])

        assert removed == 1
        assert keep.exists()
        assert not drop.exists()
        assert not drop.parent.exists()


class TestThumbnailStage:
    """Tests for ThumbnailStage."""

    @pytest.fixture
    def resolved(self, workspace, logger):
        return ManifestResolver('galleries/', logger=logger).resolve(workspace).files

    @pytest.fixture
    def stage(self, workspace, logger):
        return ThumbnailStage(ThumbnailCache(workspace, 'galleries/', logger=logger), logger=logger)

    def test_generates_and_rewrites(self, stage, resolved, workspace):
        results = stage.process(resolved)

        assert results.generated == 2
        assert results.skipped == 0
        thumbs = [f for f in results.files if f.kind == FileKind.THUMBNAIL]
        assert [t.remote_key for t in thumbs] == [
            'galleries/sunset/.thumbs/01.webp',
            'galleries/sunset/.thumbs/02.webp',
        ]
        for thumb in thumbs:
            assert thumb.local_path.parent == workspace / '.data' / 'thumbnails' / 'sunset'
            assert thumb.local_path.is_file()
        assert len(results.files) == 6

    def test_does_not_touch_manifests(self, stage, resolved, workspace):
        before = (workspace / 'sunset' / 'gallery-details.json').read_bytes()

        stage.process(resolved)

        assert (workspace / 'sunset' / 'gallery-details.json').read_bytes() == before

    def test_progress_includes_fresh_thumbnails(self, stage, resolved):
        stage.process(resolved)
        events = []

        results = stage.process(resolved, progress=events.append)

        assert results.generated == 0
        assert results.skipped == 2
        assert [(e.current, e.total) for e in events] == [(1, 2), (2, 2)]
        assert [e.filename for e in events] == ['01.webp', '02.webp']

    def test_regenerates_only_touched_source(self, stage, resolved, workspace):
        first = stage.process(resolved)
        spec = next(s for s in first.specs if s.stem == '02')
        newer = spec.derived_path.stat().st_mtime + 5
        os.utime(spec.source_path, (newer, newer))

        results = stage.process(resolved)

        assert results.generated == 1
        assert results.skipped == 1

    def test_undecodable_source_falls_back(self, stage, workspace, logger):
        (workspace / 'sunset' / '02.jpg').write_bytes(b'not really a jpeg')
        files = ManifestResolver('galleries/', logger=logger).resolve(workspace).files

        results = stage.process(files)

        assert results.generated == 1
        assert len(results.errors) == 1
        keys = [f.remote_key for f in results.files]
        assert 'galleries/sunset/02.jpg' in keys
        assert 'galleries/sunset/.thumbs/02.webp' not in keys
        assert len(keys) == len(set(keys))

    def test_separate_cover_gets_its_own_thumbnail(self, stage, workspace, logger):
        write_jpeg(workspace / 'sunset' / 'cover.jpg', 1000, 1000, color='yellow')
        write_json(workspace / 'galleries.json', [{'slug': 'sunset', 'cover': 'sunset/cover.jpg'}])
        files = ManifestResolver('galleries/', logger=logger).resolve(workspace).files

        results = stage.process(files)

        assert results.generated == 3
        assert [f.remote_key for f in results.files] == [
            'galleries/galleries.json',
            'galleries/sunset/cover.jpg',
            'galleries/sunset/.thumbs/cover.webp',
            'galleries/sunset/gallery-details.json',
            'galleries/sunset/.thumbs/01.webp',
            'galleries/sunset/01.jpg',
            'galleries/sunset/.thumbs/02.webp',
            'galleries/sunset/02.jpg',
        ]
        cover_thumb = results.files[2]
        assert cover_thumb.kind == FileKind.THUMBNAIL
        assert cover_thumb.local_path == workspace / '.data' / 'thumbnails' / 'sunset' / 'cover.webp'

    def test_cover_shared_with_photo_is_generated_once(self, stage, resolved):
        events = []

        results = stage.process(resolved, progress=events.append)

        assert [s.stem for s in results.specs] == ['01', '02']
        assert len(events) == 2
        keys = [f.remote_key for f in results.files]
        assert keys.count('galleries/sunset/.thumbs/01.webp') == 1
        assert keys[:3] == [
            'galleries/galleries.json',
            'galleries/sunset/01.jpg',
            'galleries/sunset/.thumbs/01.webp',
        ]

    def test_cover_outside_gallery_folder(self, stage, workspace, logger):
        write_jpeg(workspace / 'covers' / 'sunset.jpg', 400, 300)
        write_json(workspace / 'galleries.json', [{'slug': 'sunset', 'cover': 'covers/sunset.jpg'}])
        files = ManifestResolver('galleries/', logger=logger).resolve(workspace).files

        results = stage.process(files)

        keys = [f.remote_key for f in results.files]
        assert 'galleries/covers/sunset.jpg' in keys
        assert 'galleries/covers/.thumbs/sunset.webp' in keys

    def test_failed_cover_thumbnail_keeps_original(self, stage, workspace, logger):
        (workspace / 'sunset' / 'cover.jpg').write_bytes(b'broken')
        write_json(workspace / 'galleries.json', [{'slug': 'sunset', 'cover': 'sunset/cover.jpg'}])
        files = ManifestResolver('galleries/', logger=logger).resolve(workspace).files

        results = stage.process(files)

        keys = [f.remote_key for f in results.files]
        assert 'galleries/sunset/cover.jpg' in keys
        assert 'galleries/sunset/.thumbs/cover.webp' not in keys
        assert len(results.errors) == 1
