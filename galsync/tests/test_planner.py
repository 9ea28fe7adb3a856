"""Tests for DiffPlanner and its helpers."""

import hashlib

import pytest

from galsync.errors import HashComputationError, RemoteListError
from galsync.planner import DiffPlanner, compute_md5, content_type_for, is_multipart_etag
from galsync.reachable_file import FileKind, ReachableFile


def _entry(path, key, kind=FileKind.FULL):
    return ReachableFile(local_path=path, remote_key=key, kind=kind)


class TestHelpers:
    """Tests for planner helper functions."""

    @pytest.mark.parametrize('name, expected', [
        ('a.jpg', 'image/jpeg'),
        ('A.JPEG', 'image/jpeg'),
        ('t.webp', 'image/webp'),
        ('galleries.json', 'application/json'),
        ('notes', 'application/octet-stream'),
    ])
    def test_content_type_for(self, name, expected):
        assert content_type_for(name) == expected

    def test_compute_md5(self, tmp_path):
        path = tmp_path / 'data.bin'
        path.write_bytes(b'hello world')

        assert compute_md5(str(path)) == hashlib.md5(b'hello world').hexdigest()

    def test_compute_md5_missing_file(self, tmp_path):
        with pytest.raises(HashComputationError) as exc_info:
            compute_md5(str(tmp_path / 'missing'))

        assert exc_info.value.file.endswith('missing')

    def test_is_multipart_etag(self):
        assert is_multipart_etag('d41d8cd98f00b204e9800998ecf8427e-2')
        assert not is_multipart_etag('d41d8cd98f00b204e9800998ecf8427e')


class TestDiffPlanner:
    """Tests for DiffPlanner."""

    @pytest.fixture
    def files(self, tmp_path):
        a = tmp_path / 'a.jpg'
        b = tmp_path / 'b.json'
        a.write_bytes(b'image a')
        b.write_bytes(b'{}')
        return [
            _entry(a, 'galleries/a.jpg'),
            _entry(b, 'galleries/b.json', FileKind.MANIFEST),
        ]

    def test_everything_new(self, fake_store, files, logger):
        plan = DiffPlanner(fake_store, logger=logger).plan(files)

        assert [a.remote_key for a in plan.to_upload] == ['galleries/a.jpg', 'galleries/b.json']
        assert plan.to_upload[0].content_type == 'image/jpeg'
        assert plan.to_upload[0].size_bytes == len(b'image a')
        assert plan.to_delete == ()
        assert plan.unchanged_count == 0
        assert plan.total_files == 2
        assert plan.prefix == 'galleries/'

    def test_matching_etag_is_unchanged(self, fake_store, files, logger):
        fake_store.put('galleries/a.jpg', b'image a')

        plan = DiffPlanner(fake_store, logger=logger).plan(files)

        assert [a.remote_key for a in plan.to_upload] == ['galleries/b.json']
        assert plan.unchanged_count == 1

    def test_different_etag_is_uploaded(self, fake_store, files, logger):
        fake_store.put('galleries/a.jpg', b'older image a')
        fake_store.put('galleries/b.json', b'{}')

        plan = DiffPlanner(fake_store, logger=logger).plan(files)

        assert [a.remote_key for a in plan.to_upload] == ['galleries/a.jpg']

    def test_multipart_etag_is_uploaded(self, fake_store, files, logger):
        md5 = hashlib.md5(b'image a').hexdigest()
        fake_store.put('galleries/a.jpg', b'image a', etag=f'{md5}-2')

        plan = DiffPlanner(fake_store, logger=logger).plan(files)

        assert 'galleries/a.jpg' in [a.remote_key for a in plan.to_upload]

    def test_orphans_are_deleted_sorted(self, fake_store, files, logger):
        fake_store.put('galleries/z/old.jpg', b'z')
        fake_store.put('galleries/c.jpg', b'c')

        plan = DiffPlanner(fake_store, logger=logger).plan(files)

        assert plan.to_delete == ('galleries/c.jpg', 'galleries/z/old.jpg')

    def test_keys_outside_prefix_are_never_deleted(self, fake_store, files, logger):
        fake_store.put('other/site.html', b'x')
        fake_store.put('galleries-old/a.jpg', b'x')

        plan = DiffPlanner(fake_store, logger=logger).plan(files)

        assert plan.to_delete == ()

    def test_unreadable_file_aborts(self, fake_store, files, tmp_path, logger):
        files.append(_entry(tmp_path / 'gone.jpg', 'galleries/gone.jpg'))

        with pytest.raises(HashComputationError):
            DiffPlanner(fake_store, logger=logger).plan(files)

        assert fake_store.list_calls == 0

    def test_listing_failure_aborts(self, fake_store, files, logger):
        fake_store.fail_list = True

        with pytest.raises(RemoteListError):
            DiffPlanner(fake_store, logger=logger).plan(files)
