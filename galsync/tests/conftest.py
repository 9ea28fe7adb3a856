"""
Pytest fixtures for galsync tests.
"""

import hashlib
import io
import json
import logging
from pathlib import Path

import pytest


def write_jpeg(path: Path, width: int = 100, height: int = 100, color='red') -> Path:
    """Write a small JPEG to `path`, creating parent directories."""
    from PIL import Image

    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new('RGB', (width, height), color=color).save(path, format='JPEG')
    return path


def write_json(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2))
    return path


class FakeStore:
    """
    In-memory stand-in for S3Client.

    ETags are the MD5 of the uploaded bytes, as for single-part PUTs.
    """

    def __init__(self, config):
        self.config = config
        self.objects = {}
        self.list_calls = 0
        self.uploads = []
        self.deletes = []
        self.fail_upload_on = None
        self.fail_delete_on = None
        self.fail_list = False

    def __call__(self, config, logger=None):
        """Act as a client factory that always returns this store."""
        return self

    def put(self, key, data: bytes, etag=None):
        self.objects[key] = (data, etag or hashlib.md5(data).hexdigest())

    def list_objects(self, prefix=None):
        from galsync.errors import RemoteListError

        prefix = self.config.key_prefix if prefix is None else prefix
        self.list_calls += 1
        if self.fail_list:
            raise RemoteListError("listing failed", file=prefix)
        return {k: etag for k, (_, etag) in self.objects.items() if k.startswith(prefix)}

    def upload_file(self, key, local_path, content_type):
        from galsync.errors import UploadError

        if key == self.fail_upload_on:
            raise UploadError(f"Upload failed for {key}: simulated", file=key)
        self.put(key, Path(local_path).read_bytes())
        self.uploads.append(key)

    def delete_object(self, key):
        from galsync.errors import DeleteError

        if key == self.fail_delete_on:
            raise DeleteError(f"Delete failed for {key}: simulated", file=key)
        self.objects.pop(key, None)
        self.deletes.append(key)


@pytest.fixture
def s3_config():
    """Fixture providing S3 configuration."""
    from galsync.s3_config import S3Config

    return S3Config(
        bucket='test-bucket',
        region='us-east-1',
        prefix='galleries/',
        access_key='test-access-key',
        secret_key='test-secret-key',
    )


@pytest.fixture
def mock_boto3_client(mocker):
    """Fixture providing a mocked boto3 client."""
    mock_client = mocker.MagicMock()
    mocker.patch('boto3.client', return_value=mock_client)
    return mock_client


@pytest.fixture
def fake_store(s3_config):
    """Fixture providing an in-memory remote store."""
    return FakeStore(s3_config)


@pytest.fixture
def workspace(tmp_path):
    """
    Fixture providing a workspace with one gallery 'sunset' holding two
    images, with the first image as cover.
    """
    root = tmp_path / 'site'
    write_jpeg(root / 'sunset' / '01.jpg', 1600, 1200, color='orange')
    write_jpeg(root / 'sunset' / '02.jpg', 1200, 1600, color='purple')
    write_json(root / 'galleries.json', {
        'schemaVersion': 1,
        'galleries': [
            {'name': 'Sunset', 'slug': 'sunset', 'date': '2024-01-01', 'cover': 'sunset/01.jpg'},
        ],
    })
    write_json(root / 'sunset' / 'gallery-details.json', {
        'schemaVersion': 1,
        'name': 'Sunset',
        'slug': 'sunset',
        'date': '2024-01-01',
        'description': '',
        'photos': [
            {'thumbnail': '01.jpg', 'full': '01.jpg', 'alt': ''},
            {'thumbnail': '02.jpg', 'full': '02.jpg', 'alt': ''},
        ],
    })
    return root


@pytest.fixture
def engine(fake_store, logger):
    """Fixture providing a PublishEngine wired to the fake store, without CDN."""
    from galsync.engine import PublishEngine

    return PublishEngine(
        client_factory=fake_store,
        invalidator_factory=lambda config, logger=None: None,
        logger=logger,
    )


@pytest.fixture
def sample_image_bytes():
    """Fixture providing sample JPEG image bytes."""
    from PIL import Image

    img = Image.new('RGB', (100, 100), color='red')
    buffer = io.BytesIO()
    img.save(buffer, format='JPEG')
    return buffer.getvalue()


@pytest.fixture
def sample_png_bytes():
    """Fixture providing sample PNG image bytes with transparency."""
    from PIL import Image

    img = Image.new('RGBA', (100, 100), color=(255, 0, 0, 128))
    buffer = io.BytesIO()
    img.save(buffer, format='PNG')
    return buffer.getvalue()


@pytest.fixture
def logger():
    """Fixture providing a logger."""
    return logging.getLogger('test')
