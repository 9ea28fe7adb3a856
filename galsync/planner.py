"""
DiffPlanner - Compares the reachable set against the remote store.
"""

import hashlib
import logging
import os
from typing import Dict, List, Optional, Sequence

from .errors import HashComputationError
from .publish_plan import PublishPlan, SyncAction
from .reachable_file import ReachableFile

CONTENT_TYPES = {
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.png': 'image/png',
    '.gif': 'image/gif',
    '.webp': 'image/webp',
    '.avif': 'image/avif',
    '.bmp': 'image/bmp',
    '.tif': 'image/tiff',
    '.tiff': 'image/tiff',
    '.svg': 'image/svg+xml',
    '.ico': 'image/x-icon',
    '.json': 'application/json',
    '.html': 'text/html',
    '.css': 'text/css',
    '.js': 'application/javascript',
    '.txt': 'text/plain',
}

HASH_CHUNK_SIZE = 1024 * 1024


def content_type_for(path: str) -> str:
    """Content-Type for a file name, by extension."""
    return CONTENT_TYPES.get(os.path.splitext(path)[1].lower(), 'application/octet-stream')


def compute_md5(path: str) -> str:
    """
    Hex MD5 of a file's bytes.

    Raises:
        HashComputationError: if the file cannot be read
    """
    digest = hashlib.md5(usedforsecurity=False)
    try:
        with open(path, 'rb') as f:
            for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b''):
                digest.update(chunk)
    except OSError as e:
        raise HashComputationError(f"Failed to read {path}: {e}", file=str(path)) from e
    return digest.hexdigest()


def is_multipart_etag(etag: str) -> bool:
    """Multipart ETags look like '<md5>-<parts>' and never equal a file MD5."""
    return '-' in etag


class DiffPlanner:
    """
    Produces a PublishPlan from the publish-time reachable set.

    A file is uploaded when its key is missing remotely or the remote ETag
    differs from the local MD5. Multipart ETags always count as different.
    Remote keys under the prefix that are not reachable are deleted; keys
    outside the prefix are never considered.
    """

    def __init__(self, s3_client, logger: Optional[logging.Logger] = None):
        """
        Initialize planner.

        Args:
            s3_client: Storage client providing list_objects() and config.key_prefix
            logger: Optional logger instance
        """
        self.s3 = s3_client
        self.logger = logger or logging.getLogger(__name__)

    @property
    def prefix(self) -> str:
        return self.s3.config.key_prefix

    def plan(self, files: Sequence[ReachableFile]) -> PublishPlan:
        """
        Build a plan for the given reachable files.

        Raises:
            HashComputationError: if any reachable file cannot be read
            RemoteListError: if the remote listing fails
        """
        prefix = self.prefix

        local_hashes: Dict[str, str] = {}
        for entry in files:
            local_hashes[entry.remote_key] = compute_md5(str(entry.local_path))
        self.logger.debug(f"Hashed {len(local_hashes)} local files")

        remote = self.s3.list_objects(prefix)
        self.logger.info(f"Remote store has {len(remote)} objects under {prefix}")

        to_upload: List[SyncAction] = []
        unchanged = 0
        for entry in files:
            etag = remote.get(entry.remote_key)
            if etag is not None and not is_multipart_etag(etag) and etag == local_hashes[entry.remote_key]:
                unchanged += 1
                continue
            to_upload.append(self._upload_action(entry))

        to_delete = sorted(
            key for key in remote
            if key.startswith(prefix) and key not in local_hashes
        )

        plan = PublishPlan(
            prefix=prefix,
            to_upload=tuple(to_upload),
            to_delete=tuple(to_delete),
            unchanged_count=unchanged,
            total_files=len(files),
        )

        self.logger.info(
            f"Plan {plan.plan_id}: {len(plan.to_upload)} to upload, "
            f"{len(plan.to_delete)} to delete, {plan.unchanged_count} unchanged"
        )
        return plan

    @staticmethod
    def _upload_action(entry: ReachableFile) -> SyncAction:
        local_path = str(entry.local_path)
        try:
            size = os.path.getsize(local_path)
        except OSError as e:
            raise HashComputationError(f"Failed to stat {local_path}: {e}", file=local_path) from e
        return SyncAction.upload(
            remote_key=entry.remote_key,
            local_path=local_path,
            size_bytes=size,
            content_type=content_type_for(local_path),
        )
