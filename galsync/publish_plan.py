"""
PublishPlan - Immutable snapshot of the actions needed to publish a workspace.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class SyncAction:
    """
    A single upload or delete.

    Attributes:
        kind: 'upload' or 'delete'
        remote_key: Object key the action applies to
        local_path: File to upload (uploads only)
        size_bytes: Size of the file to upload (uploads only)
        content_type: Content-Type to store (uploads only)
    """
    kind: str
    remote_key: str
    local_path: Optional[str] = None
    size_bytes: Optional[int] = None
    content_type: Optional[str] = None

    UPLOAD = 'upload'
    DELETE = 'delete'

    @classmethod
    def upload(cls, remote_key: str, local_path: str, size_bytes: int, content_type: str) -> 'SyncAction':
        return cls(
            kind=cls.UPLOAD,
            remote_key=remote_key,
            local_path=local_path,
            size_bytes=size_bytes,
            content_type=content_type,
        )

    @classmethod
    def delete(cls, remote_key: str) -> 'SyncAction':
        return cls(kind=cls.DELETE, remote_key=remote_key)

    def to_dict(self) -> dict:
        data = {'kind': self.kind, 'remoteKey': self.remote_key}
        if self.kind == self.UPLOAD:
            data.update({
                'localPath': self.local_path,
                'sizeBytes': self.size_bytes,
                'contentType': self.content_type,
            })
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'SyncAction':
        return cls(
            kind=data['kind'],
            remote_key=data['remoteKey'],
            local_path=data.get('localPath'),
            size_bytes=data.get('sizeBytes'),
            content_type=data.get('contentType'),
        )


@dataclass(frozen=True)
class PublishPlan:
    """
    Upload and delete actions computed by one preview.

    Attributes:
        prefix: Key prefix the plan was computed for
        to_upload: Uploads in manifest order
        to_delete: Remote keys to delete, all under `prefix`
        unchanged_count: Reachable files already up to date remotely
        total_files: Number of reachable files
        plan_id: Unique id
        created_at: ISO timestamp of the preview
    """
    prefix: str
    to_upload: Tuple[SyncAction, ...] = ()
    to_delete: Tuple[str, ...] = ()
    unchanged_count: int = 0
    total_files: int = 0
    plan_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def __post_init__(self):
        if not self.prefix:
            raise ValueError("a publish plan needs a non-empty key prefix")
        outside = [key for key in self.to_delete if not key.startswith(self.prefix)]
        if outside:
            raise ValueError(f"delete keys outside prefix {self.prefix!r}: {outside}")
        for action in self.to_upload:
            if action.kind != SyncAction.UPLOAD:
                raise ValueError(f"not an upload action: {action!r}")

    @property
    def delete_actions(self) -> Tuple[SyncAction, ...]:
        return tuple(SyncAction.delete(key) for key in self.to_delete)

    @property
    def actions(self) -> Tuple[SyncAction, ...]:
        """All actions in execution order: uploads, then deletes."""
        return self.to_upload + self.delete_actions

    @property
    def total_actions(self) -> int:
        return len(self.to_upload) + len(self.to_delete)

    @property
    def upload_bytes(self) -> int:
        return sum(a.size_bytes or 0 for a in self.to_upload)

    @property
    def is_empty(self) -> bool:
        return self.total_actions == 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'planId': self.plan_id,
            'prefix': self.prefix,
            'toUpload': [a.to_dict() for a in self.to_upload],
            'toDelete': list(self.to_delete),
            'unchanged': self.unchanged_count,
            'totalFiles': self.total_files,
            'createdAt': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'PublishPlan':
        """Create from dictionary."""
        return cls(
            prefix=data['prefix'],
            to_upload=tuple(SyncAction.from_dict(a) for a in data.get('toUpload', [])),
            to_delete=tuple(data.get('toDelete', [])),
            unchanged_count=data.get('unchanged', 0),
            total_files=data.get('totalFiles', 0),
            plan_id=data['planId'],
            created_at=data['createdAt'],
        )
