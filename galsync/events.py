"""
Events - Progress and terminal events streamed to the caller.

Every event carries full state (not a delta) so a subscriber that misses
one event still renders the correct position.
"""

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class ThumbnailProgressEvent:
    """Emitted once per thumbnail considered during preview."""
    current: int
    total: int
    filename: str

    event = 'thumbnail-progress'

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ProgressEvent:
    """
    Emitted once per applied sync action, and once while invalidating.

    Attributes:
        current: Number of actions applied so far (1-based)
        total: Total actions in the plan
        file: Remote key the action applied to ('' for invalidation)
        action: 'upload', 'delete' or 'invalidate'
    """
    current: int
    total: int
    file: str
    action: str

    event = 'sync-progress'
    terminal = False

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class CompleteEvent:
    """The plan was applied in full."""
    uploaded: int
    deleted: int
    unchanged: int

    event = 'complete'
    terminal = True

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ErrorEvent:
    """
    Execution stopped on a failure.

    Attributes:
        message: Full error detail
        file: Remote key that failed ('' for invalidation failures)
        uploaded: Uploads applied before the failure
        deleted: Deletes applied before the failure
    """
    message: str
    file: str
    uploaded: int = 0
    deleted: int = 0

    event = 'error'
    terminal = True

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class CancelledEvent:
    """Execution stopped at an action boundary on request."""
    uploaded: int
    deleted: int
    unchanged: int

    event = 'cancelled'
    terminal = True

    def to_dict(self) -> dict:
        return asdict(self)
