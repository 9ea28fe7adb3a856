"""
PublishProgress - Displays thumbnail and sync progress on the console.
"""

import logging
from typing import Optional

from .events import (
    CancelledEvent,
    CompleteEvent,
    ErrorEvent,
    ProgressEvent,
    ThumbnailProgressEvent,
)


class PublishProgress:
    """
    Tracks and displays progress with optional per-file output.

    Usable directly as the thumbnail progress callback of preview() and as
    the event subscriber of execute().
    """

    def __init__(
        self,
        show_files: bool = False,
        log_interval: int = 25,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize progress tracker.

        Args:
            show_files: If True, print each file as it's processed
            log_interval: Log summary progress every N files (when not show_files)
            logger: Optional logger instance
        """
        self.show_files = show_files
        self.log_interval = log_interval
        self.logger = logger or logging.getLogger(__name__)
        self.last_logged = 0

    def on_thumbnail(self, event: ThumbnailProgressEvent) -> None:
        if self.show_files:
            print(f"  [THUMB {event.current}/{event.total}] {event.filename}")
        elif event.current == event.total or event.current % self.log_interval == 0:
            self.logger.info(f"Thumbnails: {event.current}/{event.total}")

    def on_progress(self, event: ProgressEvent) -> None:
        if event.action == 'invalidate':
            self.logger.info("Invalidating CDN cache...")
            return

        if self.show_files:
            print(f"  [{event.action.upper()} {event.current}/{event.total}] {event.file}")
        elif event.current - self.last_logged >= self.log_interval or event.current == event.total:
            self.last_logged = event.current
            self.logger.info(f"Progress: {event.current}/{event.total} actions applied")

    def on_complete(self, event: CompleteEvent) -> None:
        print(
            f"Published: {event.uploaded} uploaded, {event.deleted} deleted, "
            f"{event.unchanged} unchanged"
        )

    def on_cancelled(self, event: CancelledEvent) -> None:
        print(f"Cancelled: {event.uploaded} uploaded, {event.deleted} deleted before stopping")

    def on_error(self, event: ErrorEvent) -> None:
        where = f" ({event.file})" if event.file else ""
        print(f"  [ERROR]{where} {event.message}")
        print(f"Applied before failure: {event.uploaded} uploaded, {event.deleted} deleted")

    def __call__(self, event) -> None:
        """Dispatch any engine event."""
        if isinstance(event, ThumbnailProgressEvent):
            self.on_thumbnail(event)
        elif isinstance(event, ProgressEvent):
            self.on_progress(event)
        elif isinstance(event, CompleteEvent):
            self.on_complete(event)
        elif isinstance(event, CancelledEvent):
            self.on_cancelled(event)
        elif isinstance(event, ErrorEvent):
            self.on_error(event)
