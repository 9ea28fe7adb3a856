"""
Reporter - Generates human-readable reports for publish plans.
"""

import logging
import sys
from typing import Optional, Sequence, TextIO

from .errors import MissingAssetWarning
from .publish_plan import PublishPlan
from .thumbnail_stage import ThumbnailResults


class Reporter:
    """
    Generates human-readable reports from preview results.
    """

    def __init__(
        self,
        output: Optional[TextIO] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize reporter.

        Args:
            output: Output stream (default: stdout)
            logger: Optional logger instance
        """
        self.output = output or sys.stdout
        self.logger = logger or logging.getLogger(__name__)

    def _print(self, text: str = "") -> None:
        """Print to output stream."""
        print(text, file=self.output)

    @staticmethod
    def _format_bytes(bytes_val: float) -> str:
        """Format bytes as human-readable string."""
        for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
            if bytes_val < 1024:
                return f"{bytes_val:.1f} {unit}"
            bytes_val /= 1024
        return f"{bytes_val:.1f} PB"

    def report_plan(
        self,
        plan: PublishPlan,
        bucket: str = '',
        show_files: bool = False
    ) -> None:
        """Print a summary of a publish plan."""
        self._print("=" * 60)
        self._print("PUBLISH PLAN")
        self._print("=" * 60)
        self._print(f"  Plan:        {plan.plan_id}")
        self._print(f"  Created:     {plan.created_at}")
        target = f"s3://{bucket}/{plan.prefix}" if bucket else plan.prefix
        self._print(f"  Target:      {target}")
        self._print()
        self._print(f"  Files:       {plan.total_files:,}")
        self._print(f"  Unchanged:   {plan.unchanged_count:,}")
        self._print(f"  To upload:   {len(plan.to_upload):,} ({self._format_bytes(plan.upload_bytes)})")
        self._print(f"  To delete:   {len(plan.to_delete):,}")

        if plan.is_empty:
            self._print()
            self._print("  Nothing to publish: remote store is up to date.")

        if show_files:
            if plan.to_upload:
                self._print()
                self._print("  Uploads:")
                for action in plan.to_upload:
                    self._print(f"    + {action.remote_key} ({self._format_bytes(action.size_bytes or 0)})")
            if plan.to_delete:
                self._print()
                self._print("  Deletes:")
                for key in plan.to_delete:
                    self._print(f"    - {key}")

        self._print("=" * 60)

    def report_warnings(
        self,
        warnings: Sequence[MissingAssetWarning],
        thumbnails: Optional[ThumbnailResults] = None
    ) -> None:
        """Print non-fatal problems found during preview."""
        failed = thumbnails.errors if thumbnails else []
        if not warnings and not failed:
            return

        self._print()
        self._print("WARNINGS")
        self._print("-" * 60)
        for warning in warnings:
            self._print(f"  {warning}")
        for source, message in failed:
            self._print(f"  Thumbnail fallback for {source.name}: {message}")
