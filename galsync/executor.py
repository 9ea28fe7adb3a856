"""
Executor - Applies a PublishPlan to the remote store, one action at a time.
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Union

from .errors import DeleteError, GalsyncError, InvalidationError, UploadError
from .events import CancelledEvent, CompleteEvent, ErrorEvent, ProgressEvent
from .execution_stats import ExecutionStats
from .publish_plan import PublishPlan, SyncAction

TerminalEvent = Union[CompleteEvent, ErrorEvent, CancelledEvent]
EventCallback = Callable[[object], None]


class ExecutorState(str, Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    COMPLETE = 'complete'
    ERROR = 'error'
    CANCELLED = 'cancelled'


class CancellationToken:
    """
    Cooperative stop request.

    The executor checks the token only between actions, so an in-flight
    upload or delete always finishes.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class ExecutionOutcome:
    """
    Final state of one execution.

    Attributes:
        state: Terminal executor state
        stats: Counts applied before stopping
        event: Terminal event that was emitted
        error: Exception that stopped execution, if any
    """
    state: ExecutorState
    stats: ExecutionStats
    event: TerminalEvent
    error: Optional[GalsyncError] = field(default=None)


class Executor:
    """
    Runs a plan sequentially: all uploads in plan order, then all deletes.

    One ProgressEvent is emitted after every applied action. The first
    failing action stops the run. When every action succeeded and an
    invalidator is configured, a CDN invalidation follows. Exactly one
    terminal event is emitted, always last.

    An Executor runs once; retries use a fresh instance on the same plan.
    """

    def __init__(
        self,
        s3_client,
        invalidator=None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize executor.

        Args:
            s3_client: Storage client providing upload_file() and delete_object()
            invalidator: Optional Invalidator run after a complete sync
            logger: Optional logger instance
        """
        self.s3 = s3_client
        self.invalidator = invalidator
        self.logger = logger or logging.getLogger(__name__)
        self.state = ExecutorState.IDLE
        self.stats = ExecutionStats()

    def run(
        self,
        plan: PublishPlan,
        token: Optional[CancellationToken] = None,
        on_event: Optional[EventCallback] = None
    ) -> ExecutionOutcome:
        """
        Apply the plan.

        Args:
            plan: Plan to apply
            token: Optional cancellation token
            on_event: Optional callback receiving every event in order

        Returns:
            ExecutionOutcome describing the terminal state
        """
        if self.state != ExecutorState.IDLE:
            raise RuntimeError(f"Executor already used (state: {self.state.value})")

        token = token or CancellationToken()
        emit = on_event or (lambda event: None)
        self.state = ExecutorState.RUNNING
        self.stats = ExecutionStats(total_actions=plan.total_actions, unchanged=plan.unchanged_count)

        self.logger.info(
            f"Executing plan {plan.plan_id}: {len(plan.to_upload)} uploads, "
            f"{len(plan.to_delete)} deletes"
        )

        if token.cancelled:
            return self._finish_cancelled(emit)

        for action in plan.actions:
            try:
                self._apply(action, plan.prefix)
            except (UploadError, DeleteError) as e:
                return self._finish_error(e, emit)

            self.logger.debug(
                f"{self.stats.applied}/{self.stats.total_actions} applied, "
                f"{self.stats.rate_per_second:.1f}/s, "
                f"~{self.stats.estimated_remaining_seconds:.0f}s remaining"
            )
            emit(ProgressEvent(
                current=self.stats.applied,
                total=self.stats.total_actions,
                file=action.remote_key,
                action=action.kind,
            ))

            if token.cancelled:
                return self._finish_cancelled(emit)

        if self.invalidator is not None:
            emit(ProgressEvent(
                current=self.stats.applied,
                total=self.stats.total_actions,
                file='',
                action='invalidate',
            ))
            try:
                self.invalidator.invalidate(plan.prefix)
            except InvalidationError as e:
                return self._finish_error(e, emit)

        return self._finish_complete(emit)

    def _apply(self, action: SyncAction, prefix: str) -> None:
        if action.kind == SyncAction.UPLOAD:
            self.logger.debug(f"Uploading: {action.remote_key}")
            self.s3.upload_file(action.remote_key, action.local_path, action.content_type)
            self.stats.uploaded += 1
            self.stats.bytes_uploaded += action.size_bytes or 0
        elif action.kind == SyncAction.DELETE:
            if not action.remote_key.startswith(prefix):
                raise DeleteError(
                    f"Refusing to delete {action.remote_key}: outside prefix {prefix}",
                    file=action.remote_key,
                )
            self.logger.debug(f"Deleting: {action.remote_key}")
            self.s3.delete_object(action.remote_key)
            self.stats.deleted += 1
        else:
            raise UploadError(f"Unknown action kind {action.kind!r}", file=action.remote_key)

    def _finish_complete(self, emit: EventCallback) -> ExecutionOutcome:
        self.state = ExecutorState.COMPLETE
        event = CompleteEvent(
            uploaded=self.stats.uploaded,
            deleted=self.stats.deleted,
            unchanged=self.stats.unchanged,
        )
        self.logger.info(
            f"Publish complete: {event.uploaded} uploaded, {event.deleted} deleted, "
            f"{event.unchanged} unchanged ({self.stats.elapsed_seconds:.1f}s)"
        )
        emit(event)
        return ExecutionOutcome(self.state, self.stats, event)

    def _finish_cancelled(self, emit: EventCallback) -> ExecutionOutcome:
        self.state = ExecutorState.CANCELLED
        event = CancelledEvent(
            uploaded=self.stats.uploaded,
            deleted=self.stats.deleted,
            unchanged=self.stats.unchanged,
        )
        self.logger.info(
            f"Publish cancelled after {self.stats.applied} of {self.stats.total_actions} actions"
        )
        emit(event)
        return ExecutionOutcome(self.state, self.stats, event)

    def _finish_error(self, error: GalsyncError, emit: EventCallback) -> ExecutionOutcome:
        self.state = ExecutorState.ERROR
        event = ErrorEvent(
            message=error.message,
            file=error.file or '',
            uploaded=self.stats.uploaded,
            deleted=self.stats.deleted,
        )
        self.logger.error(
            f"Publish failed after {self.stats.applied} of {self.stats.total_actions} actions: "
            f"{error.message}"
        )
        emit(event)
        return ExecutionOutcome(self.state, self.stats, event, error)
