"""
PublishEngine - preview / execute / cancel for a gallery workspace.
"""

import logging
import queue
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional

from .errors import GalsyncError, MissingAssetWarning, PlanNotFoundError, PublishInProgressError
from .events import CompleteEvent, ErrorEvent
from .executor import CancellationToken, EventCallback, ExecutionOutcome, Executor, TerminalEvent
from .invalidator import Invalidator
from .planner import DiffPlanner
from .publish_plan import PublishPlan
from .resolver import ManifestResolver
from .s3_client import S3Client
from .s3_config import S3Config
from .thumbnail_cache import ThumbnailCache
from .thumbnail_generator import ThumbnailGenerator
from .thumbnail_stage import ThumbnailProgressCallback, ThumbnailResults, ThumbnailStage


@dataclass
class _StoredPlan:
    plan: PublishPlan
    config: S3Config
    workspace_root: Path


class PublishRun:
    """
    Handle for one asynchronous execution of a plan.

    Events are delivered to a single subscriber, either through the
    on_event callback given to PublishEngine.execute() or through events().
    The queue is bounded; when it is full the oldest event is dropped, which
    is safe because every event carries the full progress state. The
    terminal event is never dropped and is always last.
    """

    QUEUE_SIZE = 256

    def __init__(self, plan_id: str, token: CancellationToken):
        self.plan_id = plan_id
        self.token = token
        self.outcome: Optional[ExecutionOutcome] = None
        self._queue: 'queue.Queue[object]' = queue.Queue(maxsize=self.QUEUE_SIZE)
        self._done = threading.Event()
        self._terminal: Optional[TerminalEvent] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def cancel(self) -> None:
        """Request a cooperative stop. No-op once the run has finished."""
        if not self.done:
            self.token.cancel()

    def events(self, timeout: Optional[float] = None) -> Iterator[object]:
        """Yield events in order until (and including) the terminal event."""
        while True:
            event = self._queue.get(timeout=timeout)
            yield event
            if getattr(event, 'terminal', False):
                return

    def wait(self, timeout: Optional[float] = None) -> Optional[TerminalEvent]:
        """Block until the run finishes and return its terminal event."""
        self._done.wait(timeout)
        return self._terminal

    def _publish(self, event: object) -> None:
        while True:
            try:
                self._queue.put_nowait(event)
                return
            except queue.Full:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    pass

    def _finish(self, terminal: TerminalEvent) -> None:
        self._terminal = terminal
        self._done.set()


class PublishEngine:
    """
    Publish synchronization engine for one workspace.

    preview() resolves the manifests, refreshes thumbnails, and diffs against
    the remote store, returning an immutable PublishPlan. execute() applies a
    stored plan on a background worker. Only one preview or execute may be
    active at a time; a second call while one is in flight is rejected.
    """

    def __init__(
        self,
        client_factory: Callable[..., object] = S3Client,
        invalidator_factory: Callable[..., Optional[Invalidator]] = Invalidator.from_config,
        thumbnail_generator: Optional[ThumbnailGenerator] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize engine.

        Args:
            client_factory: Called as client_factory(config, logger) to build a storage client
            invalidator_factory: Called as invalidator_factory(config, logger); may return None
            thumbnail_generator: Optional thumbnail generator (default: 800px WebP, quality 85)
            logger: Optional logger instance
        """
        self.client_factory = client_factory
        self.invalidator_factory = invalidator_factory
        self.thumbnail_generator = thumbnail_generator or ThumbnailGenerator()
        self.logger = logger or logging.getLogger(__name__)

        self.last_warnings: List[MissingAssetWarning] = []
        self.last_thumbnail_results: Optional[ThumbnailResults] = None

        self._lock = threading.Lock()
        self._active: Optional[str] = None
        self._plans: Dict[str, _StoredPlan] = {}
        self._runs: Dict[str, PublishRun] = {}

    @property
    def active(self) -> Optional[str]:
        """'preview' or the id of the executing plan, or None when idle."""
        return self._active

    def preview(
        self,
        workspace_root,
        config: S3Config,
        progress: Optional[ThumbnailProgressCallback] = None
    ) -> PublishPlan:
        """
        Compute a fresh plan for the workspace.

        Args:
            workspace_root: Folder containing galleries.json
            config: Remote store and CDN settings
            progress: Optional callback for thumbnail-progress events

        Raises:
            ResolutionError, HashComputationError, RemoteListError
            PublishInProgressError: if another operation is active
        """
        if not config.key_prefix:
            raise ValueError("A non-empty key prefix is required to publish")

        self._acquire('preview')
        try:
            root = Path(workspace_root)
            self.logger.info(f"Preview: {root} -> s3://{config.bucket_name}/{config.key_prefix}")

            resolver = ManifestResolver(config.key_prefix, config.static_assets, logger=self.logger)
            resolution = resolver.resolve(root)
            self.last_warnings = list(resolution.warnings)

            cache = ThumbnailCache(root, config.key_prefix, self.thumbnail_generator, logger=self.logger)
            thumbnails = ThumbnailStage(cache, logger=self.logger).process(resolution.files, progress)
            cache.prune(spec.derived_path for spec in thumbnails.specs)
            self.last_thumbnail_results = thumbnails

            client = self.client_factory(config, self.logger)
            plan = DiffPlanner(client, logger=self.logger).plan(thumbnails.files)

            with self._lock:
                for plan_id in list(self._plans):
                    self._runs.pop(plan_id, None)
                self._plans = {plan.plan_id: _StoredPlan(plan, config, root)}
            return plan
        finally:
            self._release()

    def get_plan(self, plan_id: str) -> PublishPlan:
        """Return a stored plan."""
        with self._lock:
            return self._lookup(plan_id).plan

    def execute(self, plan_id: str, on_event: Optional[EventCallback] = None) -> PublishRun:
        """
        Start applying a stored plan on a background worker.

        Executing a plan again after an error or cancellation re-runs the
        same plan from the beginning. The engine is idle again by the time
        the terminal event is delivered, so a subscriber may retry or
        preview from its handler.

        Args:
            plan_id: Id returned by preview()
            on_event: Optional subscriber called with every event on the worker thread

        Raises:
            PlanNotFoundError: if the plan is unknown or already completed
            PublishInProgressError: if another operation is active
        """
        run = PublishRun(plan_id, CancellationToken())
        with self._lock:
            stored = self._lookup(plan_id)
            self._claim(plan_id)
            self._runs[plan_id] = run

        def deliver(event: object) -> None:
            if on_event is None:
                run._publish(event)
                return
            try:
                on_event(event)
            except Exception as e:
                self.logger.exception(f"Event subscriber failed on {event!r}: {e}")

        thread = threading.Thread(
            target=self._worker,
            args=(stored, run, deliver),
            name=f"galsync-publish-{plan_id[:8]}",
            daemon=True,
        )
        run._thread = thread
        try:
            thread.start()
        except RuntimeError:
            self._release()
            raise
        return run

    def cancel(self, plan_id: str) -> None:
        """Request a cooperative stop of an in-flight execute. No-op otherwise."""
        with self._lock:
            run = self._runs.get(plan_id)
        if run is None:
            self.logger.debug(f"Cancel ignored: no run for plan {plan_id}")
            return
        run.cancel()

    def _worker(self, stored: _StoredPlan, run: PublishRun, deliver: EventCallback) -> None:
        sent: List[TerminalEvent] = []

        def forward(event: object) -> None:
            if getattr(event, 'terminal', False):
                self._settle(stored, event)
                sent.append(event)
            deliver(event)

        try:
            client = self.client_factory(stored.config, self.logger)
            invalidator = self.invalidator_factory(stored.config, self.logger)
            executor = Executor(client, invalidator=invalidator, logger=self.logger)
            run.outcome = executor.run(stored.plan, run.token, forward)
            terminal: TerminalEvent = run.outcome.event
        except Exception as e:
            self.logger.exception(f"Publish worker failed: {e}")
            if sent:
                terminal = sent[0]
            else:
                # The subscriber must always see a terminal event.
                file = e.file if isinstance(e, GalsyncError) else ''
                terminal = ErrorEvent(message=str(e), file=file)
                forward(terminal)

        run._finish(terminal)

    def _settle(self, stored: _StoredPlan, terminal: object) -> None:
        """Release the engine ahead of the terminal event; completed plans are discarded."""
        with self._lock:
            if isinstance(terminal, CompleteEvent):
                self._plans.pop(stored.plan.plan_id, None)
            if self._active == stored.plan.plan_id:
                self._active = None

    def _lookup(self, plan_id: str) -> _StoredPlan:
        """Caller holds the lock."""
        stored = self._plans.get(plan_id)
        if stored is None:
            raise PlanNotFoundError(f"Plan {plan_id} not found. Run preview first.")
        return stored

    def _claim(self, marker: str) -> None:
        """Caller holds the lock."""
        if self._active is not None:
            raise PublishInProgressError(
                f"A publish operation is already in progress ({self._active})"
            )
        self._active = marker

    def _acquire(self, marker: str) -> None:
        with self._lock:
            self._claim(marker)

    def _release(self) -> None:
        with self._lock:
            self._active = None
