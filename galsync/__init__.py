"""
Gallery publish synchronization engine.

Three-step operation:
    1. Preview: resolve manifests, refresh thumbnails, diff against S3
    2. Execute: apply the resulting plan, one upload or delete at a time
    3. Invalidate: optionally flush the CloudFront cache for the prefix
"""

__version__ = "1.0.0"

from .errors import (
    GalsyncError,
    ResolutionError,
    MissingAssetWarning,
    ThumbnailGenerationError,
    HashComputationError,
    RemoteListError,
    UploadError,
    DeleteError,
    InvalidationError,
    PublishInProgressError,
    PlanNotFoundError,
)
from .s3_config import S3Config
from .s3_client import S3Client
from .gallery_manifest import ManifestGraph
from .reachable_file import FileKind, ReachableFile
from .resolver import ManifestResolver, Resolution
from .thumbnail_generator import ThumbnailGenerator
from .thumbnail_cache import ThumbnailCache, ThumbnailSpec
from .thumbnail_stage import ThumbnailStage, ThumbnailResults
from .publish_plan import PublishPlan, SyncAction
from .planner import DiffPlanner
from .events import (
    ThumbnailProgressEvent,
    ProgressEvent,
    CompleteEvent,
    ErrorEvent,
    CancelledEvent,
)
from .execution_stats import ExecutionStats
from .executor import CancellationToken, Executor, ExecutorState, ExecutionOutcome
from .invalidator import Invalidator
from .engine import PublishEngine, PublishRun
from .publish_progress import PublishProgress
from .reporter import Reporter

__all__ = [
    "GalsyncError",
    "ResolutionError",
    "MissingAssetWarning",
    "ThumbnailGenerationError",
    "HashComputationError",
    "RemoteListError",
    "UploadError",
    "DeleteError",
    "InvalidationError",
    "PublishInProgressError",
    "PlanNotFoundError",
    "S3Config",
    "S3Client",
    "ManifestGraph",
    "FileKind",
    "ReachableFile",
    "ManifestResolver",
    "Resolution",
    "ThumbnailGenerator",
    "ThumbnailCache",
    "ThumbnailSpec",
    "ThumbnailStage",
    "ThumbnailResults",
    "PublishPlan",
    "SyncAction",
    "DiffPlanner",
    "ThumbnailProgressEvent",
    "ProgressEvent",
    "CompleteEvent",
    "ErrorEvent",
    "CancelledEvent",
    "ExecutionStats",
    "CancellationToken",
    "Executor",
    "ExecutorState",
    "ExecutionOutcome",
    "Invalidator",
    "PublishEngine",
    "PublishRun",
    "PublishProgress",
    "Reporter",
]
