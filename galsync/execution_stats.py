"""
ExecutionStats - Statistics for one execution of a publish plan.
"""

import time
from dataclasses import dataclass, field


@dataclass
class ExecutionStats:
    """
    Statistics for an execution.

    Attributes:
        total_actions: Uploads plus deletes in the plan
        unchanged: Files the plan left alone
        uploaded: Uploads applied
        deleted: Deletes applied
        bytes_uploaded: Total bytes of applied uploads
        start_time: Start timestamp
    """
    total_actions: int = 0
    unchanged: int = 0
    uploaded: int = 0
    deleted: int = 0
    bytes_uploaded: int = 0
    start_time: float = field(default_factory=time.time)

    @property
    def applied(self) -> int:
        """Actions applied so far."""
        return self.uploaded + self.deleted

    @property
    def remaining(self) -> int:
        return self.total_actions - self.applied

    @property
    def elapsed_seconds(self) -> float:
        """Elapsed time in seconds."""
        return time.time() - self.start_time

    @property
    def rate_per_second(self) -> float:
        """Actions applied per second."""
        if self.elapsed_seconds > 0:
            return self.applied / self.elapsed_seconds
        return 0.0

    @property
    def estimated_remaining_seconds(self) -> float:
        """Estimated time remaining in seconds."""
        if self.rate_per_second > 0:
            return self.remaining / self.rate_per_second
        return 0.0
