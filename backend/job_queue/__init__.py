"""Background job queue.

Named job_queue so it does not shadow the stdlib queue module that
concurrent.futures imports.

Resolution runs are handed to this queue so POST /resolutions can answer
202 at once. Only an in-memory backend exists; whatever must outlive a
restart (progress, results, heartbeat) is written to the run row by the
job itself.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class JobStatus(Enum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class JobInfo:
    """Snapshot of one submitted call."""

    id: str
    func_name: str
    status: JobStatus
    enqueued_at: str
    started_at: str | None = None
    completed_at: str | None = None
    result: Any = None
    error: str | None = None


class QueueBackend(ABC):
    """Interface the routes and the app factory depend on."""

    @abstractmethod
    def enqueue(self, func, *args, job_id: str = None, **kwargs) -> str:
        """Submit func(*args, **kwargs); returns the job id (job_id when given)."""

    @abstractmethod
    def get_job(self, job_id: str) -> JobInfo | None:
        ...

    @abstractmethod
    def get_queue_length(self) -> int:
        ...

    @abstractmethod
    def get_backend_info(self) -> dict:
        """Counters reported by /health."""

    @abstractmethod
    def shutdown(self, wait: bool = True) -> None:
        ...


def create_job_queue(app=None, max_workers: int = 2) -> QueueBackend:
    """Build the queue used by create_app().

    Args:
        app: Flask app whose context wraps every job, None to run jobs bare.
        max_workers: Worker threads, 0 to run jobs inline.
    """
    from job_queue.memory_queue import MemoryJobQueue

    queue = MemoryJobQueue(max_workers=max_workers, app=app)
    logger.info("Job queue ready (%s)", "inline" if max_workers == 0 else f"{max_workers} workers")
    return queue
