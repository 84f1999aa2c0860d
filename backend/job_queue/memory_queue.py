"""In-process job queue backed by a bounded ThreadPoolExecutor.

Every job runs inside its own Flask application context, so repositories
used by the job get a session of their own. Nothing survives a restart:
an interrupted resolution run keeps its last heartbeat and is reported
stale by the status endpoint.

max_workers=0 runs each job inline in the submitting thread (testing).
"""

import logging
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from datetime import UTC, datetime, timedelta

from job_queue import JobInfo, JobStatus, QueueBackend

logger = logging.getLogger(__name__)

# Finished jobs are forgotten after this long
RETENTION = timedelta(hours=1)


def _now() -> str:
    return datetime.now(UTC).isoformat()


class MemoryJobQueue(QueueBackend):

    def __init__(self, max_workers: int = 2, app=None):
        self._app = app
        self._max_workers = max_workers
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="seopilot-job") \
            if max_workers > 0 else None
        self._jobs: dict[str, JobInfo] = {}
        self._lock = threading.Lock()

    def enqueue(self, func, *args, job_id: str = None, **kwargs) -> str:
        job_id = job_id or uuid.uuid4().hex[:8]
        info = JobInfo(id=job_id, func_name=getattr(func, "__name__", repr(func)),
                       status=JobStatus.QUEUED, enqueued_at=_now())
        with self._lock:
            self._forget_finished()
            self._jobs[job_id] = info

        if self._executor is not None:
            future = self._executor.submit(self._run, job_id, func, args, kwargs)
            future.add_done_callback(lambda f: self._finish(job_id, f))
        else:
            future = Future()
            try:
                future.set_result(self._run(job_id, func, args, kwargs))
            except Exception as e:
                future.set_exception(e)
            self._finish(job_id, future)

        logger.debug("Enqueued %s as job %s", info.func_name, job_id)
        return job_id

    def _run(self, job_id: str, func, args: tuple, kwargs: dict):
        self._update(job_id, status=JobStatus.RUNNING, started_at=_now())
        if self._app is None:
            return func(*args, **kwargs)
        with self._app.app_context():
            return func(*args, **kwargs)

    def _finish(self, job_id: str, future: Future) -> None:
        error = future.exception()
        if error is not None:
            logger.error("Background job %s failed: %s", job_id, error)
            self._update(job_id, status=JobStatus.FAILED, completed_at=_now(), error=str(error))
        else:
            self._update(job_id, status=JobStatus.COMPLETED, completed_at=_now(), result=future.result())

    def _update(self, job_id: str, **changes) -> None:
        with self._lock:
            if job_id in self._jobs:
                self._jobs[job_id] = replace(self._jobs[job_id], **changes)

    def _forget_finished(self) -> None:
        """Drop finished jobs older than RETENTION. Caller holds the lock."""
        cutoff = (datetime.now(UTC) - RETENTION).isoformat()
        expired = [job_id for job_id, info in self._jobs.items()
                   if info.status in (JobStatus.COMPLETED, JobStatus.FAILED)
                   and (info.completed_at or "") < cutoff]
        for job_id in expired:
            del self._jobs[job_id]

    def get_job(self, job_id: str) -> JobInfo | None:
        with self._lock:
            return self._jobs.get(job_id)

    def _count(self, status: JobStatus) -> int:
        with self._lock:
            return sum(1 for info in self._jobs.values() if info.status == status)

    def get_queue_length(self) -> int:
        return self._count(JobStatus.QUEUED)

    def get_backend_info(self) -> dict:
        with self._lock:
            total = len(self._jobs)
        return {
            "type": "memory",
            "max_workers": self._max_workers,
            "active": self._count(JobStatus.RUNNING),
            "queued": self._count(JobStatus.QUEUED),
            "total_tracked": total,
        }

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
