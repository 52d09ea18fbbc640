# Job registry - in-memory job table shared by the upload handler, the worker pool and the status poller

import itertools
import logging
import threading
import time
from typing import Callable, Dict, Optional

from clipconvert.models.job import Job, JobState, JobStatus

logger = logging.getLogger(__name__)


def default_job_id_factory() -> Callable[[], str]:
    """
    Build an id generator producing names like video_1718000000123_7.mp4

    The millisecond stamp keeps names readable and roughly sortable, the
    counter guarantees two submissions in the same millisecond never collide.
    """
    counter = itertools.count(1)

    def next_id() -> str:
        return f"video_{int(time.time() * 1000)}_{next(counter)}.mp4"

    return next_id


class JobRegistry:
    """
    Thread-safe table of transcoding jobs keyed by job id.

    Every public method takes the same lock for its whole duration, and
    entries are frozen models replaced wholesale, so a reader never sees a
    half-applied transition.

    Delivery rules:
        - a `complete` entry is removed by the first get_status() that sees it
        - a `failed` entry stays readable until failed_ttl seconds have passed
    """

    def __init__(
        self,
        failed_ttl: float = 3600,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()
        self._failed_ttl = failed_ttl
        self._next_id = id_factory or default_job_id_factory()
        self._clock = clock

    def submit(self) -> str:
        """Allocate a fresh id and register it as pending"""
        with self._lock:
            self._purge_expired_locked()
            job_id = self._next_id()
            if job_id in self._jobs:
                raise RuntimeError(f"Job id factory produced a duplicate id: {job_id}")
            self._jobs[job_id] = Job(id=job_id, created_at=self._clock())

        logger.info(f"Job {job_id} registered as pending")
        return job_id

    def mark_complete(self, job_id: str, output_location: str) -> None:
        """pending -> complete. Unknown or already-terminal ids are ignored."""
        with self._lock:
            job = self._pending_or_none(job_id, "complete")
            if job is None:
                return
            self._jobs[job_id] = job.model_copy(update={
                "state": JobState.COMPLETE,
                "output_location": output_location,
                "finished_at": self._clock(),
            })

        logger.info(f"Job {job_id} complete -> {output_location}")

    def mark_failed(self, job_id: str, error: Optional[str] = None) -> None:
        """pending -> failed. Unknown or already-terminal ids are ignored."""
        with self._lock:
            job = self._pending_or_none(job_id, "failed")
            if job is None:
                return
            self._jobs[job_id] = job.model_copy(update={
                "state": JobState.FAILED,
                "error_message": error,
                "finished_at": self._clock(),
            })

        logger.info(f"Job {job_id} failed: {error}")

    def get_status(self, job_id: str) -> JobStatus:
        """
        Read a job's status.

        Reading a complete job removes it, so the success payload is handed
        out at most once; a second read returns not_found.
        """
        with self._lock:
            self._purge_expired_locked()
            job = self._jobs.get(job_id)
            if job is None:
                return JobStatus.not_found(job_id)
            if job.state is JobState.COMPLETE:
                del self._jobs[job_id]
            return JobStatus.from_job(job)

    def purge_expired(self) -> int:
        """Drop failed entries older than the failed-job TTL. Returns how many were dropped."""
        with self._lock:
            return self._purge_expired_locked()

    def counts(self) -> Dict[str, int]:
        with self._lock:
            totals = {state.value: 0 for state in JobState}
            for job in self._jobs.values():
                totals[job.state.value] += 1
            return totals

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def _pending_or_none(self, job_id: str, target: str) -> Optional[Job]:
        job = self._jobs.get(job_id)
        if job is None:
            logger.warning(f"Ignoring {target} signal for unknown job {job_id}")
            return None
        if job.state.is_terminal:
            logger.warning(f"Ignoring {target} signal for job {job_id} already {job.state.value}")
            return None
        return job

    def _purge_expired_locked(self) -> int:
        now = self._clock()
        expired = [
            job_id for job_id, job in self._jobs.items()
            if job.state is JobState.FAILED and now - job.finished_at > self._failed_ttl
        ]
        for job_id in expired:
            del self._jobs[job_id]
        if expired:
            logger.info(f"Purged {len(expired)} expired failed job(s)")
        return len(expired)
