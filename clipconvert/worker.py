# Worker pool - runs FFmpeg transcodes off the request path and reports the outcome back

import logging
import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Callable, Optional, Set

from clipconvert.models.profile import TranscodeProfile
from clipconvert.services.transcode_service import TranscodeResult, TranscodeService

logger = logging.getLogger(__name__)

SuccessHandler = Callable[[str, Path, TranscodeResult], None]
FailureHandler = Callable[[str, Path, Path, Exception], None]


def transcode_video_task(
    transcoder: TranscodeService,
    profile: TranscodeProfile,
    job_id: str,
    input_path: Path,
    output_path: Path,
    on_success: SuccessHandler,
    on_failure: FailureHandler,
) -> None:
    """
    Transcode one upload and deliver the outcome to exactly one handler.

    Runs on a pool thread. Nothing is raised out of here: by the time this
    runs the HTTP response is long gone, so the outcome can only be
    recorded through the handlers.
    """
    logger.info(f"Starting transcode job {job_id}: {input_path.name} -> {output_path.name}")

    try:
        result = transcoder.transcode(str(input_path), str(output_path), profile)
    except Exception as e:
        stderr = getattr(e, "stderr", "")
        logger.error(f"Transcode job {job_id} failed: {e}" + (f"\n{stderr}" if stderr else ""))
        _deliver(on_failure, job_id, input_path, output_path, e)
        return

    logger.info(f"Transcode job {job_id} completed successfully ({result.output_size:,} bytes)")
    _deliver(on_success, job_id, input_path, result)


def _deliver(handler: Callable, job_id: str, *args) -> None:
    try:
        handler(job_id, *args)
    except Exception as e:
        logger.error(f"Completion handler for job {job_id} raised: {e}", exc_info=True)


class TranscodeWorker:
    """Bounded thread pool that owns every in-flight transcode"""

    def __init__(self, transcoder: TranscodeService, profile: TranscodeProfile, max_workers: int = 2):
        self.transcoder = transcoder
        self.profile = profile
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="transcode")
        self._in_flight: Set[Future] = set()
        self._lock = threading.Lock()

    def dispatch(
        self,
        job_id: str,
        input_path: Path,
        output_path: Path,
        on_success: SuccessHandler,
        on_failure: FailureHandler,
    ) -> Future:
        """Queue a transcode and return immediately"""
        future = self._executor.submit(
            transcode_video_task,
            self.transcoder,
            self.profile,
            job_id,
            input_path,
            output_path,
            on_success,
            on_failure,
        )
        with self._lock:
            self._in_flight.add(future)

        def finished(done: Future) -> None:
            with self._lock:
                self._in_flight.discard(done)
            if done.cancelled():
                logger.warning(f"Transcode job {job_id} cancelled before it started")
                _deliver(on_failure, job_id, input_path, output_path, CancelledError("Server shut down before the transcode started"))

        future.add_done_callback(finished)
        return future

    @property
    def active(self) -> int:
        with self._lock:
            return len(self._in_flight)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until every transcode queued so far has finished. Returns False on timeout."""
        with self._lock:
            pending = set(self._in_flight)
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work and cancel transcodes that have not started yet"""
        self._executor.shutdown(wait=wait, cancel_futures=True)
