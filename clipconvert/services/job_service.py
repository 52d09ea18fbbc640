# Job service - submission and status glue between the API, the registry and the worker pool

import logging
import threading
from pathlib import Path
from typing import Set

from clipconvert.core.errors import ClipConvertError, InvalidUploadError
from clipconvert.models.job import JobStatus
from clipconvert.services.file_service import remove_file
from clipconvert.services.job_registry import JobRegistry
from clipconvert.services.transcode_service import TranscodeResult
from clipconvert.worker import TranscodeWorker

logger = logging.getLogger(__name__)


class JobService:
    """
    Owns the job lifecycle policy:

    - submit registers the job before the transcoder is ever invoked
    - the temporary input is deleted once the job reaches either terminal state
    - a failed transcode also drops whatever partial output ffmpeg left behind
    - inputs of unfinished jobs are reported by holds_input so the scratch
      sweeper leaves them alone while they wait in the queue
    """

    def __init__(
        self,
        registry: JobRegistry,
        worker: TranscodeWorker,
        video_dir: Path,
        public_prefix: str = "/videos",
    ):
        self.registry = registry
        self.worker = worker
        self.video_dir = Path(video_dir)
        self.public_prefix = public_prefix.rstrip("/")
        self._inputs_in_use: Set[Path] = set()
        self._inputs_lock = threading.Lock()

    def public_location(self, job_id: str) -> str:
        return f"{self.public_prefix}/{job_id}"

    def submit(self, input_path: Path) -> str:
        """
        Register a job for an uploaded file and start transcoding it in the background

        Args:
            input_path: Decoded upload in the scratch directory

        Returns:
            str: Job id (also the output filename)

        Raises:
            InvalidUploadError: input is missing or empty
        """
        input_path = Path(input_path)
        if not input_path.is_file():
            raise InvalidUploadError("No video file was uploaded")
        if input_path.stat().st_size == 0:
            raise InvalidUploadError("Uploaded video file is empty")

        job_id = self.registry.submit()
        output_path = self.video_dir / job_id
        self._claim_input(input_path)

        try:
            self.worker.dispatch(
                job_id,
                input_path,
                output_path,
                on_success=self._handle_success,
                on_failure=self._handle_failure,
            )
        except RuntimeError as e:
            # Pool already shut down
            self.registry.mark_failed(job_id, "Worker pool unavailable")
            self._release_input(input_path)
            raise ClipConvertError(f"Could not schedule transcode for {job_id}: {e}") from e

        logger.info(f"Job {job_id} queued for {input_path}")
        return job_id

    def status(self, job_id: str) -> JobStatus:
        return self.registry.get_status(job_id)

    def holds_input(self, path: Path) -> bool:
        """True while the file is the input of a job that has not finished yet"""
        with self._inputs_lock:
            return Path(path).resolve() in self._inputs_in_use

    def _claim_input(self, path: Path) -> None:
        with self._inputs_lock:
            self._inputs_in_use.add(path.resolve())

    def _release_input(self, path: Path) -> None:
        key = path.resolve()
        remove_file(path)
        with self._inputs_lock:
            self._inputs_in_use.discard(key)

    def _handle_success(self, job_id: str, input_path: Path, result: TranscodeResult) -> None:
        self._release_input(input_path)
        self.registry.mark_complete(job_id, self.public_location(job_id))

    def _handle_failure(self, job_id: str, input_path: Path, output_path: Path, error: Exception) -> None:
        self.registry.mark_failed(job_id, str(error))
        self._release_input(input_path)
        remove_file(output_path)
