# Job model - in-memory transcoding job entry (state, output location, timestamps)

from enum import Enum
from typing import ClassVar, Optional

from pydantic import BaseModel


class JobState(str, Enum):
    PENDING = "pending"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not JobState.PENDING


class Job(BaseModel):
    """Registry entry. Frozen: every transition swaps in a new instance."""

    id: str
    state: JobState = JobState.PENDING
    output_location: Optional[str] = None
    error_message: Optional[str] = None
    created_at: float
    finished_at: Optional[float] = None

    model_config = {"frozen": True}

    def __repr__(self):
        return f"<Job(id='{self.id}', state={self.state.value})>"


class JobStatus(BaseModel):
    """Result of a status read. status is a JobState value or "not_found"."""

    job_id: str
    status: str
    output_location: Optional[str] = None
    error_message: Optional[str] = None

    NOT_FOUND: ClassVar[str] = "not_found"

    @property
    def found(self) -> bool:
        return self.status != self.NOT_FOUND

    @classmethod
    def not_found(cls, job_id: str) -> "JobStatus":
        return cls(job_id=job_id, status=cls.NOT_FOUND)

    @classmethod
    def from_job(cls, job: Job) -> "JobStatus":
        return cls(
            job_id=job.id,
            status=job.state.value,
            output_location=job.output_location,
            error_message=job.error_message,
        )
