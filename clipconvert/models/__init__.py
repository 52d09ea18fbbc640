# Pydantic models - job state, status payloads, transcode profile

from .job import Job, JobState, JobStatus
from .profile import TranscodeProfile
