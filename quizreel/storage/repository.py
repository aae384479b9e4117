from __future__ import annotations

from threading import Lock
from typing import Dict, List
from uuid import UUID

from quizreel.models.domain import Job


class JobRepository:
    """Key-value store of job snapshots, last write wins per job id."""

    def __init__(self) -> None:
        self._jobs: Dict[UUID, Job] = {}
        self._lock = Lock()

    def save(self, job: Job) -> Job:
        with self._lock:
            self._jobs[job.id] = job.model_copy(deep=True)
        return job

    def get(self, job_id: UUID) -> Job | None:
        with self._lock:
            job = self._jobs.get(job_id)
            return job.model_copy(deep=True) if job else None

    def list(self) -> List[Job]:
        with self._lock:
            return [job.model_copy(deep=True) for job in self._jobs.values()]
