from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID, uuid4

from quizreel.errors import InvalidJobTransition
from quizreel.events.publisher import JobEventPublisher
from quizreel.models.domain import Job, JobStatus, Question
from quizreel.storage.repository import JobRepository

ALLOWED_TRANSITIONS: dict[JobStatus, set[JobStatus]] = {
    JobStatus.WAITING: {JobStatus.PROCESSING},
    JobStatus.PROCESSING: {JobStatus.COMPLETED, JobStatus.FAILED},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
}


class JobLifecycleManager:
    """Owns job state: status, checkpoint progress and the status message.

    Only the orchestrator run that owns a job mutates it; reads return the last
    saved snapshot and never trigger work.
    """

    def __init__(
        self,
        repo: JobRepository,
        events: JobEventPublisher | None = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.repo = repo
        self.events = events
        self.log = logger or logging.getLogger(__name__)

    def create(self, title: str, questions: Sequence[Question]) -> Job:
        job = Job(
            id=uuid4(),
            title=title,
            questions=list(questions),
            status=JobStatus.WAITING,
            progress=0,
            message="Job queued",
        )
        self._save(job)
        self.log.info("job created", extra={"job_id": str(job.id), "questions": len(job.questions)})
        return job

    def get(self, job_id: UUID) -> Job | None:
        return self.repo.get(job_id)

    def list(self) -> List[Job]:
        return sorted(self.repo.list(), key=lambda job: job.created_at, reverse=True)

    def start(self, job_id: UUID, progress: int, message: str) -> Job:
        job = self._require(job_id)
        self._transition(job, JobStatus.PROCESSING)
        return self._update(job, progress=progress, message=message)

    def checkpoint(self, job_id: UUID, progress: int, message: str) -> Job:
        job = self._require(job_id)
        if job.status != JobStatus.PROCESSING:
            raise InvalidJobTransition(f"cannot record progress for a {job.status.value} job")
        return self._update(job, progress=progress, message=message)

    def complete(self, job_id: UUID, output_path: str, message: str = "Video is ready") -> Job:
        job = self._require(job_id)
        self._transition(job, JobStatus.COMPLETED)
        job.output_path = output_path
        return self._update(job, progress=100, message=message)

    def fail(self, job_id: UUID, error: str, message: str = "Video generation failed") -> Job:
        job = self._require(job_id)
        self._transition(job, JobStatus.FAILED)
        job.error = error or "Unknown error"
        # Progress stays at the last checkpoint reached.
        return self._update(job, progress=job.progress, message=message)

    def _require(self, job_id: UUID) -> Job:
        job = self.repo.get(job_id)
        if job is None:
            raise LookupError(f"job {job_id} not found")
        return job

    def _transition(self, job: Job, target: JobStatus) -> None:
        if target not in ALLOWED_TRANSITIONS[job.status]:
            raise InvalidJobTransition(f"cannot move job from {job.status.value} to {target.value}")
        self.log.info(
            "job status changed",
            extra={"job_id": str(job.id), "from": job.status.value, "to": target.value},
        )
        job.status = target

    def _update(self, job: Job, progress: int, message: str) -> Job:
        if progress < job.progress:
            self.log.debug(
                "ignoring progress regression",
                extra={"job_id": str(job.id), "current": job.progress, "requested": progress},
            )
        job.progress = min(100, max(job.progress, progress))
        job.message = message
        job.updated_at = datetime.utcnow()
        self._save(job)
        return job

    def _save(self, job: Job) -> None:
        self.repo.save(job)
        if not self.events:
            return
        try:
            self.events.publish_job(job)
        except Exception:
            self.log.warning("job event emission failed", extra={"job_id": str(job.id)}, exc_info=True)
