from __future__ import annotations


class PipelineError(Exception):
    """A stage failure that ends the job. The message is safe to show callers."""


class RenderError(PipelineError):
    pass


class ConcatenationError(PipelineError):
    pass


class InvalidJobTransition(ValueError):
    pass


class JobFailedError(Exception):
    """Signals the queue that a job reached the failed state and must not be retried."""

    def __init__(self, job_id, reason: str) -> None:
        super().__init__(f"job {job_id} failed: {reason}")
        self.job_id = job_id
        self.reason = reason
