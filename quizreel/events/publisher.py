from __future__ import annotations

import json
import logging
from typing import Any

try:  # pragma: no cover - optional dependency
    from kafka import KafkaProducer
except ImportError:  # pragma: no cover - kafka extra not installed
    KafkaProducer = None  # type: ignore

from quizreel.models.domain import Job, JobStatus

TERMINAL_STATUSES = {JobStatus.COMPLETED, JobStatus.FAILED}


def job_event(job: Job) -> dict[str, Any]:
    """Progress event for one job transition. Readers only need the header fields."""
    return {
        "event": "job.finished" if job.status in TERMINAL_STATUSES else "job.progress",
        "job_id": str(job.id),
        "status": job.status.value,
        "progress": job.progress,
        "message": job.message,
        "job": job.model_dump(mode="json"),
    }


class JobEventPublisher:
    """Sends job progress events to Kafka, keyed by job id so one job's events stay ordered."""

    def __init__(
        self,
        bootstrap_servers: str,
        topic: str,
        logger: logging.Logger | None = None,
        producer: Any | None = None,
    ) -> None:
        if not topic:
            raise ValueError("topic is required")
        self._topic = topic
        self._logger = logger or logging.getLogger(__name__)
        if producer is not None:
            self._producer = producer
            return
        if KafkaProducer is None:
            raise RuntimeError("kafka-python is not installed")
        if not bootstrap_servers:
            raise ValueError("bootstrap_servers is required")
        self._producer = KafkaProducer(
            bootstrap_servers=bootstrap_servers,
            key_serializer=lambda key: key.encode("utf-8"),
            value_serializer=lambda payload: json.dumps(payload, ensure_ascii=False).encode("utf-8"),
            linger_ms=5,
        )

    def publish_job(self, job: Job) -> None:
        event = job_event(job)
        try:
            self._producer.send(self._topic, key=event["job_id"], value=event)
        except Exception:
            self._logger.warning(
                "failed to publish job event",
                extra={"job_id": event["job_id"], "topic": self._topic, "progress": job.progress},
                exc_info=True,
            )
            return
        if event["event"] == "job.finished":
            # terminal events must not sit in the linger buffer
            self._flush()

    def _flush(self) -> None:
        try:
            self._producer.flush()
        except Exception:
            self._logger.warning("job event flush failed", extra={"topic": self._topic}, exc_info=True)

    def close(self) -> None:
        self._flush()
        try:
            self._producer.close()
        except Exception:
            self._logger.debug("job event publisher close failed", exc_info=True)
