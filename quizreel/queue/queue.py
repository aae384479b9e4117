from __future__ import annotations

import json
import logging
import threading
import time
from queue import Queue
from typing import Any, Callable, Optional
from uuid import UUID

try:
    from kafka import KafkaConsumer, KafkaProducer
except ImportError:  # pragma: no cover - optional dependency
    KafkaConsumer = None  # type: ignore
    KafkaProducer = None  # type: ignore

from quizreel.errors import JobFailedError

Processor = Callable[[UUID], Any]


class BaseQueue:
    def enqueue(self, job_id: UUID) -> None: ...  # pragma: no cover


class RetryPolicy:
    """Bounded attempts with exponential backoff.

    A :class:`JobFailedError` is terminal for the job and is never retried;
    anything else is treated as a delivery-level failure.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        backoff_seconds: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep
        self.log = logger or logging.getLogger(__name__)

    def delay(self, attempt: int) -> float:
        return self.backoff_seconds * (2 ** (attempt - 1))

    def execute(self, processor: Processor, job_id: UUID) -> bool:
        for attempt in range(1, self.max_attempts + 1):
            try:
                processor(job_id)
                return True
            except JobFailedError as exc:
                self.log.warning(
                    "job failed, not retrying",
                    extra={"job_id": str(job_id), "reason": exc.reason, "attempt": attempt},
                )
                return False
            except Exception:
                if attempt == self.max_attempts:
                    self.log.error(
                        "job delivery exhausted retries",
                        extra={"job_id": str(job_id), "attempts": attempt},
                        exc_info=True,
                    )
                    return False
                delay = self.delay(attempt)
                self.log.warning(
                    "job delivery failed, retrying",
                    extra={"job_id": str(job_id), "attempt": attempt, "delay": delay},
                    exc_info=True,
                )
                self._sleep(delay)
        return False


class LocalQueue(BaseQueue):
    """In-process queue with one worker thread, so at most one job renders at a time."""

    def __init__(
        self,
        processor: Processor,
        max_attempts: int = 3,
        backoff_seconds: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._processor = processor
        self._retry = RetryPolicy(max_attempts, backoff_seconds, sleep=sleep, logger=logger)
        self._queue: Queue[UUID] = Queue()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def enqueue(self, job_id: UUID) -> None:
        self._queue.put(job_id)

    def join(self) -> None:
        self._queue.join()

    def _run(self) -> None:
        while True:
            job_id = self._queue.get()
            try:
                self._retry.execute(self._processor, job_id)
            finally:
                self._queue.task_done()


class KafkaQueue(BaseQueue):
    def __init__(
        self,
        bootstrap_servers: str,
        topic: str,
        group_id: str,
        processor: Processor,
        max_attempts: int = 3,
        backoff_seconds: float = 5.0,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if KafkaProducer is None or KafkaConsumer is None:
            raise RuntimeError("kafka-python is not installed")
        self._topic = topic
        self._processor = processor
        self._retry = RetryPolicy(max_attempts, backoff_seconds, logger=logger)
        self.log = logger or logging.getLogger(__name__)
        self._producer = KafkaProducer(
            bootstrap_servers=bootstrap_servers,
            value_serializer=lambda value: json.dumps(value).encode("utf-8"),
        )
        self._consumer = KafkaConsumer(
            topic,
            bootstrap_servers=bootstrap_servers,
            group_id=group_id,
            auto_offset_reset="earliest",
            enable_auto_commit=True,
            max_poll_records=1,
            value_deserializer=lambda value: json.loads(value.decode("utf-8")),
        )
        self._thread = threading.Thread(target=self._consume, daemon=True)
        self._thread.start()

    def enqueue(self, job_id: UUID) -> None:
        payload = {"job_id": str(job_id), "ts": time.time()}
        self._producer.send(self._topic, payload)
        self._producer.flush()

    def _consume(self) -> None:
        for message in self._consumer:
            try:
                job_id = UUID(message.value["job_id"])
            except (KeyError, TypeError, ValueError):
                self.log.warning("discarding malformed queue message", extra={"topic": self._topic})
                continue
            self._retry.execute(self._processor, job_id)
