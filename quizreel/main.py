from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends, FastAPI, HTTPException, status

from quizreel.config import Settings, get_settings
from quizreel.models.api import HealthResponse, VideoGenerationRequest, VideoJobListResponse, VideoJobResponse
from quizreel.queue.queue import BaseQueue, KafkaQueue, LocalQueue
from quizreel.services.video_service import VideoService
from quizreel.storage.repository import JobRepository

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(title="quizreel")

_repo = JobRepository()
_service: VideoService | None = None


def get_video_service(settings: Settings = Depends(get_settings)) -> VideoService:
    global _service
    if _service is None:
        service = VideoService(repo=_repo, settings=settings)
        queue = _build_queue(settings, service)
        service.bind_queue(queue)
        _service = service
    return _service


def _build_queue(settings: Settings, service: VideoService) -> BaseQueue:
    if settings.kafka_enabled:
        return KafkaQueue(
            bootstrap_servers=settings.kafka_bootstrap_servers,
            topic=settings.kafka_topic,
            group_id=settings.kafka_group_id,
            processor=service.process_job,
            max_attempts=settings.queue_max_attempts,
            backoff_seconds=settings.queue_backoff_seconds,
        )
    return LocalQueue(
        processor=service.process_job,
        max_attempts=settings.queue_max_attempts,
        backoff_seconds=settings.queue_backoff_seconds,
    )


@app.post("/videos", response_model=VideoJobResponse, status_code=status.HTTP_202_ACCEPTED)
def create_video(
    payload: VideoGenerationRequest,
    service: VideoService = Depends(get_video_service),
) -> VideoJobResponse:
    job = service.create_job(payload)
    return VideoJobResponse(job=job)


@app.get("/videos", response_model=VideoJobListResponse)
def list_videos(service: VideoService = Depends(get_video_service)) -> VideoJobListResponse:
    return VideoJobListResponse(items=service.list_jobs())


@app.get("/videos/{job_id}", response_model=VideoJobResponse)
def get_video(job_id: UUID, service: VideoService = Depends(get_video_service)) -> VideoJobResponse:
    try:
        job = service.get_job(job_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return VideoJobResponse(job=job)


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok")
