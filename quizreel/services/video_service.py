from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from quizreel.clients.cache import ResponseCache
from quizreel.clients.images import OpenAIImageClient
from quizreel.clients.tts import ElevenLabsClient
from quizreel.config import Settings
from quizreel.errors import JobFailedError, PipelineError
from quizreel.events.publisher import JobEventPublisher
from quizreel.media.ffmpeg import EncodeProfile, FFmpegTool, find_ffmpeg
from quizreel.models.api import VideoGenerationRequest
from quizreel.models.domain import Job, JobStatus
from quizreel.queue.queue import BaseQueue
from quizreel.services.composite import SegmentCompositeBuilder
from quizreel.services.concat import Concatenator
from quizreel.services.countdown import CountdownComposer
from quizreel.services.duration import DurationAdjuster
from quizreel.services.jobs import JobLifecycleManager
from quizreel.services.orchestrator import RenderOrchestrator
from quizreel.services.prompts import PromptBuilder
from quizreel.services.renderer import SegmentRenderer
from quizreel.services.speech import TimedSpeechSynthesizer
from quizreel.services.visuals import FallbackVisualProvider
from quizreel.storage.repository import JobRepository
from quizreel.storage.workspace import JobWorkspace

GENERIC_FAILURE = "Video generation failed due to an internal error"


class VideoService:
    def __init__(
        self,
        repo: JobRepository,
        settings: Settings,
        media: FFmpegTool | None = None,
        tts: ElevenLabsClient | None = None,
        images: OpenAIImageClient | None = None,
        events: JobEventPublisher | None = None,
    ) -> None:
        self.repo = repo
        self.queue: BaseQueue | None = None
        self.settings = settings
        self.timing = settings.timing()
        self.log = logging.getLogger(__name__)
        self.media = media or FFmpegTool(
            bins=find_ffmpeg(settings.ffmpeg_path, settings.ffprobe_path),
            profile=EncodeProfile.from_settings(settings),
            timeout=settings.ffmpeg_timeout,
            logger=self.log,
        )
        self.cache = (
            ResponseCache(settings.cache_dir, ttl_seconds=settings.cache_ttl_seconds, logger=self.log)
            if settings.cache_enabled
            else None
        )
        if self.cache is not None:
            self.cache.cleanup()
        self.tts = tts
        if self.tts is None and settings.voice_enabled:
            self.tts = ElevenLabsClient(
                api_key=settings.elevenlabs_api_key,
                voice_id=settings.elevenlabs_voice_id,
                model_id=settings.elevenlabs_model_id,
                base_url=settings.elevenlabs_base_url,
                stability=settings.voice_stability,
                similarity_boost=settings.voice_similarity_boost,
                style=settings.voice_style,
                use_speaker_boost=settings.voice_speaker_boost,
                timeout=settings.http_timeout,
                cache=self.cache,
                logger=self.log,
            )
        self.images = images
        if self.images is None and settings.ai_images_enabled:
            self.images = OpenAIImageClient(
                api_key=settings.openai_api_key,
                model=settings.openai_image_model,
                size=settings.openai_image_size,
                quality=settings.openai_image_quality,
                style=settings.openai_image_style,
                base_url=settings.openai_base_url,
                timeout=settings.http_timeout,
                cache=self.cache,
                logger=self.log,
            )
        self.events = events
        if self.events is None and settings.kafka_enabled and settings.kafka_updates_topic:
            try:
                self.events = JobEventPublisher(
                    bootstrap_servers=settings.kafka_bootstrap_servers,
                    topic=settings.kafka_updates_topic,
                    logger=self.log,
                )
            except Exception:  # pragma: no cover - best effort logging
                self.log.warning(
                    "job event publisher unavailable",
                    extra={"topic": settings.kafka_updates_topic},
                    exc_info=True,
                )
        self.lifecycle = JobLifecycleManager(repo, events=self.events, logger=self.log)
        self.prompts = PromptBuilder(logger=self.log)

    def bind_queue(self, queue: BaseQueue) -> None:
        self.queue = queue

    def create_job(self, payload: VideoGenerationRequest) -> Job:
        job = self.lifecycle.create(payload.title, payload.questions)
        if self.queue is not None:
            self.queue.enqueue(job.id)
        return job

    def get_job(self, job_id: UUID) -> Job:
        job = self.lifecycle.get(job_id)
        if not job:
            raise ValueError("Video job not found")
        return job

    def list_jobs(self) -> list[Job]:
        return self.lifecycle.list()

    def process_job(self, job_id: UUID) -> Optional[str]:
        job = self.repo.get(job_id)
        if not job:
            self.log.warning("queued job not found", extra={"job_id": str(job_id)})
            return None
        if job.status != JobStatus.WAITING:
            # Redelivered message for a job another run already picked up.
            self.log.info(
                "skipping job that is not waiting",
                extra={"job_id": str(job_id), "status": job.status.value},
            )
            return None
        try:
            return self.build_orchestrator(job).run(job)
        except Exception as exc:
            if isinstance(exc, PipelineError) and str(exc):
                reason = str(exc)
                self.log.error("video job failed", extra={"job_id": str(job_id), "error": reason}, exc_info=True)
            else:
                reason = GENERIC_FAILURE
                self.log.exception("video job failed", extra={"job_id": str(job_id)})
            current = self.repo.get(job_id)
            if current is None or current.status == JobStatus.WAITING:
                # Never started: a delivery-level failure the queue may retry.
                raise
            if current.status == JobStatus.PROCESSING:
                self.lifecycle.fail(job_id, reason)
            raise JobFailedError(job_id, reason) from exc

    def build_orchestrator(self, job: Job) -> RenderOrchestrator:
        settings = self.settings
        workspace = JobWorkspace.for_job(settings.work_dir, job.id, logger=self.log)
        adjuster = DurationAdjuster(
            self.media,
            tolerance=self.timing.tolerance,
            sample_rate=settings.audio_sample_rate,
            channels=settings.audio_channels,
            logger=self.log,
        )
        visuals = FallbackVisualProvider(
            self.media,
            workspace,
            size=(settings.video_width, settings.video_height),
            image_client=self.images,
            ai_enabled=settings.ai_images_enabled,
            prompts=self.prompts,
            http_timeout=settings.http_timeout,
            logger=self.log,
        )
        speech = TimedSpeechSynthesizer(
            adjuster,
            workspace,
            self.timing,
            tts=self.tts,
            voice_enabled=settings.voice_enabled,
            logger=self.log,
        )
        countdown = CountdownComposer(
            self.media,
            adjuster,
            workspace,
            self.timing,
            assets_dir=settings.assets_dir,
            logger=self.log,
        )
        composite = SegmentCompositeBuilder(self.media, adjuster, countdown, workspace, self.timing, logger=self.log)
        renderer = SegmentRenderer(
            self.media,
            workspace,
            self.timing,
            font_file=settings.font_file,
            question_font_size=settings.question_font_size,
            answer_font_size=settings.answer_font_size,
            title_font_size=settings.title_font_size,
            question_color=settings.question_color,
            answer_color=settings.answer_color,
            wrap_width=settings.text_wrap_width,
            logger=self.log,
        )
        return RenderOrchestrator(
            lifecycle=self.lifecycle,
            workspace=workspace,
            timing=self.timing,
            visuals=visuals,
            speech=speech,
            composite=composite,
            renderer=renderer,
            concatenator=Concatenator(self.media, workspace, logger=self.log),
            adjuster=adjuster,
            output_dir=settings.output_dir,
            logger=self.log,
        )
