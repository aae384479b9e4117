from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class JobStatus(str, Enum):
    WAITING = "waiting"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    question: str = Field(..., min_length=1, max_length=120)
    answer: str = Field(..., min_length=1, max_length=120)
    image: Optional[str] = None


class Job(BaseModel):
    id: UUID
    title: str
    questions: List[Question]
    status: JobStatus = JobStatus.WAITING
    progress: int = Field(default=0, ge=0, le=100)
    message: Optional[str] = None
    output_path: Optional[str] = None
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.COMPLETED, JobStatus.FAILED)


class TimingConfig(BaseModel):
    """Per-question timing.

    ``total_duration`` is authoritative: the question, pause and answer
    durations are targets for the individual parts, and the composite track
    is forced to ``total_duration`` regardless of how they add up.
    """

    model_config = ConfigDict(frozen=True)

    question_duration: float = Field(default=2.5, gt=0)
    pause_duration: float = Field(default=3.0, gt=0)
    answer_duration: float = Field(default=2.5, gt=0)
    total_duration: float = Field(default=8.0, gt=0)
    countdown_enabled: bool = True
    intro_enabled: bool = True
    intro_duration: float = Field(default=4.0, gt=0)
    tolerance: float = Field(default=0.1, gt=0)

    def expected_video_duration(self, question_count: int) -> float:
        intro = self.intro_duration if self.intro_enabled else 0.0
        return intro + question_count * self.total_duration


@dataclass(frozen=True)
class AudioAsset:
    path: str
    duration: Optional[float] = None


@dataclass(frozen=True)
class VisualAsset:
    path: str
    source: str


@dataclass(frozen=True)
class Segment:
    path: str
    index: int
    duration: float
