from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field, field_validator

from .domain import Job, Question


class VideoGenerationRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    questions: List[Question] = Field(..., min_length=3, max_length=5)

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must not be blank")
        return value.strip()


class VideoJobResponse(BaseModel):
    job: Job


class VideoJobListResponse(BaseModel):
    items: List[Job]


class HealthResponse(BaseModel):
    status: str
