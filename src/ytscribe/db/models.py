"""Pydantic models for database entities."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class VideoStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class VideoRecord(BaseModel):
    id: int
    youtube_url: str
    youtube_id: str
    title: str | None = None
    duration: int | None = None  # seconds
    thumbnail_url: str | None = None
    status: VideoStatus = VideoStatus.PENDING
    created_at: str | None = None
    updated_at: str | None = None


class Segment(BaseModel):
    start: float
    end: float
    text: str


class TranscriptRecord(BaseModel):
    id: int
    video_id: int
    content: str
    segments: list[Segment] = Field(default_factory=list)
    language: str = "en"
    created_at: str | None = None
