"""Abstract collaborator interfaces consumed by the pipeline."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class VideoMetadata:
    id: str
    title: str | None
    duration: int | None  # seconds
    thumbnail_url: str | None


@dataclass
class TranscriptSegment:
    start: float
    end: float
    text: str


@dataclass
class TranscriptionResult:
    text: str
    segments: list[TranscriptSegment] = field(default_factory=list)
    language: str = "en"
    duration: float = 0.0


class MetadataProvider(ABC):
    @abstractmethod
    def fetch(self, url: str) -> VideoMetadata:
        ...


class MediaFetcher(ABC):
    @abstractmethod
    def download(self, url: str) -> Path:
        """Download the audio track for ``url`` and return the local file path."""
        ...


class TranscriptionProvider(ABC):
    @abstractmethod
    def transcribe(self, audio_path: Path) -> TranscriptionResult:
        ...
