"""Video processing pipeline orchestrator.

fetch record -> mark processing -> metadata (best-effort) -> download audio
-> transcribe -> save transcript -> mark completed.

Any failure after the record is found marks the video failed, removes the
downloaded audio and publishes a terminal ``error`` event before the
PipelineError is re-raised.
"""

from __future__ import annotations

import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from ytscribe.core.exceptions import (
    DatabaseError,
    DownloadFailedError,
    PipelineDatabaseError,
    PipelineError,
    TranscriptionError,
    TranscriptionFailedError,
    VideoNotFoundError,
)
from ytscribe.db.models import TranscriptRecord, VideoRecord, VideoStatus
from ytscribe.db.repository import Repository
from ytscribe.pipeline.progress import ProgressBus, ProgressStage
from ytscribe.providers.base import (
    MediaFetcher,
    MetadataProvider,
    TranscriptionProvider,
    TranscriptionResult,
)
from ytscribe.utils.files import discard


@dataclass
class ProcessResult:
    video_id: int
    status: str
    transcript_id: int
    language: str
    segment_count: int
    elapsed_sec: float


def _log(video_id: int, message: str) -> None:
    print(f"  [video {video_id}] {message}", file=sys.stderr)


@contextmanager
def _timed(video_id: int, operation: str) -> Iterator[None]:
    start = time.monotonic()
    _log(video_id, f"Starting {operation}...")
    try:
        yield
    except Exception as e:
        _log(video_id, f"Failed {operation} after {time.monotonic() - start:.2f}s: {e}")
        raise
    _log(video_id, f"Completed {operation} in {time.monotonic() - start:.2f}s")


class Pipeline:
    def __init__(
        self,
        repo: Repository,
        metadata_provider: MetadataProvider,
        fetcher: MediaFetcher,
        transcriber: TranscriptionProvider,
        bus: ProgressBus,
    ):
        self.repo = repo
        self.metadata_provider = metadata_provider
        self.fetcher = fetcher
        self.transcriber = transcriber
        self.bus = bus

    def process_video(self, video_id: int) -> ProcessResult:
        """Drive one video from pending to completed or failed.

        Raises:
            VideoNotFoundError: no record exists; nothing is mutated or published.
            DownloadFailedError: the audio download failed.
            TranscriptionFailedError: the transcription provider failed.
            PipelineDatabaseError: saving failed, or any unexpected error.
        """
        start_time = time.time()

        video = self.repo.get_video(video_id)
        if video is None:
            raise VideoNotFoundError(f"Video with ID {video_id} not found", video_id=video_id)

        _log(video_id, f"Processing {video.youtube_url} (youtube_id={video.youtube_id})")

        audio_path: Path | None = None
        try:
            self.repo.update_status(video_id, VideoStatus.PROCESSING)
            # The UI shows "processing" as its first visible sub-stage, "downloading"
            self.bus.emit(
                video_id, ProgressStage.DOWNLOADING, progress=0, message="Downloading video..."
            )

            if not video.title or not video.duration:
                self._fetch_metadata(video)

            audio_path = self._download(video)
            self.bus.emit(
                video_id, ProgressStage.DOWNLOADING, progress=100, message="Download complete"
            )
            # yt-dlp extracts the audio track as part of the download
            self.bus.emit(
                video_id, ProgressStage.EXTRACTING, progress=100, message="Audio extracted"
            )

            self.bus.emit(
                video_id, ProgressStage.TRANSCRIBING, progress=0, message="Transcribing audio..."
            )
            result = self._transcribe(video_id, audio_path)
            self.bus.emit(
                video_id,
                ProgressStage.TRANSCRIBING,
                progress=100,
                message="Transcription complete",
            )

            transcript = self._save(video_id, result)

            self.repo.update_status(video_id, VideoStatus.COMPLETED)
            self.bus.emit(video_id, ProgressStage.COMPLETE, message="Processing complete!")
        except Exception as e:
            if isinstance(e, PipelineError):
                error = e
            else:
                error = PipelineDatabaseError(f"Pipeline failed: {e}", video_id=video_id)
            self._handle_failure(video_id, error, audio_path)
            if error is e:
                raise
            raise error from e

        if audio_path is not None and discard(audio_path):
            _log(video_id, f"Cleaned up audio file {audio_path}")

        elapsed = round(time.time() - start_time, 2)
        _log(video_id, f"Done in {elapsed}s ({len(result.segments)} segments, {result.language})")
        return ProcessResult(
            video_id=video_id,
            status=VideoStatus.COMPLETED.value,
            transcript_id=transcript.id,
            language=result.language,
            segment_count=len(result.segments),
            elapsed_sec=elapsed,
        )

    # --- Stages ---

    def _fetch_metadata(self, video: VideoRecord) -> None:
        """Best-effort: failures are logged and the pipeline carries on."""
        try:
            with _timed(video.id, "fetch-metadata"):
                meta = self.metadata_provider.fetch(video.youtube_url)
                self.repo.update_metadata(
                    video.id,
                    title=meta.title,
                    duration=meta.duration,
                    thumbnail_url=meta.thumbnail_url,
                )
        except Exception as e:
            _log(video.id, f"Warning: metadata fetch skipped: {e}")

    def _download(self, video: VideoRecord) -> Path:
        try:
            with _timed(video.id, "download-audio"):
                return Path(self.fetcher.download(video.youtube_url))
        except Exception as e:
            raise DownloadFailedError(
                f"Failed to download audio: {e}", video_id=video.id
            ) from e

    def _transcribe(self, video_id: int, audio_path: Path) -> TranscriptionResult:
        try:
            with _timed(video_id, "transcribe-audio"):
                return self.transcriber.transcribe(audio_path)
        except TranscriptionError as e:
            raise TranscriptionFailedError(
                f"Transcription failed ({e.code.value}): {e}", video_id=video_id
            ) from e
        except Exception as e:
            raise TranscriptionFailedError(
                f"Transcription failed: {e}", video_id=video_id
            ) from e

    def _save(self, video_id: int, result: TranscriptionResult) -> TranscriptRecord:
        try:
            with _timed(video_id, "save-transcript"):
                return self.repo.insert_transcript(
                    video_id,
                    content=result.text,
                    segments=result.segments,
                    language=result.language,
                )
        except Exception as e:
            raise PipelineDatabaseError(
                f"Failed to save transcript: {e}", video_id=video_id
            ) from e

    def _handle_failure(self, video_id: int, error: PipelineError, audio_path: Path | None) -> None:
        try:
            self.repo.update_status(video_id, VideoStatus.FAILED)
        except DatabaseError as e:
            # The record may have been deleted mid-run
            _log(video_id, f"Warning: could not mark video failed: {e}")

        discard(audio_path)

        _log(video_id, f"Pipeline failed [{error.code.value}]: {error}")
        self.bus.emit(
            video_id, ProgressStage.ERROR, message="Processing failed", error=str(error)
        )
