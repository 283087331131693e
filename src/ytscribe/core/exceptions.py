"""Exception hierarchy for ytscribe."""

from __future__ import annotations

from enum import Enum


class YTScribeError(Exception):
    """Base exception for all ytscribe errors."""


class FFmpegError(YTScribeError):
    """FFmpeg command failed."""

    def __init__(self, message: str, cmd: str | None = None, returncode: int | None = None):
        self.cmd = cmd
        self.returncode = returncode
        super().__init__(message)


class DatabaseError(YTScribeError):
    """Database operation failed."""


class InvalidYouTubeUrlError(YTScribeError):
    """URL is not a recognised YouTube video URL."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Invalid YouTube URL: {url}")


class DownloadError(YTScribeError):
    """yt-dlp failed to fetch metadata or audio."""

    def __init__(self, message: str, url: str | None = None):
        self.url = url
        super().__init__(message)


# --- Transcription ---


class TranscriptionErrorCode(str, Enum):
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    INVALID_AUDIO_FORMAT = "INVALID_AUDIO_FORMAT"
    COMPRESSION_FAILED = "COMPRESSION_FAILED"
    API_ERROR = "API_ERROR"
    RATE_LIMIT = "RATE_LIMIT"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"


class TranscriptionError(YTScribeError):
    """Transcription provider failure, tagged with a sub-classification code."""

    def __init__(self, code: TranscriptionErrorCode, message: str):
        self.code = code
        super().__init__(message)


# --- Pipeline ---


class PipelineErrorCode(str, Enum):
    VIDEO_NOT_FOUND = "VIDEO_NOT_FOUND"
    DOWNLOAD_FAILED = "DOWNLOAD_FAILED"
    TRANSCRIPTION_FAILED = "TRANSCRIPTION_FAILED"
    DATABASE_ERROR = "DATABASE_ERROR"


class PipelineError(YTScribeError):
    """Terminal failure of a pipeline run.

    Only the four subclasses below are ever raised out of the pipeline;
    each one fixes its ``code``.
    """

    code: PipelineErrorCode

    def __init__(self, message: str, video_id: int | None = None):
        self.video_id = video_id
        super().__init__(message)


class VideoNotFoundError(PipelineError):
    """Video ID not found in database."""

    code = PipelineErrorCode.VIDEO_NOT_FOUND


class DownloadFailedError(PipelineError):
    code = PipelineErrorCode.DOWNLOAD_FAILED


class TranscriptionFailedError(PipelineError):
    code = PipelineErrorCode.TRANSCRIPTION_FAILED


class PipelineDatabaseError(PipelineError):
    code = PipelineErrorCode.DATABASE_ERROR
