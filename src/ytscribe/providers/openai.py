"""OpenAI Whisper transcription provider."""

from __future__ import annotations

import sys
from pathlib import Path

import openai
from openai import OpenAI

from ytscribe.core.config import YTScribeConfig, resolve_api_key
from ytscribe.core.constants import (
    DEFAULT_LANGUAGE,
    MAX_AUDIO_FILE_BYTES,
    SUPPORTED_AUDIO_FORMATS,
)
from ytscribe.core.exceptions import FFmpegError, TranscriptionError, TranscriptionErrorCode
from ytscribe.pipeline.ffmpeg import compress_audio
from ytscribe.providers.base import (
    TranscriptionProvider,
    TranscriptionResult,
    TranscriptSegment,
)
from ytscribe.utils.files import discard


def _client(config: YTScribeConfig) -> OpenAI:
    return OpenAI(base_url=config.api_base_url, api_key=resolve_api_key(config))


def _get(obj, key: str, default=None):
    """Get a value from a dict or object attribute."""
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)


def classify_api_error(error: Exception) -> TranscriptionError:
    """Map an OpenAI SDK exception to a TranscriptionError."""
    if isinstance(error, TranscriptionError):
        return error
    if isinstance(error, openai.APIStatusError):
        if error.status_code == 401:
            return TranscriptionError(
                TranscriptionErrorCode.AUTHENTICATION_ERROR, "Invalid OpenAI API key"
            )
        if error.status_code == 429:
            return TranscriptionError(
                TranscriptionErrorCode.RATE_LIMIT,
                "OpenAI API rate limit exceeded. Please try again later.",
            )
        return TranscriptionError(
            TranscriptionErrorCode.API_ERROR, f"OpenAI API error: {error.message}"
        )
    if isinstance(error, openai.APIError):
        return TranscriptionError(
            TranscriptionErrorCode.API_ERROR, f"OpenAI API error: {error.message}"
        )
    return TranscriptionError(
        TranscriptionErrorCode.API_ERROR, f"Transcription failed: {error}"
    )


def _response_to_result(response) -> TranscriptionResult:
    data = response.model_dump() if hasattr(response, "model_dump") else response

    segments = [
        TranscriptSegment(
            start=float(_get(seg, "start", 0.0)),
            end=float(_get(seg, "end", 0.0)),
            text=(_get(seg, "text", "") or "").strip(),
        )
        for seg in (_get(data, "segments") or [])
    ]
    return TranscriptionResult(
        text=_get(data, "text", "") or "",
        segments=segments,
        language=_get(data, "language") or DEFAULT_LANGUAGE,
        duration=float(_get(data, "duration") or 0.0),
    )


class OpenAITranscriber(TranscriptionProvider):
    """Whisper transcription with preflight checks and an oversize policy.

    With ``oversize_policy="compress"`` files above the 25MB API limit are
    transcoded to a temporary MP3 first; that file is always removed before
    ``transcribe`` returns. With ``"reject"`` they fail with FILE_TOO_LARGE.
    """

    def __init__(self, config: YTScribeConfig):
        self.config = config
        self._client: OpenAI | None = None

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = _client(self.config)
        return self._client

    def _preflight(self, audio_path: Path) -> None:
        if not audio_path.is_file():
            raise TranscriptionError(
                TranscriptionErrorCode.FILE_NOT_FOUND, f"Audio file not found: {audio_path}"
            )

        ext = audio_path.suffix.lower()
        if ext not in SUPPORTED_AUDIO_FORMATS:
            raise TranscriptionError(
                TranscriptionErrorCode.INVALID_AUDIO_FORMAT,
                f"Unsupported audio format: {ext or '(none)'}. "
                f"Supported formats: {', '.join(SUPPORTED_AUDIO_FORMATS)}",
            )

        if not resolve_api_key(self.config):
            raise TranscriptionError(
                TranscriptionErrorCode.AUTHENTICATION_ERROR, "OpenAI API key not set"
            )

    def _prepare_upload(self, audio_path: Path) -> Path | None:
        """Return a compressed copy of audio_path if it is oversized, else None."""
        size = audio_path.stat().st_size
        if size <= MAX_AUDIO_FILE_BYTES:
            return None

        size_mb = size / 1024 / 1024
        if self.config.oversize_policy == "reject":
            raise TranscriptionError(
                TranscriptionErrorCode.FILE_TOO_LARGE,
                f"File size {size_mb:.2f} MB exceeds maximum of 25 MB",
            )

        print(f"  Audio is {size_mb:.0f}MB (>25MB). Compressing before upload...", file=sys.stderr)
        try:
            return compress_audio(audio_path)
        except FFmpegError as e:
            raise TranscriptionError(
                TranscriptionErrorCode.COMPRESSION_FAILED, f"Compression failed: {e}"
            ) from e

    def transcribe(self, audio_path: Path) -> TranscriptionResult:
        audio_path = Path(audio_path)
        self._preflight(audio_path)

        compressed = self._prepare_upload(audio_path)
        upload_path = compressed or audio_path
        try:
            with open(upload_path, "rb") as f:
                response = self.client.audio.transcriptions.create(
                    model=self.config.transcribe_model,
                    file=f,
                    response_format="verbose_json",
                    timestamp_granularities=["segment"],
                )
        except Exception as e:
            raise classify_api_error(e) from e
        finally:
            discard(compressed)

        return _response_to_result(response)
