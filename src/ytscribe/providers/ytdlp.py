"""yt-dlp backed metadata and audio providers."""

from __future__ import annotations

import json
import shutil
import subprocess
import uuid
from pathlib import Path

from ytscribe.core.config import YTScribeConfig
from ytscribe.core.constants import YTDLP_DOWNLOAD_TIMEOUT, YTDLP_METADATA_TIMEOUT
from ytscribe.core.exceptions import DownloadError, InvalidYouTubeUrlError
from ytscribe.providers.base import MediaFetcher, MetadataProvider, VideoMetadata
from ytscribe.utils.files import discard
from ytscribe.utils.youtube import extract_video_id


def _yt_dlp() -> str:
    yt_dlp = shutil.which("yt-dlp")
    if not yt_dlp:
        raise DownloadError(
            "yt-dlp was not found in PATH. Install with: pip install yt-dlp"
        )
    return yt_dlp


def cookie_args(config: YTScribeConfig) -> list[str]:
    """yt-dlp cookie flags; a browser profile wins over a cookies.txt file."""
    if config.cookies_browser:
        return ["--cookies-from-browser", config.cookies_browser]
    if config.cookies_file:
        return ["--cookies", config.cookies_file]
    return []


def _run(cmd: list[str], url: str, timeout: int) -> subprocess.CompletedProcess:
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except subprocess.TimeoutExpired as e:
        raise DownloadError(f"yt-dlp timed out after {timeout}s", url=url) from e
    except OSError as e:
        raise DownloadError(f"Failed to run yt-dlp: {e}", url=url) from e

    if result.returncode != 0:
        reason = result.stderr.strip() or result.stdout.strip() or "Unknown yt-dlp error"
        raise DownloadError(reason, url=url)
    return result


class YtDlpMetadataProvider(MetadataProvider):
    def __init__(self, config: YTScribeConfig):
        self.config = config

    def fetch(self, url: str) -> VideoMetadata:
        if extract_video_id(url) is None:
            raise InvalidYouTubeUrlError(url)

        cmd = [
            _yt_dlp(),
            *cookie_args(self.config),
            "--dump-json",
            "--no-download",
            "--no-warnings",
            "--no-playlist",
            url,
        ]
        result = _run(cmd, url, YTDLP_METADATA_TIMEOUT)

        try:
            data = json.loads(result.stdout)
        except ValueError as e:
            raise DownloadError(f"Failed to parse yt-dlp output: {e}", url=url) from e

        duration = data.get("duration")
        return VideoMetadata(
            id=data.get("id", ""),
            title=data.get("title"),
            duration=int(round(duration)) if duration is not None else None,
            thumbnail_url=data.get("thumbnail"),
        )


class YtDlpAudioFetcher(MediaFetcher):
    """Downloads best-quality audio as m4a into ``config.downloads_dir``.

    Each call writes a fresh ``<youtube_id>-<suffix>.m4a`` owned by the caller.
    """

    def __init__(self, config: YTScribeConfig):
        self.config = config

    def download(self, url: str) -> Path:
        video_id = extract_video_id(url)
        if video_id is None:
            raise InvalidYouTubeUrlError(url)

        out_dir = Path(self.config.downloads_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        # One file per run; two records for the same video may be processed at once
        output_path = out_dir / f"{video_id}-{uuid.uuid4().hex[:8]}.m4a"

        cmd = [
            _yt_dlp(),
            *cookie_args(self.config),
            "--extract-audio",
            "--audio-format", "m4a",
            "--audio-quality", "0",
            "--no-warnings",
            "--no-playlist",
            "-o", str(output_path),
            url,
        ]
        try:
            _run(cmd, url, YTDLP_DOWNLOAD_TIMEOUT)
        except DownloadError:
            # Leave no partial download behind
            discard(output_path)
            discard(output_path.with_name(output_path.name + ".part"))
            raise

        if not output_path.is_file():
            raise DownloadError(f"Audio file was not created at: {output_path}", url=url)
        return output_path
