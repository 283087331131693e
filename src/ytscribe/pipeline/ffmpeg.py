"""FFmpeg utilities for audio preprocessing."""

from __future__ import annotations

import os
import subprocess
import tempfile
from pathlib import Path

from ytscribe.core.constants import (
    COMPRESS_BITRATE,
    COMPRESS_CHANNELS,
    COMPRESS_SAMPLE_RATE,
    FFMPEG_TIMEOUT,
)
from ytscribe.core.exceptions import FFmpegError


def compress_audio(input_path: Path, output_path: Path | None = None) -> Path:
    """Transcode audio to mono 16kHz 64kbps MP3 so it fits under the upload limit.

    The caller owns the returned file and must delete it.
    """
    if output_path is None:
        fd, name = tempfile.mkstemp(prefix="ytscribe_compressed_", suffix=".mp3")
        os.close(fd)  # ffmpeg reopens the path itself
        output_path = Path(name)

    cmd = [
        "ffmpeg", "-i", str(input_path),
        "-ac", str(COMPRESS_CHANNELS),
        "-ar", str(COMPRESS_SAMPLE_RATE),
        "-b:a", COMPRESS_BITRATE,
        "-y",  # overwrite
        str(output_path),
    ]
    try:
        subprocess.run(cmd, capture_output=True, text=True, check=True, timeout=FFMPEG_TIMEOUT)
    except FileNotFoundError:
        output_path.unlink(missing_ok=True)
        raise FFmpegError("ffmpeg not found. Install ffmpeg: brew install ffmpeg", cmd=" ".join(cmd))
    except subprocess.CalledProcessError as e:
        output_path.unlink(missing_ok=True)
        raise FFmpegError(
            f"Audio compression failed: {(e.stderr or '')[-200:]}",
            cmd=" ".join(cmd),
            returncode=e.returncode,
        )
    except subprocess.TimeoutExpired:
        output_path.unlink(missing_ok=True)
        raise FFmpegError("ffmpeg timed out", cmd=" ".join(cmd))

    return output_path
