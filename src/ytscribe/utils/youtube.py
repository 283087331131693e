"""YouTube URL helpers."""

from __future__ import annotations

import re

# Supported forms (optionally without scheme/www, extra query params allowed):
#   youtube.com/watch?v=ID, youtu.be/ID, youtube.com/embed/ID,
#   youtube.com/v/ID, youtube.com/shorts/ID, youtube.com/live/ID
_ID = r"([a-zA-Z0-9_-]{11})"
_PREFIX = r"^(?:https?://)?(?:www\.|m\.)?"

YOUTUBE_URL_PATTERNS = [
    re.compile(_PREFIX + r"youtube\.com/watch\?(?:.*&)?v=" + _ID + r"(?:&|#|$)"),
    re.compile(_PREFIX + r"youtu\.be/" + _ID + r"(?:\?|#|$)"),
    re.compile(_PREFIX + r"youtube\.com/embed/" + _ID + r"(?:\?|#|$)"),
    re.compile(_PREFIX + r"youtube\.com/v/" + _ID + r"(?:\?|#|$)"),
    re.compile(_PREFIX + r"youtube\.com/shorts/" + _ID + r"(?:\?|#|$)"),
    re.compile(_PREFIX + r"youtube\.com/live/" + _ID + r"(?:\?|#|$)"),
]


def is_valid_youtube_url(url: str) -> bool:
    """Return True if url is a recognised YouTube video URL."""
    return extract_video_id(url) is not None


def extract_video_id(url: str) -> str | None:
    """Return the 11-character video ID, or None if url is not a YouTube video URL."""
    url = url.strip()
    for pattern in YOUTUBE_URL_PATTERNS:
        match = pattern.match(url)
        if match:
            return match.group(1)
    return None
