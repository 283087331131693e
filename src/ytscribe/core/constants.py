"""Default model names and constants."""

from pathlib import Path

# Default models (OpenAI-compatible)
DEFAULT_TRANSCRIBE_MODEL = "whisper-1"
DEFAULT_API_BASE_URL = "https://api.openai.com/v1"

# Paths
DEFAULT_CONFIG_DIR = Path.home() / ".config" / "ytscribe"
DEFAULT_DB_PATH = DEFAULT_CONFIG_DIR / "ytscribe.db"
DEFAULT_DOWNLOADS_DIR = Path("data") / "downloads"

# Config file
CONFIG_FILE_PATH = DEFAULT_CONFIG_DIR / "config.json"

# Transcription
MAX_AUDIO_FILE_BYTES = 25 * 1024 * 1024  # 25MB Whisper API limit
SUPPORTED_AUDIO_FORMATS = (
    ".mp3", ".mp4", ".mpeg", ".mpga", ".m4a", ".wav", ".webm",
)
DEFAULT_LANGUAGE = "en"

# Oversized audio handling: "compress" transcodes before upload, "reject" fails fast
OVERSIZE_POLICIES = ("compress", "reject")
DEFAULT_OVERSIZE_POLICY = "compress"

# Compression target for oversized audio (mono, 16kHz, 64kbps)
COMPRESS_CHANNELS = 1
COMPRESS_SAMPLE_RATE = 16000
COMPRESS_BITRATE = "64k"

# Subprocess timeouts (seconds)
YTDLP_METADATA_TIMEOUT = 120
YTDLP_DOWNLOAD_TIMEOUT = 1800
FFMPEG_TIMEOUT = 600

# Runner / progress bus
DEFAULT_MAX_WORKERS = 2
DEFAULT_SUBSCRIBER_QUEUE_SIZE = 100
