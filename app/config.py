"""Voice Notes Pipeline - Configuration constants.

Minimal configuration. No external config libraries.
All paths are relative to the repository root by default; secrets and
host-specific values come from the environment.
"""

import os
from pathlib import Path

# Repository root (parent of app/)
REPO_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = REPO_ROOT / "data"

# Archive of raw uploads and converted WAVs (diagnostic copies)
RECORDINGS_DIR = Path(os.environ.get("VOICE_NOTES_RECORDINGS_DIR", REPO_ROOT / "recordings"))

# Database path
DB_PATH = Path(os.environ.get("VOICE_NOTES_DB_PATH", DATA_DIR / "notes.db"))

# Canonical output format for transcription
TARGET_CODEC = "pcm_s24le"  # 24-bit PCM
TARGET_CHANNELS = 2
TARGET_SAMPLE_RATE = 48000
HIGHPASS_HZ = 50
LOWPASS_HZ = 20000

# External converter binary (must be on PATH unless overridden)
FFMPEG_BIN = os.environ.get("VOICE_NOTES_FFMPEG_BIN", "ffmpeg")

# Deepgram pre-recorded transcription endpoint
DEEPGRAM_URL = os.environ.get("DEEPGRAM_URL", "https://api.deepgram.com/v1/listen")
DEEPGRAM_PARAMS = {"language": "en-US", "model": "general", "tier": "enhanced"}

# Archive filename timestamp (e.g. 20240131-154502)
TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"

DEFAULT_CORS_ORIGINS = ("http://localhost:5173",)


def _get_optional_seconds(name: str) -> float | None:
    """Read a positive number of seconds from the environment.

    Returns:
        The parsed value, or None if unset or invalid.
    """
    env_val = os.environ.get(name)
    if env_val:
        try:
            seconds = float(env_val)
            if seconds > 0:
                return seconds
        except ValueError:
            pass
    return None


def get_ffmpeg_timeout() -> float | None:
    """Timeout for a single ffmpeg run (VOICE_NOTES_FFMPEG_TIMEOUT_SEC).

    Default is None: the converter is bounded only by its own behavior.
    """
    return _get_optional_seconds("VOICE_NOTES_FFMPEG_TIMEOUT_SEC")


def get_deepgram_timeout() -> float | None:
    """Timeout for the Deepgram request (DEEPGRAM_TIMEOUT_SEC).

    Default is None, i.e. the transport default.
    """
    return _get_optional_seconds("DEEPGRAM_TIMEOUT_SEC")


def get_deepgram_api_key() -> str:
    """Deepgram credential from DEEPGRAM_API_KEY (empty string if unset)."""
    return os.environ.get("DEEPGRAM_API_KEY", "")


def get_cors_origins() -> list[str]:
    """Allowed CORS origins from VOICE_NOTES_CORS_ORIGINS (comma separated)."""
    raw = os.environ.get("VOICE_NOTES_CORS_ORIGINS")
    if not raw:
        return list(DEFAULT_CORS_ORIGINS)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def get_log_level() -> str:
    """Log level name for the API entry point (VOICE_NOTES_LOG_LEVEL)."""
    return os.environ.get("VOICE_NOTES_LOG_LEVEL", "INFO").upper()
