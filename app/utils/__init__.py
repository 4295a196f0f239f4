"""Voice Notes Pipeline - Utility modules."""

from app.utils.audio_format import AudioBuffer, AudioFormat, detect_audio_format

__all__ = [
    "AudioBuffer",
    "AudioFormat",
    "detect_audio_format",
]
