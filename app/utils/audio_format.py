"""Voice Notes Pipeline - Audio format sniffing.

Classifies a byte buffer from its leading bytes (magic numbers) without
decoding it. Pure functions, no I/O.
"""

from dataclasses import dataclass
from enum import StrEnum

# Shortest buffer that can hold every signature we check (RIFF....WAVE)
MIN_SNIFF_BYTES = 12

WEBM_MAGIC = b"\x1a\x45\xdf\xa3"
ID3_MAGIC = b"ID3"
RIFF_MAGIC = b"RIFF"
WAVE_MAGIC = b"WAVE"


class AudioFormat(StrEnum):
    """Container/codec tag inferred from leading bytes.

    The value doubles as the temp file extension handed to the converter.
    """

    WEBM = "webm"
    MP3 = "mp3"
    WAV = "wav"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class AudioBuffer:
    """Raw upload bytes plus the format they were sniffed as."""

    data: bytes
    format: AudioFormat

    @classmethod
    def sniff(cls, data: bytes) -> "AudioBuffer":
        return cls(data=data, format=detect_audio_format(data))


def _is_mpeg_frame_sync(data: bytes) -> bool:
    # 0xFF followed by the sync/version/layer bits of 0xFB.
    # The 0xFB mask also pins the MPEG-1 and no-CRC bits, so frames such as
    # FF F3 (MPEG-2 Layer III) or FF FA (MPEG-1 with CRC) are not matched.
    # This is the detection rule; do not widen it to a plain 11-bit sync (& 0xE0).
    return data[0] == 0xFF and (data[1] & 0xFB) == 0xFB


def detect_audio_format(data: bytes) -> AudioFormat:
    """Detect the audio format of a buffer.

    Rules are tried in order and the first match wins:
    WebM, MP3 (ID3 tag or MPEG frame sync), WAV (RIFF....WAVE).

    Args:
        data: Raw audio bytes.

    Returns:
        The detected AudioFormat, AudioFormat.UNKNOWN if nothing matches or
        the buffer is shorter than 12 bytes.
    """
    if len(data) < MIN_SNIFF_BYTES:
        return AudioFormat.UNKNOWN

    if data[:4] == WEBM_MAGIC:
        return AudioFormat.WEBM

    if data[:3] == ID3_MAGIC or _is_mpeg_frame_sync(data):
        return AudioFormat.MP3

    if data[:4] == RIFF_MAGIC and data[8:12] == WAVE_MAGIC:
        return AudioFormat.WAV

    return AudioFormat.UNKNOWN


__all__ = [
    "AudioBuffer",
    "AudioFormat",
    "MIN_SNIFF_BYTES",
    "detect_audio_format",
]
