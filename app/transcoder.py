"""Voice Notes Pipeline - Audio transcoding.

Produces the normalized WAV sent for transcription.

Canonical format: 48000 Hz, stereo, 24-bit PCM WAV,
band-limited with a 50 Hz high-pass and 20 kHz low-pass filter.

Dependencies:
- Requires ffmpeg installed and in PATH (or VOICE_NOTES_FFMPEG_BIN)

Known limitation: input already sniffed as WAV is returned untouched, even
if its sample rate, channel count or bit depth differ from the canonical
format.
"""

from __future__ import annotations

import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Protocol

from app.config import (
    FFMPEG_BIN,
    HIGHPASS_HZ,
    LOWPASS_HZ,
    TARGET_CHANNELS,
    TARGET_CODEC,
    TARGET_SAMPLE_RATE,
)
from app.utils.audio_format import AudioFormat

logger = logging.getLogger(__name__)

OUTPUT_FILENAME = "output.wav"
TEMP_DIR_PREFIX = "voice-notes-"


class ConversionError(Exception):
    """Audio could not be normalized (temp-file I/O or converter failure)."""

    def __init__(self, message: str, stderr: str | None = None):
        self.message = message
        self.stderr = stderr
        super().__init__(message)


class AudioTranscoder(Protocol):
    """Anything that can turn uploaded bytes into normalized WAV bytes."""

    def normalize(self, data: bytes, detected_format: AudioFormat) -> bytes: ...


def build_ffmpeg_command(ffmpeg_bin: str, input_path: Path, output_path: Path) -> list[str]:
    """Build the ffmpeg argument list for the canonical WAV format."""
    return [
        ffmpeg_bin,
        "-i",
        str(input_path),
        "-acodec",
        TARGET_CODEC,
        "-ac",
        str(TARGET_CHANNELS),
        "-ar",
        str(TARGET_SAMPLE_RATE),
        "-af",
        f"highpass=f={HIGHPASS_HZ},lowpass=f={LOWPASS_HZ}",
        "-y",  # overwrite output
        str(output_path),
    ]


class FfmpegTranscoder:
    """AudioTranscoder backed by the ffmpeg command-line tool.

    Each call works inside its own temporary directory, which is removed
    on every exit path (success, converter failure, read failure).
    """

    def __init__(
        self,
        ffmpeg_bin: str = FFMPEG_BIN,
        timeout_seconds: float | None = None,
        temp_root: str | Path | None = None,
    ):
        self.ffmpeg_bin = ffmpeg_bin
        self.timeout_seconds = timeout_seconds
        self.temp_root = temp_root

    def normalize(self, data: bytes, detected_format: AudioFormat) -> bytes:
        """Convert audio bytes to the canonical WAV format.

        Args:
            data: Raw audio bytes.
            detected_format: Format tag from detect_audio_format().

        Returns:
            Normalized WAV bytes. WAV input is returned unchanged.

        Raises:
            ConversionError: If the temp file cannot be written, ffmpeg is
                missing or exits non-zero, or the output cannot be read.
        """
        detected_format = AudioFormat(detected_format)
        if detected_format == AudioFormat.WAV:
            return data

        with tempfile.TemporaryDirectory(prefix=TEMP_DIR_PREFIX, dir=self.temp_root) as tmpdir:
            input_path = Path(tmpdir) / f"input.{detected_format.value}"
            output_path = Path(tmpdir) / OUTPUT_FILENAME

            try:
                input_path.write_bytes(data)
            except OSError as e:
                raise ConversionError(f"failed to write temp input file: {e}") from e

            self._run_ffmpeg(input_path, output_path)

            try:
                wav_data = output_path.read_bytes()
            except OSError as e:
                raise ConversionError(f"failed to read converted wav file: {e}") from e

        logger.info("Converted %s audio: %d -> %d bytes", detected_format, len(data), len(wav_data))
        return wav_data

    def _run_ffmpeg(self, input_path: Path, output_path: Path) -> None:
        cmd = build_ffmpeg_command(self.ffmpeg_bin, input_path, output_path)
        logger.debug("Running %s", " ".join(cmd))

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                check=False,
                timeout=self.timeout_seconds,
            )
        except FileNotFoundError as e:
            raise ConversionError(f"ffmpeg conversion failed: {self.ffmpeg_bin} not found in PATH") from e
        except subprocess.TimeoutExpired as e:
            raise ConversionError(
                f"ffmpeg conversion failed: timed out after {self.timeout_seconds} seconds"
            ) from e
        except OSError as e:
            raise ConversionError(f"ffmpeg conversion failed: {e}") from e

        if result.returncode != 0:
            stderr = (result.stderr or b"").decode("utf-8", errors="replace").strip()
            logger.error("ffmpeg exited with status %d: %s", result.returncode, stderr)
            raise ConversionError(
                f"ffmpeg conversion failed: exit status {result.returncode}, stderr: {stderr}",
                stderr=stderr,
            )


__all__ = [
    "AudioTranscoder",
    "ConversionError",
    "FfmpegTranscoder",
    "build_ffmpeg_command",
]
