"""Voice Notes Pipeline - Transcription pipeline logic.

Request-level pipeline, strictly linear:

    receive upload -> archive raw -> transcode -> archive converted
        -> transcribe -> persist note -> respond

- Archival and persistence are best-effort: failures are logged and the
  pipeline continues.
- Transcoding and transcription failures are fatal and abort the request;
  no note is stored.

No HTTP concerns here beyond the status code carried by PipelineError.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from app.config import TIMESTAMP_FORMAT
from app.transcoder import ConversionError
from app.transcription import TranscriptionError
from app.utils.audio_format import AudioBuffer, AudioFormat

if TYPE_CHECKING:
    from typing import BinaryIO

    from app.archive import Archive
    from app.db import NoteStore
    from app.transcoder import AudioTranscoder
    from app.transcription import DeepgramClient

logger = logging.getLogger(__name__)


# --- Stages ---


class PipelineStage(StrEnum):
    RECEIVE_UPLOAD = "receive_upload"
    ARCHIVE_RAW = "archive_raw"
    TRANSCODE = "transcode"
    ARCHIVE_TRANSCODED = "archive_transcoded"
    TRANSCRIBE = "transcribe"
    PERSIST_NOTE = "persist_note"


# --- Errors ---


class PipelineError(Exception):
    """A stage failed and the request must be answered with an error."""

    def __init__(self, stage: str, status_code: int, message: str):
        self.stage = stage
        self.status_code = status_code
        self.message = message
        super().__init__(f"{stage}: {message}")


class BadRequestError(PipelineError):
    """The upload is missing or unreadable."""

    def __init__(self, message: str = "Failed to read audio file"):
        super().__init__(PipelineStage.RECEIVE_UPLOAD, 400, message)


# --- Result Types ---


@dataclass
class TranscribeResult:
    """Result of a successful pipeline run."""

    transcript: str
    confidence: float
    timestamp: str
    incoming_file: str
    converted_file: str
    detected_format: AudioFormat
    note_id: int | None = None


# --- Helpers ---

# Hex chars of uuid4 appended to the timestamp so same-second requests differ
ARCHIVE_KEY_SUFFIX_CHARS = 8


def generate_archive_key(timestamp: str) -> str:
    """Build a per-request archive key: {timestamp}-{8 hex chars}.

    The timestamp has one-second resolution; the uuid4 suffix keeps keys
    unique across concurrent requests.
    """
    return f"{timestamp}-{uuid.uuid4().hex[:ARCHIVE_KEY_SUFFIX_CHARS]}"


def incoming_filename(key: str) -> str:
    return f"incoming_{key}.webm"


def converted_filename(key: str) -> str:
    return f"converted_{key}.wav"


def read_upload(stream: BinaryIO | None) -> bytes:
    """Read the uploaded file field.

    Raises:
        BadRequestError: If the field is absent or cannot be read.
    """
    if stream is None:
        raise BadRequestError()
    try:
        return stream.read()
    except (OSError, ValueError) as e:
        raise BadRequestError(f"Failed to read audio file: {e}") from e


# --- Pipeline ---


class TranscriptionPipeline:
    """Runs one upload through conversion, transcription and storage.

    Holds no per-request state; a single instance serves concurrent
    requests.
    """

    def __init__(
        self,
        transcoder: AudioTranscoder,
        client: DeepgramClient,
        store: NoteStore,
        archive: Archive,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.transcoder = transcoder
        self.client = client
        self.store = store
        self.archive = archive
        self.clock = clock

    def run(self, audio_data: bytes) -> TranscribeResult:
        """Transcribe an uploaded clip.

        Args:
            audio_data: Raw upload bytes.

        Returns:
            TranscribeResult describing the transcript and archive names.

        Raises:
            PipelineError: If transcoding or transcription fails (500).
        """
        timestamp = self.clock().strftime(TIMESTAMP_FORMAT)
        key = generate_archive_key(timestamp)
        incoming_name = incoming_filename(key)
        converted_name = converted_filename(key)

        logger.info("Received upload: %d bytes", len(audio_data))

        # 1. Archive raw upload (best-effort)
        self._archive_safe(PipelineStage.ARCHIVE_RAW, incoming_name, audio_data)

        # 2. Sniff and normalize
        audio = AudioBuffer.sniff(audio_data)
        logger.info("Detected audio format: %s", audio.format)
        try:
            wav_data = self.transcoder.normalize(audio.data, audio.format)
        except ConversionError as e:
            logger.error("Audio conversion failed: %s", e)
            raise PipelineError(
                PipelineStage.TRANSCODE, 500, f"Failed to convert audio: {e}"
            ) from e

        # 3. Archive converted WAV (best-effort)
        self._archive_safe(PipelineStage.ARCHIVE_TRANSCODED, converted_name, wav_data)

        # 4. Transcribe
        try:
            result = self.client.transcribe(wav_data)
        except TranscriptionError as e:
            logger.error("Transcription failed: %s", e)
            raise PipelineError(PipelineStage.TRANSCRIBE, 500, f"Transcription failed: {e}") from e

        # 5. Persist note (best-effort)
        note_id = self._save_note_safe(converted_name, result.transcript)

        return TranscribeResult(
            transcript=result.transcript,
            confidence=result.confidence,
            timestamp=timestamp,
            incoming_file=incoming_name,
            converted_file=converted_name,
            detected_format=audio.format,
            note_id=note_id,
        )

    def _archive_safe(self, stage: PipelineStage, name: str, data: bytes) -> None:
        try:
            self.archive.write(name, data)
        except OSError:
            # Archival is diagnostic only
            logger.warning("Failed to archive %s during %s (non-fatal)", name, stage, exc_info=True)

    def _save_note_safe(self, filename: str, transcript: str) -> int | None:
        try:
            note = self.store.save_note(filename, transcript)
        except Exception:
            # The transcript is still returned to the caller
            logger.warning("Failed to save note for %s (non-fatal)", filename, exc_info=True)
            return None
        return note.id
