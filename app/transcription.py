"""Voice Notes Pipeline - Deepgram transcription client.

Sends a normalized WAV buffer to Deepgram's pre-recorded audio endpoint
and extracts the best transcript from channel 0, alternative 0.

One request per call: no retries, no backoff.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests

from app.config import DEEPGRAM_PARAMS, DEEPGRAM_URL

logger = logging.getLogger(__name__)

# Characters of a non-2xx response body kept in the error message
BODY_SNIPPET_CHARS = 400


# --- Errors ---


class TranscriptionError(Exception):
    """Base exception for transcription failures."""


class NoResultsError(TranscriptionError):
    """The response envelope had no channels or no alternatives."""

    def __init__(self) -> None:
        super().__init__("no transcription results found")


class EmptyTranscriptError(TranscriptionError):
    """The service answered, but the best alternative has no text."""

    def __init__(self, confidence: float):
        self.confidence = confidence
        super().__init__(f"empty transcript received (confidence: {confidence:f})")


# --- Result Types ---


@dataclass(frozen=True)
class TranscriptionResult:
    """Best transcript and the confidence reported for it (not clamped)."""

    transcript: str
    confidence: float


# --- Response Parsing ---


def parse_transcription_response(payload: dict[str, Any]) -> TranscriptionResult:
    """Extract the first alternative of the first channel.

    Expected shape:
        {"results": {"channels": [{"alternatives": [{"transcript", "confidence"}]}]}}

    Raises:
        NoResultsError: If channels or alternatives is empty or missing.
        EmptyTranscriptError: If the transcript string is empty.
        TranscriptionError: If the envelope is not shaped as expected.
    """
    try:
        channels = (payload.get("results") or {}).get("channels") or []
        if not channels:
            raise NoResultsError()
        alternatives = channels[0].get("alternatives") or []
        if not alternatives:
            raise NoResultsError()
        best = alternatives[0]
        transcript = best.get("transcript")
        confidence = best.get("confidence")
    except (AttributeError, TypeError, ValueError) as e:
        raise TranscriptionError(f"unexpected response shape: {e}") from e

    if transcript is None:
        transcript = ""
    if not isinstance(transcript, str):
        raise TranscriptionError(
            f"unexpected response shape: transcript is {type(transcript).__name__}, expected str"
        )

    if confidence is None:
        confidence = 0.0
    # bool is an int subclass
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        raise TranscriptionError(
            f"unexpected response shape: confidence is {type(confidence).__name__}, expected number"
        )
    confidence = float(confidence)

    logger.info("Transcript confidence: %f", confidence)

    if transcript == "":
        raise EmptyTranscriptError(confidence)

    return TranscriptionResult(transcript=transcript, confidence=confidence)


# --- Client ---


class DeepgramClient:
    """Synchronous Deepgram client authenticated with a static API key."""

    def __init__(
        self,
        api_key: str,
        url: str = DEEPGRAM_URL,
        params: dict[str, str] | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.url = url
        self.params = dict(params if params is not None else DEEPGRAM_PARAMS)
        self.timeout = timeout
        self._session = session

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Token {self.api_key}",
            "Content-Type": "audio/wav",
        }

    def _post(self, data: bytes) -> requests.Response:
        poster = self._session if self._session is not None else requests
        return poster.post(
            self.url,
            params=self.params,
            headers=self._headers(),
            data=data,
            timeout=self.timeout,
        )

    def transcribe(self, wav_bytes: bytes) -> TranscriptionResult:
        """Transcribe normalized WAV audio.

        Args:
            wav_bytes: WAV bytes produced by the transcoder.

        Returns:
            TranscriptionResult for channel 0, alternative 0.

        Raises:
            TranscriptionError: On transport failure, non-2xx status or an
                undecodable body. NoResultsError / EmptyTranscriptError as
                described in parse_transcription_response().
        """
        logger.info("Sending WAV audio of size: %d bytes", len(wav_bytes))

        try:
            resp = self._post(wav_bytes)
        except requests.RequestException as e:
            raise TranscriptionError(f"Deepgram request failed: {e}") from e

        logger.debug("Deepgram response status=%d body=%s", resp.status_code, resp.text)

        if not 200 <= resp.status_code < 300:
            body = resp.text[:BODY_SNIPPET_CHARS]
            raise TranscriptionError(f"Deepgram returned status {resp.status_code}: {body}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise TranscriptionError(f"failed to decode response: {e}") from e

        if not isinstance(payload, dict):
            raise TranscriptionError("failed to decode response: expected a JSON object")

        return parse_transcription_response(payload)


__all__ = [
    "DeepgramClient",
    "EmptyTranscriptError",
    "NoResultsError",
    "TranscriptionError",
    "TranscriptionResult",
    "parse_transcription_response",
]
