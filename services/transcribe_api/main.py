"""Voice Notes Pipeline - Transcription API FastAPI application.

Endpoints:
- POST /transcribe: multipart field "audio" -> transcript JSON
- GET /notes: stored notes, most recent first
- GET /health

Endpoints are plain (non-async) functions, so each request runs on its own
worker thread; ffmpeg and the Deepgram call block that thread only.

Run with:
    uvicorn services.transcribe_api.main:app --reload  # dev server only
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, File, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from app.archive import Archive
from app.config import (
    DB_PATH,
    RECORDINGS_DIR,
    get_cors_origins,
    get_deepgram_api_key,
    get_deepgram_timeout,
    get_ffmpeg_timeout,
)
from app.db import NoteStore
from app.schemas import HealthResponse, NoteResponse, TranscribeResponse
from app.transcoder import FfmpegTranscoder
from app.transcription import DeepgramClient
from services.transcribe_api.service import (
    PipelineError,
    TranscriptionPipeline,
    read_upload,
)

logger = logging.getLogger(__name__)

# --- Application State ---

# Initialized on startup by the lifespan handler
_note_store: NoteStore | None = None
_pipeline: TranscriptionPipeline | None = None


def get_note_store() -> NoteStore:
    """Dependency that provides the note store.

    Raises:
        RuntimeError: If the store is not initialized (app lifespan not invoked).
    """
    if _note_store is None:
        raise RuntimeError("Note store not initialized. App lifespan not invoked?")
    return _note_store


def get_pipeline() -> TranscriptionPipeline:
    """Dependency that provides the transcription pipeline."""
    if _pipeline is None:
        raise RuntimeError("Pipeline not initialized. App lifespan not invoked?")
    return _pipeline


def build_pipeline(store: NoteStore, archive: Archive) -> TranscriptionPipeline:
    """Wire the default ffmpeg transcoder and Deepgram client."""
    api_key = get_deepgram_api_key()
    if not api_key:
        logger.warning("DEEPGRAM_API_KEY is not set; transcription requests will be rejected")

    return TranscriptionPipeline(
        transcoder=FfmpegTranscoder(timeout_seconds=get_ffmpeg_timeout()),
        client=DeepgramClient(api_key=api_key, timeout=get_deepgram_timeout()),
        store=store,
        archive=archive,
    )


def _cleanup_orphan_temp_files_safe(archive: Archive) -> None:
    """Remove temp files left by interrupted archive writes (best-effort)."""
    try:
        removed = archive.cleanup_orphan_temp_files()
        if removed > 0:
            logger.info("Startup cleanup: removed %d orphan temp files", removed)
    except Exception:
        logger.warning("Startup cleanup failed (non-fatal)", exc_info=True)


# --- Lifespan ---


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the note store on startup and close it on shutdown."""
    global _note_store, _pipeline

    store = NoteStore(DB_PATH).open()
    archive = Archive(RECORDINGS_DIR)
    _cleanup_orphan_temp_files_safe(archive)

    _note_store = store
    _pipeline = build_pipeline(store, archive)
    try:
        yield
    finally:
        _pipeline = None
        _note_store = None
        store.close()


# --- FastAPI App ---


app = FastAPI(
    title="Voice Notes Pipeline - Transcription API",
    description="Upload an audio clip, get a transcript, keep it as a note.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


# --- Endpoints ---


@app.post(
    "/transcribe",
    response_model=TranscribeResponse,
    responses={
        400: {"description": "Missing or unreadable audio file (plain text)"},
        500: {"description": "Conversion or transcription failed (plain text)"},
    },
    summary="Transcribe an uploaded audio clip",
)
def transcribe(
    pipeline: Annotated[TranscriptionPipeline, Depends(get_pipeline)],
    audio: Annotated[UploadFile | None, File(description="Audio clip to transcribe")] = None,
):
    """Transcribe an uploaded audio clip and store the transcript as a note.

    Errors are returned as plain text with a 4xx/5xx status.
    """
    try:
        audio_data = read_upload(audio.file if audio is not None else None)
        if audio is not None:
            logger.info("Received file: %s, size: %d bytes", audio.filename, len(audio_data))
        result = pipeline.run(audio_data)
        return TranscribeResponse(
            transcript=result.transcript,
            timestamp=result.timestamp,
            incoming_file=result.incoming_file,
            converted_file=result.converted_file,
        )
    except PipelineError as e:
        return PlainTextResponse(e.message, status_code=e.status_code)
    except Exception:
        # Log full exception server-side, return generic message to client
        logger.exception("Unexpected error during transcription")
        return PlainTextResponse(
            "An unexpected error occurred during transcription", status_code=500
        )


@app.get(
    "/notes",
    response_model=list[NoteResponse],
    responses={500: {"description": "Failed to fetch notes (plain text)"}},
    summary="List stored notes, most recent first",
)
def list_notes(store: Annotated[NoteStore, Depends(get_note_store)]):
    try:
        notes = store.get_all_notes()
    except Exception:
        logger.exception("Failed to fetch notes")
        return PlainTextResponse("Failed to fetch notes", status_code=500)
    return [NoteResponse.model_validate(note) for note in notes]


@app.get("/health", response_model=HealthResponse, summary="Health check")
def health_check():
    """Simple health check endpoint."""
    return HealthResponse()


if __name__ == "__main__":
    import uvicorn

    from app.config import get_log_level

    logging.basicConfig(level=get_log_level())
    uvicorn.run(app, host="0.0.0.0", port=8080)
