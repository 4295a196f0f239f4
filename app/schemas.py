"""Voice Notes Pipeline - Pydantic models for API serialization.

Used by FastAPI for response validation. Error bodies are plain text and
have no model.
"""

from datetime import datetime  # noqa: I001

from pydantic import BaseModel, ConfigDict, Field


# --- Response Models ---


class TranscribeResponse(BaseModel):
    """Response for a successful transcription.

    Serialized with camelCase keys (incomingFile, convertedFile).
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    transcript: str = Field(..., description="Best transcript returned by the service")
    timestamp: str = Field(..., description="Request timestamp used in archive filenames")
    incoming_file: str = Field(
        ...,
        alias="incomingFile",
        description="Archive name of the raw upload",
    )
    converted_file: str = Field(
        ...,
        alias="convertedFile",
        description="Archive name of the normalized WAV",
    )


class NoteResponse(BaseModel):
    """A stored note."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Auto-incrementing note id")
    filename: str = Field(..., description="Archived converted artifact")
    transcript: str = Field(..., description="Transcript text")
    created_at: datetime = Field(..., description="When the note was stored")


class HealthResponse(BaseModel):
    status: str = "ok"


__all__ = [
    "HealthResponse",
    "NoteResponse",
    "TranscribeResponse",
]
