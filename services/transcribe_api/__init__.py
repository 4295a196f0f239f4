"""Voice Notes Pipeline - Transcription API service.

FastAPI service that transcribes uploaded audio clips and lists stored notes.
"""

__all__: list[str] = []
