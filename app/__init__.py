"""Voice Notes Pipeline - Core application modules.

Provides:
- Audio format sniffing and ffmpeg normalization
- Deepgram transcription client
- SQLite note store and recordings archive
"""

__version__ = "0.1.0"
