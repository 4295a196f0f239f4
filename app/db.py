"""Voice Notes Pipeline - Database engine, session management and note store.

SQLAlchemy sync engine/session factory for SQLite, plus NoteStore: the
explicitly constructed, passed-in store used by the API.
"""

from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import Engine, create_engine, select
from sqlalchemy.orm import sessionmaker

from app.config import DB_PATH
from app.models import Base, Note

logger = logging.getLogger(__name__)


def get_database_url(db_path: str | Path | None = None) -> str:
    """Get SQLite database URL.

    Args:
        db_path: Optional path override. Defaults to config.DB_PATH.

    Returns:
        SQLite connection URL string.
    """
    path = db_path if db_path is not None else DB_PATH
    return f"sqlite:///{path}"


def create_db_engine(db_path: str | Path | None = None, echo: bool = False) -> Engine:
    """Create SQLAlchemy engine.

    Args:
        db_path: Optional path override for the database file.
        echo: If True, log all SQL statements.

    Returns:
        SQLAlchemy Engine instance.
    """
    url = get_database_url(db_path)
    return create_engine(
        url,
        echo=echo,
        # Requests are served from a thread pool; each unit of work gets its
        # own session, sessions are never shared across threads.
        connect_args={"check_same_thread": False},
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """Create a session factory bound to the given engine."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(db_path: str | Path | None = None, echo: bool = False) -> tuple[Engine, sessionmaker]:
    """Initialize the database: create engine, session factory, and all tables.

    This is idempotent - safe to call multiple times.

    Args:
        db_path: Optional path override for the database file.
        echo: If True, log all SQL statements.

    Returns:
        Tuple of (engine, SessionFactory).
    """
    path = Path(db_path) if db_path is not None else DB_PATH
    path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(path, echo=echo)
    SessionFactory = create_session_factory(engine)

    # Create all tables (idempotent via checkfirst=True default)
    Base.metadata.create_all(engine)

    return engine, SessionFactory


# --- Note Store ---


class StoreNotOpenError(RuntimeError):
    """Raised when the note store is used before open() or after close()."""


class NoteStore:
    """Append-only store of transcription notes.

    Usage:
        store = NoteStore(db_path)
        store.open()
        try:
            store.save_note("converted_x.wav", "hello")
        finally:
            store.close()

    or as a context manager (``with NoteStore(path) as store: ...``).
    """

    def __init__(self, db_path: str | Path | None = None, echo: bool = False):
        self.db_path = Path(db_path) if db_path is not None else DB_PATH
        self._echo = echo
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> NoteStore:
        """Create the engine and the notes table. Idempotent."""
        if self._engine is None:
            self._engine, self._session_factory = init_db(self.db_path, echo=self._echo)
            logger.info("Note store opened at %s", self.db_path)
        return self

    def close(self) -> None:
        """Dispose of the engine. Safe to call more than once."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Note store closed")

    def __enter__(self) -> NoteStore:
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _sessions(self) -> sessionmaker:
        if self._session_factory is None:
            raise StoreNotOpenError("NoteStore is not open")
        return self._session_factory

    def save_note(self, filename: str, transcript: str) -> Note:
        """Insert a note and commit.

        Raises:
            StoreNotOpenError: If the store is not open.
            sqlalchemy.exc.SQLAlchemyError: If the insert or commit fails.
        """
        with self._sessions()() as session:
            note = Note(filename=filename, transcript=transcript)
            session.add(note)
            try:
                session.commit()
            except Exception:
                session.rollback()
                raise
            return note

    def get_all_notes(self) -> list[Note]:
        """Return all notes, most recent first."""
        stmt = select(Note).order_by(Note.created_at.desc(), Note.id.desc())
        with self._sessions()() as session:
            return list(session.execute(stmt).scalars().all())
