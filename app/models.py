"""Voice Notes Pipeline - SQLAlchemy ORM models.

Database tables:
1. notes
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(UTC)


class Note(Base):
    """A transcript produced by one successful pipeline run.

    Rows are append-only: created once, never updated or deleted.
    """

    __tablename__ = "notes"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Archived converted artifact (e.g. converted_20240131-154502.wav)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)

    transcript: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, index=True
    )

    def __repr__(self) -> str:
        return f"Note(id={self.id!r}, filename={self.filename!r})"
