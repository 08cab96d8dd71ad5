"""
WiseNotes API — Note SQLAlchemy Model
======================================

What:  ORM model representing the `notes` table.
Who:   Used by NoteService for scoped CRUD and by NotebookService for counts.

Table Design Rationale:
    - Integer primary key generated by the store
    - notebook_id: NOT NULL foreign key with ON DELETE CASCADE. A note cannot
      exist without its notebook.
    - No owner column: a note's owner is its notebook's owner, so every note
      query joins notebooks and filters on notebooks.owner_id
    - Index on notebook_id: list and count queries filter on it

Query Patterns:
    - List notes of a notebook:
      SELECT notes.* FROM notes JOIN notebooks ON notebooks.id = notes.notebook_id
      WHERE notebooks.owner_id = :caller AND notes.notebook_id = :nb
    - Get single note: the same join plus notes.id = :note
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wisenotes.database import Base

if TYPE_CHECKING:
    from wisenotes.models.notebook import Notebook


class Note(Base):
    """
    A piece of text stored inside a notebook.

    Lifecycle:
        1. Created only inside a notebook the caller owns
        2. Content updated by the notebook's owner
        3. Deleted by the owner, or together with its notebook
    """

    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    notebook_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("notebooks.id", ondelete="CASCADE"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    notebook: Mapped["Notebook"] = relationship(back_populates="notes", lazy="raise")

    __table_args__ = (
        Index("idx_notes_notebook_id", "notebook_id"),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, notebook_id={self.notebook_id})>"
