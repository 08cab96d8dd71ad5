"""
WiseNotes API — Notebook SQLAlchemy Model
==========================================

What:  ORM model representing the `notebooks` table.
Who:   Used by NotebookService (scoped CRUD) and NoteService (parent lookup).

Table Design:
    - Integer primary key generated by the store
    - owner_id: identity-provider user id, set at creation and never changed.
      Every query on this table filters on it.
    - Index on owner_id: the list query is "all notebooks of this caller"
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, List

from sqlalchemy import Index, Integer, String, DateTime, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wisenotes.database import Base

if TYPE_CHECKING:
    from wisenotes.models.note import Note


class Notebook(Base):
    """
    A titled collection of notes owned by exactly one user.

    Lifecycle:
        1. Created by its owner (title validated)
        2. Title updated by its owner
        3. Deleted by its owner, taking all of its notes with it
    """

    __tablename__ = "notebooks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # No column-level max: limits are configuration and enforced by ValidationPolicy
    title: Mapped[str] = mapped_column(String(1000), nullable=False)

    owner_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Identity provider user id of the owner (immutable)",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # passive_deletes: child rows are removed by the FK cascade / explicit
    # delete in NotebookService, never lazy-loaded for deletion
    notes: Mapped[List["Note"]] = relationship(
        back_populates="notebook",
        passive_deletes=True,
        lazy="raise",
    )

    __table_args__ = (
        Index("idx_notebooks_owner_id", "owner_id"),
    )

    def __repr__(self) -> str:
        return f"<Notebook(id={self.id}, owner_id='{self.owner_id}')>"
