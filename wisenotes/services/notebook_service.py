"""
WiseNotes API — Notebook Service (Owner-Scoped Access)
=======================================================

What:  List/get/create/update/delete for notebooks, always on behalf of a
       resolved caller id.
Why:   Routes stay thin; every ownership rule for notebooks lives here.
Who:   Called by the /notebooks route handlers.

Ownership Rule:
    Every statement that reads or locks a notebook carries
    `owner_id = :caller_id` in its WHERE clause. A row owned by another user
    is therefore never loaded, and "not yours" is reported exactly like
    "does not exist" (NotFoundError).

Error Handling Strategy:
    Typed failures (ValidationError, NotFoundError) propagate unchanged.
    SQLAlchemy errors are logged with context and re-raised as DatabaseError,
    which the global handler turns into a generic 500. The request-scoped
    session rolls the transaction back.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wisenotes.config import settings
from wisenotes.database import is_storable_id
from wisenotes.exceptions import DatabaseError, NotFoundError
from wisenotes.models.note import Note
from wisenotes.models.notebook import Notebook
from wisenotes.schemas.notebook import NotebookView
from wisenotes.services.validation import ValidationPolicy

logger = logging.getLogger(__name__)


def notebook_location(notebook_id: int) -> str:
    return f"/notebooks/{notebook_id}"


def _note_count_column():
    return (
        select(func.count(Note.id))
        .where(Note.notebook_id == Notebook.id)
        .correlate(Notebook)
        .scalar_subquery()
        .label("note_count")
    )


class NotebookService:
    """
    Business logic layer for notebook operations.

    Responsibilities:
        - list_notebooks(): caller's notebooks with note counts
        - get_notebook(): single notebook or NotFoundError
        - create_notebook(): validated insert owned by the caller
        - update_notebook(): scoped load, validate, write only on change
        - delete_notebook(): scoped load, remove notes and notebook
    """

    def __init__(self, policy: ValidationPolicy):
        self.policy = policy

    async def list_notebooks(self, db: AsyncSession, caller_id: str) -> List[NotebookView]:
        """
        Returns every notebook owned by the caller, in creation order.

        Query plan:
            SELECT id, title, (SELECT count(*) FROM notes
                               WHERE notes.notebook_id = notebooks.id)
            FROM notebooks WHERE owner_id = :caller ORDER BY id
        """
        try:
            result = await db.execute(
                select(Notebook.id, Notebook.title, _note_count_column())
                .where(Notebook.owner_id == caller_id)
                .order_by(Notebook.id)
            )
            return [
                NotebookView(id=row.id, title=row.title, note_count=row.note_count)
                for row in result.all()
            ]
        except SQLAlchemyError as e:
            logger.error("Database error listing notebooks for %s: %s", caller_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve notebooks. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

    async def get_notebook(self, db: AsyncSession, caller_id: str, notebook_id: int) -> NotebookView:
        """
        Returns one notebook of the caller.

        Raises:
            NotFoundError: no notebook with this id is owned by the caller
            DatabaseError: query execution failed
        """
        if not is_storable_id(notebook_id):
            raise NotFoundError(resource="notebook", context={"notebook_id": notebook_id})

        try:
            result = await db.execute(
                select(Notebook.id, Notebook.title, _note_count_column())
                .where(Notebook.id == notebook_id, Notebook.owner_id == caller_id)
            )
            row = result.one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching notebook %s: %s", notebook_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the notebook. Please try again.",
                context={"notebook_id": notebook_id},
            ) from e

        if row is None:
            raise NotFoundError(resource="notebook", context={"notebook_id": notebook_id})

        return NotebookView(id=row.id, title=row.title, note_count=row.note_count)

    async def create_notebook(
        self, db: AsyncSession, caller_id: str, title: Optional[str]
    ) -> Tuple[NotebookView, str]:
        """
        Validates the title and stores a new notebook owned by the caller.

        Returns:
            (view of the created notebook, its location path)

        Raises:
            ValidationError: title empty or too long (nothing is written)
            DatabaseError: insert failed
        """
        self.policy.ensure_title(title)

        notebook = Notebook(title=title, owner_id=caller_id)
        try:
            db.add(notebook)
            await db.flush()  # Assigns the id
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error creating notebook for %s: %s", caller_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the notebook. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info("Notebook %s created by %s", notebook.id, caller_id)
        view = NotebookView(id=notebook.id, title=notebook.title, note_count=0)
        return view, notebook_location(notebook.id)

    async def update_notebook(
        self, db: AsyncSession, caller_id: str, notebook_id: int, title: Optional[str]
    ) -> None:
        """
        Renames one of the caller's notebooks.

        Ownership is confirmed first, then the title is validated. An
        identical title is accepted without a write.

        Raises:
            NotFoundError: not the caller's notebook
            ValidationError: new title empty or too long
            DatabaseError: load or write failed
        """
        notebook = await self._load_owned(db, caller_id, notebook_id)
        self.policy.ensure_title(title)

        if notebook.title == title:
            logger.debug("Notebook %s title unchanged; skipping write", notebook_id)
            return

        try:
            notebook.title = title
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error updating notebook %s: %s", notebook_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the notebook. Please try again.",
                context={"notebook_id": notebook_id},
            ) from e

        logger.info("Notebook %s renamed by %s", notebook_id, caller_id)

    async def delete_notebook(self, db: AsyncSession, caller_id: str, notebook_id: int) -> None:
        """
        Deletes one of the caller's notebooks together with all of its notes.

        The notes are removed explicitly in the same transaction; the
        ON DELETE CASCADE foreign key covers any other writer.

        Raises:
            NotFoundError: not the caller's notebook
            DatabaseError: delete failed
        """
        notebook = await self._load_owned(db, caller_id, notebook_id)

        try:
            result = await db.execute(delete(Note).where(Note.notebook_id == notebook.id))
            await db.execute(
                delete(Notebook).where(Notebook.id == notebook.id, Notebook.owner_id == caller_id)
            )
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error deleting notebook %s: %s", notebook_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the notebook. Please try again.",
                context={"notebook_id": notebook_id},
            ) from e

        logger.info(
            "Notebook %s deleted by %s (%d notes removed)", notebook_id, caller_id, result.rowcount
        )

    async def _load_owned(self, db: AsyncSession, caller_id: str, notebook_id: int) -> Notebook:
        """Loads and row-locks a notebook filtered by id AND owner in one query."""
        if not is_storable_id(notebook_id):
            raise NotFoundError(resource="notebook", context={"notebook_id": notebook_id})

        try:
            result = await db.execute(
                select(Notebook)
                .where(Notebook.id == notebook_id, Notebook.owner_id == caller_id)
                .with_for_update()
            )
            notebook = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error loading notebook %s: %s", notebook_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the notebook. Please try again.",
                context={"notebook_id": notebook_id},
            ) from e

        if notebook is None:
            raise NotFoundError(resource="notebook", context={"notebook_id": notebook_id})
        return notebook


# ── Singleton Instance ────────────────────────────────────────────────────
notebook_service = NotebookService(ValidationPolicy(settings.validation_limits))
