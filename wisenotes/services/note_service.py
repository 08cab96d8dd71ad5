"""
WiseNotes API — Note Service (Owner- and Notebook-Scoped Access)
=================================================================

What:  List/get/create/update/delete for notes inside a notebook, on behalf
       of a resolved caller id.
Why:   Notes have no owner column of their own. Their owner is the owner of
       the parent notebook, so every note query joins notebooks and filters
       on notebooks.owner_id together with the notebook id from the path.
Who:   Called by the /notebooks/{notebook_id}/notes route handlers.

Scoping Flow:
    ┌──────────┐    ┌──────────────┐    ┌───────────────────────────────┐
    │ caller   │───▶│  validate    │───▶│ SELECT notes JOIN notebooks   │
    │ (route)  │    │  content     │    │ WHERE owner, notebook, note   │
    └──────────┘    └──────────────┘    └───────────────────────────────┘

    list:    no rows for an unknown or foreign notebook → empty list
    get/update/delete: no row → NotFoundError
    create:  parent notebook not owned by caller → ForbiddenError

Design Decision:
    NoteService holds only its ValidationPolicy. It receives the db session
    for each call, so one instance serves every request.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wisenotes.config import settings
from wisenotes.database import is_storable_id
from wisenotes.exceptions import DatabaseError, ForbiddenError, NotFoundError
from wisenotes.models.note import Note
from wisenotes.models.notebook import Notebook
from wisenotes.schemas.note import NoteView
from wisenotes.services.validation import ValidationPolicy

logger = logging.getLogger(__name__)


def note_location(notebook_id: int, note_id: int) -> str:
    return f"/notebooks/{notebook_id}/notes/{note_id}"


def _owned_notes(caller_id: str, notebook_id: int):
    """SELECT of the caller's notes in one notebook (ownership via the join)."""
    return (
        select(Note)
        .join(Notebook, Note.notebook_id == Notebook.id)
        .where(Notebook.owner_id == caller_id, Note.notebook_id == notebook_id)
    )


class NoteService:
    """
    Business logic layer for note operations.

    Responsibilities:
        - list_notes(): caller's notes in one notebook
        - get_note(): single note or NotFoundError
        - create_note(): validated insert into an owned notebook, else ForbiddenError
        - update_note(): validate, scoped load, write only on change
        - delete_note(): scoped load and remove
    """

    def __init__(self, policy: ValidationPolicy):
        self.policy = policy

    async def list_notes(self, db: AsyncSession, caller_id: str, notebook_id: int) -> List[NoteView]:
        """
        Returns the notes of one of the caller's notebooks, in creation order.

        A notebook that does not exist or is owned by someone else yields an
        empty list; the join simply matches no rows.
        """
        if not is_storable_id(notebook_id):
            return []

        try:
            result = await db.execute(_owned_notes(caller_id, notebook_id).order_by(Note.id))
            notes = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing notes of notebook %s: %s", notebook_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve notes. Please try again.",
                context={"notebook_id": notebook_id},
            ) from e

        return [NoteView(id=note.id, content=note.content) for note in notes]

    async def get_note(
        self, db: AsyncSession, caller_id: str, notebook_id: int, note_id: int
    ) -> NoteView:
        """
        Returns one note, matched on owner, notebook and note id together.

        Raises:
            NotFoundError: wrong owner, wrong notebook, or no such note
        """
        note = await self._load_owned(db, caller_id, notebook_id, note_id, lock=False)
        return NoteView(id=note.id, content=note.content)

    async def create_note(
        self, db: AsyncSession, caller_id: str, notebook_id: int, content: Optional[str]
    ) -> Tuple[NoteView, str]:
        """
        Validates the content and stores it as a new note in the notebook.

        Order matters: input is validated first (400 is actionable for the
        client), then the target notebook is checked (403 tells nothing about
        whether the notebook exists).

        Returns:
            (view of the created note, its location path)

        Raises:
            ValidationError: content empty or too long (nothing is read or written)
            ForbiddenError: notebook missing or owned by another user
            DatabaseError: lookup or insert failed
        """
        self.policy.ensure_content(content)

        if not is_storable_id(notebook_id):
            raise ForbiddenError(context={"notebook_id": notebook_id})

        try:
            # Locking the parent keeps a concurrent notebook delete from
            # slipping in between the check and the insert
            result = await db.execute(
                select(Notebook.id)
                .where(Notebook.id == notebook_id, Notebook.owner_id == caller_id)
                .with_for_update()
            )
            owned = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error checking notebook %s: %s", notebook_id, str(e))
            raise DatabaseError(
                message="Could not create the note. Please try again.",
                context={"notebook_id": notebook_id},
            ) from e

        if owned is None:
            logger.warning("Caller %s may not add notes to notebook %s", caller_id, notebook_id)
            raise ForbiddenError(context={"notebook_id": notebook_id})

        note = Note(content=content, notebook_id=notebook_id)
        try:
            db.add(note)
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error creating note in notebook %s: %s", notebook_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the note. Please try again.",
                context={"notebook_id": notebook_id},
            ) from e

        logger.info("Note %s created in notebook %s by %s", note.id, notebook_id, caller_id)
        return NoteView(id=note.id, content=note.content), note_location(notebook_id, note.id)

    async def update_note(
        self,
        db: AsyncSession,
        caller_id: str,
        notebook_id: int,
        note_id: int,
        content: Optional[str],
    ) -> NoteView:
        """
        Replaces the content of one of the caller's notes.

        Identical content is accepted without a write.

        Raises:
            ValidationError: content empty or too long
            NotFoundError: wrong owner, wrong notebook, or no such note
            DatabaseError: load or write failed
        """
        self.policy.ensure_content(content)
        note = await self._load_owned(db, caller_id, notebook_id, note_id, lock=True)

        if note.content != content:
            try:
                note.content = content
                await db.flush()
                await db.commit()
            except SQLAlchemyError as e:
                logger.error("Database error updating note %s: %s", note_id, str(e), exc_info=True)
                raise DatabaseError(
                    message="Could not update the note. Please try again.",
                    context={"note_id": note_id},
                ) from e
            logger.info("Note %s in notebook %s updated by %s", note_id, notebook_id, caller_id)

        return NoteView(id=note.id, content=note.content)

    async def delete_note(
        self, db: AsyncSession, caller_id: str, notebook_id: int, note_id: int
    ) -> None:
        """
        Raises:
            NotFoundError: wrong owner, wrong notebook, or no such note
            DatabaseError: delete failed
        """
        note = await self._load_owned(db, caller_id, notebook_id, note_id, lock=True)

        try:
            await db.delete(note)
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error deleting note %s: %s", note_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the note. Please try again.",
                context={"note_id": note_id},
            ) from e

        logger.info("Note %s in notebook %s deleted by %s", note_id, notebook_id, caller_id)

    async def _load_owned(
        self, db: AsyncSession, caller_id: str, notebook_id: int, note_id: int, lock: bool
    ) -> Note:
        if not (is_storable_id(notebook_id) and is_storable_id(note_id)):
            raise NotFoundError(resource="note", context={"notebook_id": notebook_id, "note_id": note_id})

        query = _owned_notes(caller_id, notebook_id).where(Note.id == note_id)
        if lock:
            query = query.with_for_update(of=Note)

        try:
            result = await db.execute(query)
            note = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the note. Please try again.",
                context={"note_id": note_id},
            ) from e

        if note is None:
            raise NotFoundError(resource="note", context={"notebook_id": notebook_id, "note_id": note_id})
        return note


# ── Singleton Instance ────────────────────────────────────────────────────
note_service = NoteService(ValidationPolicy(settings.validation_limits))
