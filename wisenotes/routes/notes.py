"""
WiseNotes API — Note Route Handlers
====================================

What:  CRUD endpoints under /notebooks/{notebook_id}/notes.
How:   Resolve the caller, delegate to NoteService, map results to status
       codes. The notebook id from the path is part of every lookup.

Status codes:
    GET    .../notes             200 (empty list for foreign/unknown notebook)
    GET    .../notes/{note_id}   200 | 404
    POST   .../notes             201 + Location | 400 | 403
    PUT    .../notes/{note_id}   200 | 400 | 404
    DELETE .../notes/{note_id}   204 | 404
"""

from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from wisenotes.database import get_db_session
from wisenotes.dependencies import get_caller_id, get_note_service
from wisenotes.schemas.common import ErrorResponse
from wisenotes.schemas.note import NoteView, NoteWrite
from wisenotes.services.note_service import NoteService


router = APIRouter(
    prefix="/notebooks/{notebook_id}/notes",
    tags=["Notebooks: Notes"],
    responses={401: {"description": "Missing or invalid credentials", "model": ErrorResponse}},
)


@router.get("", response_model=List[NoteView], summary="List notes in one of the caller's notebooks")
async def list_notes(
    notebook_id: int,
    caller_id: str = Depends(get_caller_id),
    service: NoteService = Depends(get_note_service),
    db: AsyncSession = Depends(get_db_session),
) -> List[NoteView]:
    return await service.list_notes(db, caller_id, notebook_id)


@router.get(
    "/{note_id}",
    response_model=NoteView,
    responses={404: {"description": "Note not found", "model": ErrorResponse}},
    summary="Get a note",
)
async def get_note(
    notebook_id: int,
    note_id: int,
    caller_id: str = Depends(get_caller_id),
    service: NoteService = Depends(get_note_service),
    db: AsyncSession = Depends(get_db_session),
) -> NoteView:
    return await service.get_note(db, caller_id, notebook_id, note_id)


@router.post(
    "",
    response_model=NoteView,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid content", "model": ErrorResponse},
        403: {"description": "Notebook not accessible", "model": ErrorResponse},
    },
    summary="Add a note to one of the caller's notebooks",
)
async def create_note(
    notebook_id: int,
    body: NoteWrite,
    response: Response,
    caller_id: str = Depends(get_caller_id),
    service: NoteService = Depends(get_note_service),
    db: AsyncSession = Depends(get_db_session),
) -> NoteView:
    view, location = await service.create_note(db, caller_id, notebook_id, body.content)
    response.headers["Location"] = location
    return view


@router.put(
    "/{note_id}",
    response_model=NoteView,
    responses={
        400: {"description": "Invalid content", "model": ErrorResponse},
        404: {"description": "Note not found", "model": ErrorResponse},
    },
    summary="Replace a note's content",
)
async def update_note(
    notebook_id: int,
    note_id: int,
    body: NoteWrite,
    caller_id: str = Depends(get_caller_id),
    service: NoteService = Depends(get_note_service),
    db: AsyncSession = Depends(get_db_session),
) -> NoteView:
    return await service.update_note(db, caller_id, notebook_id, note_id, body.content)


@router.delete(
    "/{note_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={404: {"description": "Note not found", "model": ErrorResponse}},
    summary="Delete a note",
)
async def delete_note(
    notebook_id: int,
    note_id: int,
    caller_id: str = Depends(get_caller_id),
    service: NoteService = Depends(get_note_service),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await service.delete_note(db, caller_id, notebook_id, note_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
