"""
WiseNotes API — Notebook Route Handlers
========================================

What:  CRUD endpoints under /notebooks.
How:   Resolve the caller, hand path/body values to NotebookService, set
       status codes and the Location header. No ownership logic here.

Status codes:
    GET    /notebooks                 200
    GET    /notebooks/{notebook_id}   200 | 404
    POST   /notebooks                 201 + Location | 400
    PUT    /notebooks/{notebook_id}   204 | 400 | 404
    DELETE /notebooks/{notebook_id}   204 | 404
    (every route: 401 without a valid bearer token)
"""

from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from wisenotes.database import get_db_session
from wisenotes.dependencies import get_caller_id, get_notebook_service
from wisenotes.schemas.common import ErrorResponse
from wisenotes.schemas.notebook import NotebookView, NotebookWrite
from wisenotes.services.notebook_service import NotebookService


router = APIRouter(
    prefix="/notebooks",
    tags=["Notebooks"],
    responses={401: {"description": "Missing or invalid credentials", "model": ErrorResponse}},
)


@router.get("", response_model=List[NotebookView], summary="List the caller's notebooks")
async def list_notebooks(
    caller_id: str = Depends(get_caller_id),
    service: NotebookService = Depends(get_notebook_service),
    db: AsyncSession = Depends(get_db_session),
) -> List[NotebookView]:
    return await service.list_notebooks(db, caller_id)


@router.get(
    "/{notebook_id}",
    response_model=NotebookView,
    responses={404: {"description": "Notebook not found", "model": ErrorResponse}},
    summary="Get one of the caller's notebooks",
)
async def get_notebook(
    notebook_id: int,
    caller_id: str = Depends(get_caller_id),
    service: NotebookService = Depends(get_notebook_service),
    db: AsyncSession = Depends(get_db_session),
) -> NotebookView:
    return await service.get_notebook(db, caller_id, notebook_id)


@router.post(
    "",
    response_model=NotebookView,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Invalid title", "model": ErrorResponse}},
    summary="Create a notebook owned by the caller",
)
async def create_notebook(
    body: NotebookWrite,
    response: Response,
    caller_id: str = Depends(get_caller_id),
    service: NotebookService = Depends(get_notebook_service),
    db: AsyncSession = Depends(get_db_session),
) -> NotebookView:
    view, location = await service.create_notebook(db, caller_id, body.title)
    response.headers["Location"] = location
    return view


@router.put(
    "/{notebook_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={
        400: {"description": "Invalid title", "model": ErrorResponse},
        404: {"description": "Notebook not found", "model": ErrorResponse},
    },
    summary="Rename one of the caller's notebooks",
)
async def update_notebook(
    notebook_id: int,
    body: NotebookWrite,
    caller_id: str = Depends(get_caller_id),
    service: NotebookService = Depends(get_notebook_service),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await service.update_notebook(db, caller_id, notebook_id, body.title)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/{notebook_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={404: {"description": "Notebook not found", "model": ErrorResponse}},
    summary="Delete one of the caller's notebooks and all of its notes",
)
async def delete_notebook(
    notebook_id: int,
    caller_id: str = Depends(get_caller_id),
    service: NotebookService = Depends(get_notebook_service),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await service.delete_notebook(db, caller_id, notebook_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
