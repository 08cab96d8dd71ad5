"""
WiseNotes API — Notebook Schemas
=================================

What:  Request bodies and the response view for notebooks.

Request bodies accept a missing or null title. Presence and length are
checked by the ValidationPolicy so the client gets a 400 naming the field,
the same as for an empty string, instead of FastAPI's generic 422.
"""

from typing import Optional

from pydantic import BaseModel, Field


class NotebookWrite(BaseModel):
    """Body of POST /notebooks and PUT /notebooks/{id}."""
    title: Optional[str] = Field(default=None, description="Notebook title")


class NotebookView(BaseModel):
    """
    What:  Notebook as returned to its owner.
    Why note_count: List pages show how full each notebook is without
           fetching every note.
    """
    id: int = Field(description="Notebook identifier")
    title: str = Field(description="Notebook title")
    note_count: int = Field(default=0, description="Number of notes in the notebook")

    model_config = {"from_attributes": True}
