"""
WiseNotes API — Note Schemas
=============================

What:  Request body and response view for notes.
"""

from typing import Optional

from pydantic import BaseModel, Field


class NoteWrite(BaseModel):
    """Body of POST/PUT on /notebooks/{notebook_id}/notes."""
    content: Optional[str] = Field(default=None, description="Note text")


class NoteView(BaseModel):
    id: int = Field(description="Note identifier")
    content: str = Field(description="Note text")

    model_config = {"from_attributes": True}
