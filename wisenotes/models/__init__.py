# Models package init
"""
WiseNotes API — ORM Models
===========================

Importing this package registers every table with `Base.metadata`.

    Notebook (notebooks) 1 ──── * Note (notes)
       owner_id                    notebook_id → notebooks.id ON DELETE CASCADE
"""

from wisenotes.models.note import Note
from wisenotes.models.notebook import Notebook

__all__ = ["Note", "Notebook"]
