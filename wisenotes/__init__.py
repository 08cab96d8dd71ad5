"""
WiseNotes API — Application Package Initializer
================================================

What: Marks the `wisenotes` directory as a Python package.
Why:  Enables module imports like `from wisenotes.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    The API follows a layered architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, caller resolution
    ├─────────────────────────────────────┤
    │  Services (Scoped Access + Rules)   │  ← ownership filters, validation
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Every Notebook and Note query carries the caller's id as a filter
    predicate. Routes never see an unscoped row.
"""

__version__ = "1.0.0"
