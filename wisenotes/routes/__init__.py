# Routes package init
"""
WiseNotes API — API Routes Package
===================================

Route Inventory:
    - notebooks.py:  /notebooks, /notebooks/{notebook_id}
    - notes.py:      /notebooks/{notebook_id}/notes, .../notes/{note_id}
    - health.py:     GET /health

Routes are thin: they resolve the caller through `get_caller_id`, call a
service, and pick status codes and headers. Ownership and validation rules
live in the services.
"""
