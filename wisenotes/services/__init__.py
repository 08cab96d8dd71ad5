# Services package init
"""
WiseNotes API — Services Layer
===============================

What:  Business logic layer sitting between routes (HTTP) and database (persistence).
Why:   Routes handle HTTP; services own the ownership and validation rules.

Service Inventory (leaves first):
    - ValidationPolicy: title/content presence and length rules
    - ClaimsIdentityResolver: verified claims → caller id
    - NotebookService: owner-scoped notebook CRUD
    - NoteService: owner- and notebook-scoped note CRUD

Services take the request's AsyncSession as an argument and keep no
per-request state, so one instance of each serves every request.
"""
