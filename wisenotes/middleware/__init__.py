# Middleware package init
"""
WiseNotes API — Middleware Package
===================================

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Logging] → Route Handler

    1. Rate Limit: reject abusive clients before any work
    2. Request ID: correlation id for logs and error bodies
    3. Logging: access line with status and duration
"""
