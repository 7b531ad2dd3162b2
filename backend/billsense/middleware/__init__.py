"""
BillSense AI Backend — Middleware Package
=========================================

What:  Cross-cutting concerns applied to every request, plus the auth gate.

Middleware chain (outermost first):
    Request → [CORS] → [Request ID] → [Logging] → Route Handler

    - CORS answers preflight OPTIONS before anything else runs.
    - Request ID is set before Logging reads it.

The auth gate (auth.protect) is not middleware: it is a FastAPI dependency
attached to each protected handler.
"""
