"""
BillSense AI Backend — Application Package Initializer
======================================================

What: Marks the `billsense` directory as a Python package.
Why:  Enables module imports like `from billsense.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend follows the same layered split used across the package:

    ┌─────────────────────────────────────┐
    │     Routes + Auth Gate (API Layer)  │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Invoices, auth, AI prompts
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Shared resources (settings, database, AI client) live in one AppContext
    built by `create_app()`; nothing at request time reaches for module globals.
"""

__version__ = "1.0.0"
