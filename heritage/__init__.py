"""
Heritage Numérique Backend — Application Package Initializer
=============================================================

What: Marks the `heritage` directory as a Python package.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend is a layered REST API for family heritage content:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, auth dependencies
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Permissions, workflows, notifications
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic DTOs
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes never touch the ORM directly; services receive an AsyncSession
    per call and only flush. The request-scoped session dependency commits
    or rolls back once the handler returns.
"""

__version__ = "1.0.0"
