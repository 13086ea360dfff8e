"""
ReportDesk Backend: Application Package Initializer
====================================================

What: Marks the `reportdesk` directory as a Python package.
Why:  Enables module imports like `from reportdesk.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend follows a layered architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, caller identity
    ├─────────────────────────────────────┤
    │     Services (Access Controller)    │  ← Visibility and mutation rules
    ├─────────────────────────────────────┤
    │     Repository (Persistence API)    │  ← insert / find / update / delete
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    The policy module (services/report_policy.py) is pure: it inspects a
    loaded report and a caller and returns a decision. Everything that
    touches the database lives in the repository.
"""

__version__ = "1.0.0"
