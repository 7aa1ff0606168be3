"""
NoteKeeper Backend — Application Package Initializer
======================================================

Personal notes service: users sign up, log in for a bearer token, and
manage their own tagged notes.

Architecture Note:
    ┌─────────────────────────────────────┐
    │     Routes (API Layer)              │  ← HTTP concerns, identity guard
    ├─────────────────────────────────────┤
    │     Services                        │  ← CredentialStore, TokenService,
    │                                     │    NoteRepository
    ├─────────────────────────────────────┤
    │     Models & Schemas (Data)         │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │     Database (Persistence)          │  ← Database handle on app.state
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
