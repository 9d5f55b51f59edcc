"""
Blog Backend — Application Package
====================================

Layered architecture:

    ┌─────────────────────────────────────┐
    │     Routes + Auth Guard (HTTP)      │  ← status codes, form/JSON parsing
    ├─────────────────────────────────────┤
    │      Services (Business Logic)      │  ← ownership, uniqueness, uploads
    ├─────────────────────────────────────┤
    │  Models & Schemas, Security helpers │  ← SQLAlchemy ORM, Pydantic, JWT, bcrypt
    ├─────────────────────────────────────┤
    │     Database / Upload directory     │  ← async sessions, local files
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
