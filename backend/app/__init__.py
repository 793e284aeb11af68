"""
Parcel Server Backend: Application Package Initializer
=======================================================

What: Marks the `app` directory as a Python package.
Who:  Imported by uvicorn (`app.main:app`), Alembic and pytest.

Architecture Note:
    The backend is a thin layered REST service:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← validation, error mapping
    ├─────────────────────────────────────┤
    │        Schemas (API contracts)      │  ← Pydantic request/response models
    ├─────────────────────────────────────┤
    │  Collaborators (Document store,     │  ← async SQLAlchemy, Stripe
    │  Payment gateway)                   │
    └─────────────────────────────────────┘

    Collaborators are built once at startup, kept on `app.state` and handed
    to the services through FastAPI dependencies (see app/dependencies.py).
"""

__version__ = "1.0.0"
