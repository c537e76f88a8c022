"""
Posts API — Application Package
================================

What:  A small blog/posts HTTP service. Users log in to obtain a bearer token,
       create posts (title, description, photo URL, body) and anyone can list
       posts, read one, or mark one as a favourite.
Who:   Served by uvicorn (`posts_api.main:create_app` as a factory), Alembic, and pytest.

Layering:

    ┌─────────────────────────────────────┐
    │        Routes (Request Handlers)    │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Services (Post Store, Auth Gate)   │  ← domain rules, token handling
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← async engine owned by the app
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
