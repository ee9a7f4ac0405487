"""
So Quotable Backend
===================

Curated quotations attributed to people, with CDN-hosted photos and
account recovery by email.

Layers:

    ┌─────────────────────────────────────┐
    │   Routes (FastAPI routers)          │  ← HTTP concerns, auth dependency
    ├─────────────────────────────────────┤
    │   Services                          │  ← token lifecycle, guards, CRUD rules
    ├─────────────────────────────────────┤
    │   Models & Schemas                  │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database                          │  ← async sessions per request
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
