"""
PhotoMemo Backend: Application Package
======================================

What: Personal photo memo service (accounts, posts, image attachments on S3).
How:  Layered the same way in every module:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, ownership checks
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← auth, posts, attachments, uploads
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database / Object storage         │  ← async sessions, boto3 S3 client
    └─────────────────────────────────────┘

The `client` subpackage is the consumer side: a persisted session cache and
an HTTP client for the REST surface.
"""

__version__ = "1.0.0"
