"""
PhotoMemo Backend: Post Request/Response Schemas
================================================

What:  Pydantic models for the posts API contract.

Attachment input:
    `fileUrl` arrives as a list, a single string, or a JSON-encoded list
    string (multipart-style clients). The schema accepts any of these and
    PostService normalizes them with `normalize_attachments` before anything
    else sees them.

Partial updates:
    PostUpdate relies on pydantic's "fields set" tracking. A field absent from
    the body is left untouched; a field sent as null is cleared.
"""

import uuid
from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field

from photomemo.schemas.common import CamelModel


class PostCreate(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None
    file_url: Any = Field(default=None, description="List, string, or JSON list string of keys/URLs")
    image_url: Optional[str] = Field(default=None, description="Legacy single attachment")


class PostUpdate(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None
    file_url: Any = None
    image_url: Optional[str] = None


class PostResponse(CamelModel):
    """
    A post as returned to clients.

    For create/update `file_url` holds the stored values; for list/get every
    entry has been resolved to an absolute URL.
    """
    id: uuid.UUID
    user: uuid.UUID = Field(description="Owner user id")
    number: int
    title: str = ""
    content: str = ""
    file_url: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DeleteResponse(CamelModel):
    ok: bool = True
    id: uuid.UUID


class UploadResponse(CamelModel):
    key: str = Field(description="Storage key to send back in fileUrl")
    url: str = Field(description="Public URL of the stored object")
