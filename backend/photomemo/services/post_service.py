"""
PhotoMemo Backend: Post Service (Business Logic Orchestrator)
=============================================================

What:  Create, list, fetch, update and delete posts, keeping the object store
       in step with the attachments each post references.
Who:   Called by the /api/posts route handlers.

Update flow (PUT /api/posts/{id}):
    ┌──────────┐   ┌──────────┐   ┌──────────────────┐   ┌─────────────┐   ┌──────────┐
    │  Load    │──▶│  Owner?  │──▶│  Diff old/new    │──▶│ Delete keys │──▶│ Persist  │
    │  (DB)    │   │  403     │   │  attachment keys │   │ (S3, best   │   │  (DB)    │
    └──────────┘   └──────────┘   └──────────────────┘   │  effort)    │   └──────────┘
                                                         └─────────────┘
    Storage failures are logged and the database update still happens.
    Nothing spans both stores: a crash after the deletions and before the
    commit leaves the row pointing at objects that are gone.

Numbering:
    A post's `number` is the owner's current max + 1, read then written.
    Two concurrent creates by the same owner can get the same number; that
    is accepted rather than guarded with a lock.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from photomemo.exceptions import ForbiddenError, NotFoundError, ValidationError
from photomemo.models.post import Post
from photomemo.schemas.post import PostCreate, PostResponse, PostUpdate
from photomemo.services.attachments import (
    delete_keys,
    keys_to_remove,
    normalize_attachments,
    referenced_keys,
    resolve_urls,
    to_public_url,
)
from photomemo.services.storage_service import storage_service

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "content", "file_url", "image_url")
TEXT_FIELDS = ("title", "content")


def parse_post_id(raw: str) -> uuid.UUID:
    """Reject malformed ids with a 400 before any query runs."""
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        raise ValidationError(message="Malformed post id.", field="id", context={"id": raw})


def to_response(post: Post, resolve: bool = False) -> PostResponse:
    """
    Build the client representation of a post.

    resolve=False returns attachment values exactly as stored (create/update);
    resolve=True rewrites every value to a public URL (list/get).
    """
    if resolve:
        files = resolve_urls(post.file_url, post.image_url)
        image_url = to_public_url(post.image_url) if post.image_url else post.image_url
    else:
        files = list(post.file_url or [])
        image_url = post.image_url
    return PostResponse(
        id=post.id,
        user=post.user_id,
        number=post.number,
        title=post.title or "",
        content=post.content or "",
        file_url=files,
        image_url=image_url,
        created_at=post.created_at,
        updated_at=post.updated_at,
    )


class PostService:
    """
    Post store operations plus attachment reconciliation.

    Ownership is checked here rather than in the routes so every mutation
    path enforces it.
    """

    async def create_post(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        data: PostCreate,
    ) -> PostResponse:
        files = normalize_attachments(data.file_url)
        if not files and data.image_url:
            files = normalize_attachments(data.image_url)

        latest = await db.execute(
            select(func.max(Post.number)).where(Post.user_id == owner_id)
        )
        current_max = latest.scalar()
        next_number = int(current_max) + 1 if current_max is not None else 1

        post = Post(
            user_id=owner_id,
            number=next_number,
            title=data.title or "",
            content=data.content or "",
            file_url=files,
            image_url=data.image_url,
        )
        db.add(post)
        await db.flush()
        await db.refresh(post)

        logger.info(
            "Post %s created by %s (number=%d, attachments=%d)",
            post.id, owner_id, next_number, len(files),
        )
        return to_response(post)

    async def list_posts(
        self,
        db: AsyncSession,
        owner_id: Optional[uuid.UUID] = None,
    ) -> List[PostResponse]:
        """All posts, or only `owner_id`'s, newest first, with URLs resolved."""
        query = select(Post)
        if owner_id is not None:
            query = query.where(Post.user_id == owner_id)
        query = query.order_by(desc(Post.created_at))

        result = await db.execute(query)
        return [to_response(post, resolve=True) for post in result.scalars().all()]

    async def get_post(self, db: AsyncSession, post_id: str) -> PostResponse:
        post = await self._load(db, post_id)
        return to_response(post, resolve=True)

    async def update_post(
        self,
        db: AsyncSession,
        post_id: str,
        user_id: uuid.UUID,
        patch: PostUpdate,
    ) -> PostResponse:
        """
        Partial update by the owner.

        Only fields present in the request body change. An explicit null
        clears the field: fileUrl becomes [], imageUrl becomes None, and
        title or content become "".
        Attachment keys referenced before the update but not after it are
        removed from object storage, best effort.

        Raises:
            ValidationError: malformed id (→ 400)
            NotFoundError:   no such post (→ 404)
            ForbiddenError:  caller is not the owner (→ 403)
        """
        post = await self._load(db, post_id)
        self._ensure_owner(post, user_id)

        updates = self._pick_defined(patch)

        old_keys = referenced_keys(post.file_url, post.image_url)
        new_keys = referenced_keys(
            updates.get("file_url", post.file_url),
            updates.get("image_url", post.image_url),
        )
        to_delete = keys_to_remove(old_keys, new_keys)
        if to_delete:
            failed = await delete_keys(storage_service, to_delete)
            if failed:
                logger.warning("Post %s: %d attachment(s) left orphaned", post.id, len(failed))

        for field, value in updates.items():
            setattr(post, field, value)
        await db.flush()
        await db.refresh(post)

        logger.info("Post %s updated (%s)", post.id, ", ".join(sorted(updates)) or "no fields")
        return to_response(post)

    async def delete_post(
        self,
        db: AsyncSession,
        post_id: str,
        user_id: uuid.UUID,
    ) -> uuid.UUID:
        """
        Delete the owner's post and every object it references.

        The row is deleted even when some storage deletions fail.
        """
        post = await self._load(db, post_id)
        self._ensure_owner(post, user_id)

        keys = referenced_keys(post.file_url, post.image_url)
        if keys:
            await delete_keys(storage_service, keys)

        deleted_id = post.id
        await db.delete(post)
        await db.flush()

        logger.info("Post %s deleted (%d attachment(s))", deleted_id, len(keys))
        return deleted_id

    async def _load(self, db: AsyncSession, post_id: str) -> Post:
        pid = parse_post_id(post_id)
        post = await db.get(Post, pid)
        if post is None:
            raise NotFoundError(resource="post", resource_id=str(pid))
        return post

    @staticmethod
    def _ensure_owner(post: Post, user_id: uuid.UUID) -> None:
        if post.user_id != user_id:
            logger.warning("User %s denied mutation of post %s", user_id, post.id)
            raise ForbiddenError()

    @staticmethod
    def _pick_defined(patch: PostUpdate) -> Dict[str, Any]:
        updates: Dict[str, Any] = {}
        for field in UPDATABLE_FIELDS:
            if field not in patch.model_fields_set:
                continue
            value = getattr(patch, field)
            if field == "file_url":
                # null clears the list
                value = normalize_attachments(value)
            elif value is None and field in TEXT_FIELDS:
                value = ""
            updates[field] = value
        return updates


post_service = PostService()
