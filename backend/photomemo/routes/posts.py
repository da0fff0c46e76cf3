"""
PhotoMemo Backend: Post Route Handlers
======================================

What:  CRUD for posts under /api/posts.
Who:   The SPA's memo list, "my memos" page, detail and edit views.

Route order matters: /my is declared before /{post_id} so it is not taken
for an id. Ids are plain strings here and validated by PostService, so a
malformed id is a 400 (ValidationError) rather than FastAPI's 422.

Listing is public; everything else needs a valid session token.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from photomemo.database import get_db_session
from photomemo.dependencies import get_current_identity
from photomemo.schemas.common import ErrorResponse
from photomemo.schemas.post import DeleteResponse, PostCreate, PostResponse, PostUpdate
from photomemo.services.auth_service import TokenIdentity
from photomemo.services.post_service import post_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/posts", tags=["Posts"])

_AUTH_ERRORS = {401: {"description": "Authentication required", "model": ErrorResponse}}
_MUTATION_ERRORS = {
    **_AUTH_ERRORS,
    400: {"description": "Malformed post id", "model": ErrorResponse},
    403: {"description": "Not the owner of this post", "model": ErrorResponse},
    404: {"description": "Post not found", "model": ErrorResponse},
}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=PostResponse,
    responses=_AUTH_ERRORS,
    summary="Create a post",
)
async def create_post(
    body: PostCreate,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    return await post_service.create_post(db=db, owner_id=identity.id, data=body)


@router.get(
    "",
    response_model=List[PostResponse],
    summary="List all posts, newest first",
)
async def list_posts(db: AsyncSession = Depends(get_db_session)) -> List[PostResponse]:
    return await post_service.list_posts(db=db)


@router.get(
    "/my",
    response_model=List[PostResponse],
    responses=_AUTH_ERRORS,
    summary="List the caller's posts, newest first",
)
async def my_posts(
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> List[PostResponse]:
    return await post_service.list_posts(db=db, owner_id=identity.id)


@router.get(
    "/{post_id}",
    response_model=PostResponse,
    responses={
        **_AUTH_ERRORS,
        400: {"description": "Malformed post id", "model": ErrorResponse},
        404: {"description": "Post not found", "model": ErrorResponse},
    },
    summary="Get one post",
    # Auth only gates access; any signed-in user may read any post
    dependencies=[Depends(get_current_identity)],
)
async def get_post(
    post_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    return await post_service.get_post(db=db, post_id=post_id)


@router.put(
    "/{post_id}",
    response_model=PostResponse,
    responses=_MUTATION_ERRORS,
    summary="Partially update the caller's post",
)
async def update_post(
    post_id: str,
    body: PostUpdate,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    return await post_service.update_post(db=db, post_id=post_id, user_id=identity.id, patch=body)


@router.delete(
    "/{post_id}",
    response_model=DeleteResponse,
    responses=_MUTATION_ERRORS,
    summary="Delete the caller's post and its attachments",
)
async def delete_post(
    post_id: str,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> DeleteResponse:
    deleted_id = await post_service.delete_post(db=db, post_id=post_id, user_id=identity.id)
    return DeleteResponse(ok=True, id=deleted_id)
