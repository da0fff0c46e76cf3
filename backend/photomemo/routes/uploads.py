"""
PhotoMemo Backend: Upload Route Handler
=======================================

What:  POST /api/uploads stores one image and returns its storage key.
How:   The client uploads images first, then creates or updates a post with
       the returned keys in `fileUrl`.
"""

import logging

from fastapi import APIRouter, Depends, File, UploadFile, status

from photomemo.dependencies import get_current_identity
from photomemo.schemas.common import ErrorResponse
from photomemo.schemas.post import UploadResponse
from photomemo.services.auth_service import TokenIdentity
from photomemo.services.file_service import file_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Uploads"])


@router.post(
    "/uploads",
    status_code=status.HTTP_201_CREATED,
    response_model=UploadResponse,
    responses={
        400: {"description": "Invalid file type or size", "model": ErrorResponse},
        401: {"description": "Authentication required", "model": ErrorResponse},
        500: {"description": "Storage failure", "model": ErrorResponse},
    },
    summary="Upload an image attachment",
)
async def upload_image(
    file: UploadFile = File(..., description="PNG, JPEG, GIF or WebP image"),
    identity: TokenIdentity = Depends(get_current_identity),
) -> UploadResponse:
    content = await file.read()
    logger.info(
        "Received upload from %s: filename=%s, size=%d bytes",
        identity.id,
        file.filename or "unknown",
        len(content),
    )

    try:
        key, url = await file_service.validate_and_store(
            owner_id=identity.id,
            filename=file.filename or "",
            content=content,
            content_length=file.size,
        )
    finally:
        await file.close()

    return UploadResponse(key=key, url=url)
