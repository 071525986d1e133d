import logging
from typing import List

from fastapi import APIRouter, Depends, File, Request, UploadFile, status

from src.api.dependencies import get_upload_service
from src.core.auth import get_current_user
from src.core.responses import success_response
from src.middleware.rate_limit import create_limit
from src.models import User
from src.schemas import BatchUploadResultItem, UploadedImage
from src.service.upload_service import UploadService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["upload"])


@router.post("/image", status_code=status.HTTP_201_CREATED)
@create_limit
async def upload_image(
    request: Request,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    upload_service: UploadService = Depends(get_upload_service),
):
    """
    Upload one listing or profile image

    The returned url is the blob path to save on the post; previewUrl is a
    short-lived signed URL for showing the image right away.
    """
    logger.info(f"Image upload from user {current_user.id}: {file.filename}")
    content = await file.read()
    result = await upload_service.upload_single_image(
        current_user.id, file.filename or "", file.content_type or "", content
    )
    return success_response(
        UploadedImage(**result).model_dump(), "Image uploaded successfully"
    )


@router.post("/images", status_code=status.HTTP_201_CREATED)
@create_limit
async def upload_images(
    request: Request,
    files: List[UploadFile] = File(...),
    current_user: User = Depends(get_current_user),
    upload_service: UploadService = Depends(get_upload_service),
):
    """Batch upload; one failed file does not fail the others"""
    logger.info(f"Batch upload from user {current_user.id}: {len(files)} files")
    payload = [
        (file.filename or "", file.content_type or "", await file.read())
        for file in files
    ]
    results = await upload_service.upload_multiple_images(current_user.id, payload)
    items = [BatchUploadResultItem(**item).model_dump(exclude_none=True) for item in results]

    uploaded = sum(1 for item in items if item["success"])
    return success_response(items, f"{uploaded} of {len(items)} images uploaded")
