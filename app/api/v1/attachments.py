"""Attachments API endpoints."""
from fastapi import APIRouter, Depends, status

from app.dependencies import get_attachment_service
from app.schemas.attachment import (
    AttachmentRegister,
    AttachmentResponse,
    PresignDownloadResponse,
    PresignUploadRequest,
    PresignUploadResponse,
)
from app.services.attachment_service import AttachmentService

router = APIRouter()


@router.post("/presign", response_model=PresignUploadResponse)
async def presign_upload(
    request: PresignUploadRequest,
    service: AttachmentService = Depends(get_attachment_service),
):
    """Generate presigned URL for file upload."""
    return await service.presign_upload(request)


@router.post("/register", response_model=AttachmentResponse, status_code=status.HTTP_201_CREATED)
async def register_attachment(
    payload: AttachmentRegister,
    service: AttachmentService = Depends(get_attachment_service),
):
    """Register an uploaded object against its task."""
    return await service.register(payload)


@router.get("/download", response_model=PresignDownloadResponse)
async def presign_download(
    key: str = "",
    service: AttachmentService = Depends(get_attachment_service),
):
    """Generate presigned URL for file download."""
    return service.presign_download(key)


@router.delete("/{attachment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attachment(
    attachment_id: int,
    service: AttachmentService = Depends(get_attachment_service),
):
    """Delete an attachment from storage, then from the database."""
    await service.delete_attachment(attachment_id)
