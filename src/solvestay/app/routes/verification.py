"""Owner verification: document upload and submission for review."""

import logging

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from solvestay.app.config import get_settings
from solvestay.app.errors import ApiError
from solvestay.app.routes.auth import get_current_user_dep
from solvestay.domain.enums import UserRole, VerificationStatus
from solvestay.domain.models import Profile
from solvestay.infra.database import get_db
from solvestay.infra.storage import VERIFICATION_BUCKET, LocalObjectStorage, get_storage
from solvestay.services.uploads import store_verification_document

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/verification", tags=["verification"])


def _require_owner(user: Profile) -> None:
    if user.role != UserRole.OWNER.value:
        raise ApiError(403, "Only owners can upload verification documents")


@router.post("/upload")
async def upload_document(
    file: UploadFile = File(...),
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
    storage: LocalObjectStorage = Depends(get_storage),
):
    _require_owner(user)
    path, url = await store_verification_document(
        storage, user.id, file, get_settings().max_document_upload_mb
    )

    documents = [*(user.verification_documents or []), url]
    user.verification_documents = documents
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Failed to attach document to profile %s: %s", user.id, e)
        storage.remove(VERIFICATION_BUCKET, [path])
        raise ApiError(500, "Failed to update profile") from e

    return {"success": True, "url": url, "path": path, "documents": documents}


@router.post("/submit")
async def submit_for_review(
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    _require_owner(user)
    if not user.verification_documents:
        raise ApiError(400, "Upload at least one document before submitting")
    if user.is_verified:
        raise ApiError(400, "Already verified")

    user.verification_status = VerificationStatus.PENDING.value
    user.verification_rejection_reason = None
    await db.commit()
    logger.info("Owner %s submitted verification documents", user.id)
    return {"success": True, "verification_status": user.verification_status}
