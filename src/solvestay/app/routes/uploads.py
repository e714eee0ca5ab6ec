"""Property image upload and delete."""

from fastapi import APIRouter, Depends, File, Form, UploadFile

from solvestay.app.config import get_settings
from solvestay.app.routes.auth import get_current_user_dep
from solvestay.domain.models import Profile
from solvestay.infra.storage import LocalObjectStorage, get_storage
from solvestay.services.uploads import delete_property_image, store_property_image

router = APIRouter(prefix="/api/upload", tags=["uploads"])


@router.post("")
async def upload_image(
    file: UploadFile = File(...),
    property_id: str | None = Form(None),
    user: Profile = Depends(get_current_user_dep),
    storage: LocalObjectStorage = Depends(get_storage),
):
    """Store one listing image under ``<user>/<property|temp>/``."""
    return await store_property_image(
        storage, user.id, file, property_id, get_settings().max_image_upload_mb
    )


@router.delete("")
async def delete_image(
    path: str,
    user: Profile = Depends(get_current_user_dep),
    storage: LocalObjectStorage = Depends(get_storage),
):
    delete_property_image(storage, user.id, path)
    return {"success": True}
