"""Admin routes: owner verification, listing moderation, users, stats."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from solvestay.app.errors import ApiError
from solvestay.app.routes.auth import require_role
from solvestay.domain.enums import (
    NotificationType,
    PropertyStatus,
    UserRole,
    VerificationStatus,
)
from solvestay.domain.models import Profile, Property
from solvestay.domain.schemas import (
    ProfileResponse,
    PropertyResponse,
    RejectRequest,
    RoleUpdate,
    VerifyOwnerRequest,
)
from solvestay.infra.database import get_db
from solvestay.services.notifications import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])

_admin = require_role(UserRole.ADMIN.value)


# ---------------------------------------------------------------------------
# Owner verification
# ---------------------------------------------------------------------------


@router.get("/verify")
async def pending_verifications(
    admin: Profile = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Profile)
        .where(
            Profile.verification_status == VerificationStatus.PENDING.value,
            Profile.role == UserRole.OWNER.value,
        )
        .order_by(Profile.created_at.desc())
    )
    return {
        "success": True,
        "verifications": [ProfileResponse.model_validate(p) for p in result.scalars().all()],
    }


@router.post("/verify")
async def decide_verification(
    data: VerifyOwnerRequest,
    admin: Profile = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    if data.action not in ("approve", "reject"):
        raise ApiError(400, "Invalid action")
    if data.action == "reject" and not data.rejection_reason:
        raise ApiError(400, "Rejection reason is required")

    profile = await db.get(Profile, data.user_id)
    if not profile:
        raise ApiError(404, "User not found")

    if data.action == "approve":
        profile.is_verified = True
        profile.verification_status = VerificationStatus.VERIFIED.value
        profile.verification_rejection_reason = None
    else:
        profile.is_verified = False
        profile.verification_status = VerificationStatus.REJECTED.value
        profile.verification_rejection_reason = data.rejection_reason
    await db.commit()
    await db.refresh(profile)

    logger.info("Admin %s %sd verification of %s", admin.id, data.action, profile.id)
    response = {
        "success": True,
        "profile": ProfileResponse.model_validate(profile).model_dump(mode="json"),
        "message": f"Verification {data.action}d successfully",
    }

    if data.action == "approve":
        await NotificationService(db).notify(
            profile.id,
            NotificationType.PROPERTY_APPROVED.value,
            "Verification Approved",
            "Your owner verification has been approved. You can now list properties.",
            link="/dashboard/verify",
        )
    else:
        await NotificationService(db).notify(
            profile.id,
            NotificationType.GENERAL.value,
            "Verification Rejected",
            f"Your verification was rejected. Reason: {data.rejection_reason}",
            link="/dashboard/verify",
        )
    return response


# ---------------------------------------------------------------------------
# Listing moderation
# ---------------------------------------------------------------------------


@router.get("/properties")
async def moderation_queue(
    status: str | None = PropertyStatus.PENDING.value,
    q: str | None = None,
    admin: Profile = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    query = select(Property).order_by(Property.created_at.desc())
    if status and status != "all":
        query = query.where(Property.status == status)
    if q:
        pattern = f"%{q.strip()}%"
        query = query.where(or_(Property.title.ilike(pattern), Property.city.ilike(pattern)))
    result = await db.execute(query)
    return {"properties": [PropertyResponse.model_validate(p) for p in result.scalars().all()]}


@router.post("/properties/{property_id}/approve")
async def approve_property(
    property_id: str,
    admin: Profile = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    prop = await db.get(Property, property_id)
    if not prop:
        raise ApiError(404, "Property not found")

    prop.status = PropertyStatus.APPROVED.value
    prop.is_verified = True
    prop.is_active = True
    prop.rejection_reason = None
    prop.approved_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(prop)

    logger.info("Admin %s approved property %s", admin.id, prop.id)
    response = {"success": True, "property": PropertyResponse.model_validate(prop).model_dump(mode="json")}
    await NotificationService(db).notify(
        prop.owner_id,
        NotificationType.PROPERTY_APPROVED.value,
        "Property Approved",
        f'Your property "{prop.title}" has been approved and is now live.',
        link=f"/properties/{prop.id}",
        image_url=(prop.images or [None])[0],
        metadata={"property_id": prop.id},
    )
    return response


@router.post("/properties/{property_id}/reject")
async def reject_property(
    property_id: str,
    data: RejectRequest,
    admin: Profile = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    prop = await db.get(Property, property_id)
    if not prop:
        raise ApiError(404, "Property not found")

    prop.status = PropertyStatus.REJECTED.value
    prop.is_active = False
    prop.rejection_reason = data.reason
    await db.commit()
    await db.refresh(prop)

    logger.info("Admin %s rejected property %s", admin.id, prop.id)
    response = {"success": True, "property": PropertyResponse.model_validate(prop).model_dump(mode="json")}
    await NotificationService(db).notify(
        prop.owner_id,
        NotificationType.PROPERTY_REJECTED.value,
        "Property Rejected",
        f'Your property "{prop.title}" was rejected. Reason: {data.reason}',
        link="/dashboard/properties",
        metadata={"property_id": prop.id},
    )
    return response


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@router.get("/users")
async def list_users(
    q: str | None = None,
    role: str | None = None,
    admin: Profile = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    query = select(Profile).order_by(Profile.created_at.desc())
    if q:
        pattern = f"%{q.strip()}%"
        query = query.where(
            or_(
                Profile.email.ilike(pattern),
                Profile.full_name.ilike(pattern),
                Profile.phone.ilike(pattern),
            )
        )
    if role and role != "all":
        query = query.where(Profile.role == role)
    result = await db.execute(query)
    return {"users": [ProfileResponse.model_validate(p) for p in result.scalars().all()]}


@router.patch("/users/{user_id}/role")
async def change_role(
    user_id: str,
    data: RoleUpdate,
    admin: Profile = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    if data.role not in {r.value for r in UserRole}:
        raise ApiError(400, "Invalid role")
    profile = await db.get(Profile, user_id)
    if not profile:
        raise ApiError(404, "User not found")
    if profile.id == admin.id and data.role != UserRole.ADMIN.value:
        raise ApiError(400, "Cannot remove your own admin role")

    profile.role = data.role
    await db.commit()
    await db.refresh(profile)
    logger.info("Admin %s set role of %s to %s", admin.id, profile.id, data.role)
    return {"success": True, "user": ProfileResponse.model_validate(profile)}


@router.post("/users/{user_id}/toggle-verification")
async def toggle_verification(
    user_id: str,
    admin: Profile = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    profile = await db.get(Profile, user_id)
    if not profile:
        raise ApiError(404, "User not found")

    profile.is_verified = not profile.is_verified
    profile.verification_status = (
        VerificationStatus.VERIFIED.value if profile.is_verified else None
    )
    await db.commit()
    await db.refresh(profile)
    return {"success": True, "user": ProfileResponse.model_validate(profile)}


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


async def _count(db: AsyncSession, model, *conditions) -> int:
    query = select(func.count()).select_from(model)
    if conditions:
        query = query.where(*conditions)
    return (await db.execute(query)).scalar() or 0


@router.get("/stats")
async def stats(
    admin: Profile = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    return {
        "total_users": await _count(db, Profile),
        "total_owners": await _count(db, Profile, Profile.role == UserRole.OWNER.value),
        "total_properties": await _count(db, Property),
        "pending_properties": await _count(
            db, Property, Property.status == PropertyStatus.PENDING.value
        ),
        "pending_verifications": await _count(
            db,
            Profile,
            Profile.verification_status == VerificationStatus.PENDING.value,
            Profile.role == UserRole.OWNER.value,
        ),
        "active_listings": await _count(
            db,
            Property,
            Property.status == PropertyStatus.APPROVED.value,
            Property.is_active.is_(True),
        ),
    }
