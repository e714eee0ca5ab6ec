"""Visit request routes: customers request, owners confirm or reject."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from solvestay.app.errors import ApiError
from solvestay.app.routes.auth import get_current_user_dep
from solvestay.domain.enums import NotificationType, VisitActor, VisitStatus
from solvestay.domain.models import Profile, Property, VisitRequest
from solvestay.domain.schemas import VisitCreate, VisitResponse, VisitUpdate
from solvestay.infra.database import get_db
from solvestay.services.notifications import NotificationService
from solvestay.services.visit_workflow import (
    UPDATE_TITLES,
    InvalidTransitionError,
    apply_transition,
    parse_status,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/visits", tags=["visits"])


def _party(profile: Profile | None) -> dict | None:
    if not profile:
        return None
    return {"id": profile.id, "full_name": profile.full_name, "avatar_url": profile.avatar_url}


def _visit_dict(visit: VisitRequest) -> dict:
    return VisitResponse.model_validate(visit).model_dump(mode="json")


def _update_message(visit: VisitRequest, status: VisitStatus, title: str) -> str:
    if status == VisitStatus.CONFIRMED:
        text = f'Your visit request for "{title}" has been confirmed.'
        if visit.confirmed_date:
            text += f" Scheduled for {visit.confirmed_date.isoformat()}"
            if visit.confirmed_time:
                text += f" at {visit.confirmed_time}"
        return text
    if status == VisitStatus.REJECTED:
        text = f'Your visit request for "{title}" has been rejected.'
        if visit.owner_message:
            text += f" Reason: {visit.owner_message}"
        return text
    if status == VisitStatus.COMPLETED:
        return f'Your visit to "{title}" has been marked as completed.'
    return f'The visit request for "{title}" has been cancelled.'


@router.post("", status_code=201)
async def request_visit(
    data: VisitCreate,
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    prop = await db.get(Property, data.property_id)
    if not prop:
        raise ApiError(404, "Property not found")
    if prop.owner_id == user.id:
        raise ApiError(400, "Cannot request a visit to your own property")

    visit = VisitRequest(
        property_id=prop.id,
        customer_id=user.id,
        owner_id=prop.owner_id,
        preferred_date=data.preferred_date,
        preferred_time=data.preferred_time,
        alternate_date=data.alternate_date,
        alternate_time=data.alternate_time,
        notes=data.notes or None,
        customer_phone=data.customer_phone or user.phone,
        status=VisitStatus.PENDING.value,
    )
    db.add(visit)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Failed to create visit request for %s: %s", prop.id, e)
        raise ApiError(500, "Failed to create visit request") from e

    response = {
        "success": True,
        "visit_request": _visit_dict(visit),
        "message": "Visit request submitted successfully. The owner will be notified.",
    }
    logger.info("Visit %s requested on property %s by %s", visit.id, prop.id, user.id)

    await NotificationService(db).notify(
        prop.owner_id,
        NotificationType.VISIT_REQUEST.value,
        "New Visit Request",
        f'{user.full_name or "A customer"} has requested to visit "{prop.title}" '
        f"on {data.preferred_date.isoformat()} at {data.preferred_time}",
        link="/dashboard/visits",
        image_url=(prop.images or [None])[0],
        metadata={
            "visit_request_id": response["visit_request"]["id"],
            "property_id": prop.id,
            "customer_id": user.id,
        },
    )
    return response


@router.get("")
async def list_visits(
    role: str = "customer",
    property_id: str | None = None,
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    query = (
        select(VisitRequest)
        .options(
            selectinload(VisitRequest.property),
            selectinload(VisitRequest.customer),
            selectinload(VisitRequest.owner),
        )
        .order_by(VisitRequest.created_at.desc())
    )
    if role == VisitActor.OWNER.value:
        query = query.where(VisitRequest.owner_id == user.id)
    else:
        query = query.where(VisitRequest.customer_id == user.id)
    if property_id:
        query = query.where(VisitRequest.property_id == property_id)

    result = await db.execute(query)
    visits = []
    for visit in result.scalars().all():
        item = _visit_dict(visit)
        item["property"] = (
            {
                "id": visit.property.id,
                "title": visit.property.title,
                "address": visit.property.address,
                "city": visit.property.city,
                "images": visit.property.images or [],
            }
            if visit.property
            else None
        )
        item["customer"] = _party(visit.customer)
        item["owner"] = _party(visit.owner)
        visits.append(item)
    return {"success": True, "visit_requests": visits}


@router.put("/{visit_id}")
async def update_visit(
    visit_id: str,
    data: VisitUpdate,
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    target = parse_status(data.status)
    if target is None:
        raise ApiError(400, "Invalid status")

    visit = await db.get(VisitRequest, visit_id)
    if not visit:
        raise ApiError(404, "Visit request not found")

    if visit.owner_id == user.id:
        actor = VisitActor.OWNER
    elif visit.customer_id == user.id and target == VisitStatus.CANCELLED:
        actor = VisitActor.CUSTOMER
    else:
        raise ApiError(403, "Unauthorized. Only the property owner can update visit requests.")

    try:
        visit = await apply_transition(
            db,
            visit,
            target,
            actor,
            owner_message=data.owner_message if actor == VisitActor.OWNER else None,
            confirmed_date=data.confirmed_date,
            confirmed_time=data.confirmed_time,
        )
    except InvalidTransitionError as e:
        raise ApiError(400, e.reason) from e

    response = {"success": True, "visit_request": _visit_dict(visit)}

    prop = await db.get(Property, visit.property_id)
    title = prop.title if prop else "property"
    recipient_id = visit.owner_id if actor == VisitActor.CUSTOMER else visit.customer_id
    await NotificationService(db).notify(
        recipient_id,
        NotificationType.VISIT_UPDATE.value,
        UPDATE_TITLES[target],
        _update_message(visit, target, title),
        link="/dashboard/visits",
        metadata={
            "visit_request_id": visit.id,
            "property_id": visit.property_id,
            "status": target.value,
        },
    )
    return response
