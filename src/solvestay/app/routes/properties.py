"""Property routes: public search and detail, owner CRUD."""

import logging

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from solvestay.app.errors import ApiError
from solvestay.app.routes.auth import get_current_user_dep, get_optional_user_dep
from solvestay.domain.enums import PropertyStatus, SortBy, UserRole
from solvestay.domain.models import Profile, Property, PropertyView
from solvestay.domain.schemas import (
    PropertyDetailResponse,
    PropertyListResponse,
    PropertyResponse,
    PropertyWrite,
)
from solvestay.infra.database import get_db
from solvestay.services.listing_search import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    ListingFilters,
    parse_int_list,
    parse_str_list,
    search_listings,
)
from solvestay.services.quota import increment_counter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/properties", tags=["properties"])


async def _get_owned_property(db: AsyncSession, property_id: str, user: Profile) -> Property:
    prop = await db.get(Property, property_id)
    if not prop:
        raise ApiError(404, "Property not found")
    if prop.owner_id != user.id and user.role != UserRole.ADMIN.value:
        raise ApiError(403, "Unauthorized")
    return prop


@router.get("", response_model=PropertyListResponse)
async def list_properties(
    q: str | None = None,
    city: str | None = None,
    property_type: str | None = None,
    listing_type: str | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
    bedrooms: str | None = Query(None, description="Comma separated, 4 means 4+"),
    furnishing: str | None = None,
    amenities: str | None = Query(None, description="Comma separated, all must match"),
    sort_by: SortBy = SortBy.NEWEST,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
):
    """Public search over approved, active listings."""
    filters = ListingFilters(
        q=q,
        city=city,
        property_type=property_type,
        listing_type=listing_type,
        min_price=min_price,
        max_price=max_price,
        bedrooms=parse_int_list(bedrooms),
        furnishing=furnishing,
        amenities=parse_str_list(amenities),
        sort_by=sort_by.value,
        page=page,
        limit=limit,
    )
    return await search_listings(db, filters)


@router.post("", response_model=PropertyResponse, status_code=201)
async def create_property(
    data: PropertyWrite,
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    if user.role != UserRole.OWNER.value:
        raise ApiError(403, "Only owners can list properties")
    if not user.is_verified:
        raise ApiError(403, "Owner verification required before listing properties")

    prop = Property(
        **data.model_dump(),
        owner_id=user.id,
        status=PropertyStatus.PENDING.value,
        is_active=False,
        is_verified=False,
    )
    db.add(prop)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Failed to create property for %s: %s", user.id, e)
        raise ApiError(500, "Failed to create property") from e

    await db.refresh(prop)
    logger.info("Property %s created by %s (pending review)", prop.id, user.id)
    return PropertyResponse.model_validate(prop)


@router.get("/mine", response_model=list[PropertyResponse])
async def my_properties(
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Property)
        .where(Property.owner_id == user.id)
        .order_by(Property.created_at.desc())
    )
    return [PropertyResponse.model_validate(p) for p in result.scalars().all()]


@router.get("/{property_id}/public", response_model=PropertyDetailResponse)
async def public_property(
    property_id: str,
    request: Request,
    viewer: Profile | None = Depends(get_optional_user_dep),
    db: AsyncSession = Depends(get_db),
):
    """Public detail page for an approved, active listing. Counts one view."""
    result = await db.execute(
        select(Property)
        .options(selectinload(Property.owner))
        .where(
            Property.id == property_id,
            Property.status == PropertyStatus.APPROVED.value,
            Property.is_active.is_(True),
        )
    )
    prop = result.scalar_one_or_none()
    if not prop:
        raise ApiError(404, "Property not found")

    db.add(PropertyView(
        property_id=prop.id,
        viewer_id=viewer.id if viewer else None,
        viewer_ip=request.client.host if request.client else None,
    ))
    await increment_counter(db, Property.views_count, prop.id)
    await db.commit()
    await db.refresh(prop, attribute_names=["views_count"])

    return PropertyDetailResponse.model_validate(prop)


@router.get("/{property_id}", response_model=PropertyResponse)
async def get_property(
    property_id: str,
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    prop = await _get_owned_property(db, property_id, user)
    return PropertyResponse.model_validate(prop)


@router.put("/{property_id}", response_model=PropertyResponse)
async def update_property(
    property_id: str,
    data: PropertyWrite,
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    prop = await _get_owned_property(db, property_id, user)

    for field, value in data.model_dump().items():
        setattr(prop, field, value)

    # Edits to a live listing go back through moderation
    if prop.status == PropertyStatus.APPROVED.value:
        prop.status = PropertyStatus.PENDING.value
        prop.is_active = False

    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Failed to update property %s: %s", property_id, e)
        raise ApiError(500, "Failed to update property") from e

    await db.refresh(prop)
    return PropertyResponse.model_validate(prop)


@router.delete("/{property_id}")
async def delete_property(
    property_id: str,
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    prop = await _get_owned_property(db, property_id, user)
    await db.delete(prop)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Failed to delete property %s: %s", property_id, e)
        raise ApiError(500, "Failed to delete property") from e

    logger.info("Property %s deleted by %s", property_id, user.id)
    return {"success": True}
