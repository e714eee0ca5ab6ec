"""Favorites: save and unsave listings."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from solvestay.app.errors import ApiError
from solvestay.app.routes.auth import get_current_user_dep
from solvestay.domain.models import Favorite, Profile, Property
from solvestay.domain.schemas import FavoriteCreate, PropertyResponse
from solvestay.infra.database import get_db
from solvestay.services.quota import increment_counter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/favorites", tags=["favorites"])


async def _find_favorite(db: AsyncSession, user_id: str, property_id: str) -> Favorite | None:
    result = await db.execute(
        select(Favorite).where(Favorite.user_id == user_id, Favorite.property_id == property_id)
    )
    return result.scalar_one_or_none()


@router.get("")
async def list_favorites(
    property_id: str | None = None,
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    if property_id:
        favorite = await _find_favorite(db, user.id, property_id)
        return {"is_favorite": favorite is not None}

    result = await db.execute(
        select(Favorite)
        .options(selectinload(Favorite.property))
        .where(Favorite.user_id == user.id)
        .order_by(Favorite.created_at.desc())
    )
    return {
        "favorites": [
            {
                "id": fav.id,
                "property_id": fav.property_id,
                "notes": fav.notes,
                "created_at": fav.created_at,
                "property": PropertyResponse.model_validate(fav.property) if fav.property else None,
            }
            for fav in result.scalars().all()
        ]
    }


@router.post("")
async def add_favorite(
    data: FavoriteCreate,
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    if await _find_favorite(db, user.id, data.property_id):
        return {"success": True, "is_favorite": True}

    if not await db.get(Property, data.property_id):
        raise ApiError(404, "Property not found")

    db.add(Favorite(user_id=user.id, property_id=data.property_id, notes=data.notes))
    try:
        await db.flush()
    except IntegrityError:
        # Concurrent add of the same favorite
        await db.rollback()
        return {"success": True, "is_favorite": True}

    await increment_counter(db, Property.favorites_count, data.property_id)
    await db.commit()
    return {"success": True, "is_favorite": True}


@router.delete("")
async def remove_favorite(
    property_id: str,
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        delete(Favorite)
        .where(Favorite.user_id == user.id, Favorite.property_id == property_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        await increment_counter(db, Property.favorites_count, property_id, delta=-1)
    await db.commit()
    return {"success": True, "is_favorite": False}
