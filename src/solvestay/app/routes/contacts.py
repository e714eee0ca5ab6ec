"""Contact reveal routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from solvestay.app.routes.auth import get_current_user_dep
from solvestay.domain.models import Profile
from solvestay.domain.schemas import ContactRevealRequest
from solvestay.infra.database import get_db
from solvestay.services.contact_reveal import get_reveal_status, reveal_contact

router = APIRouter(prefix="/api/contacts", tags=["contacts"])


@router.post("/reveal")
async def reveal(
    data: ContactRevealRequest,
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    """Reveal the owner's contact details, charging one contact on first reveal."""
    return await reveal_contact(db, user.id, data.property_id)


@router.get("/reveal")
async def reveal_status(
    property_id: str,
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    return await get_reveal_status(db, user.id, property_id)
